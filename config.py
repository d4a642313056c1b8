# --- Configuration --------------------------------------------------------------------------------

# Governance domains aligned with the NIST AI RMF GOVERN function.
DOMAINS = [
    {
        "id": "gov1",
        "section": "GOV 1",
        "title": "Policies & Procedures",
        "subtitle": "Legal compliance, risk management processes, and AI system inventory",
        "color": "#3c8dbc",
    },
    {
        "id": "gov2",
        "section": "GOV 2",
        "title": "Accountability & Roles",
        "subtitle": "Roles, responsibilities, training, and executive leadership accountability",
        "color": "#28a745",
    },
    {
        "id": "gov3",
        "section": "GOV 3",
        "title": "Human Oversight",
        "subtitle": "Diverse teams, human-in-the-loop processes, and override mechanisms",
        "color": "#6f42c1",
    },
    {
        "id": "gov4",
        "section": "GOV 4",
        "title": "Culture & Communication",
        "subtitle": "Safety-first mindset, risk documentation, and incident management",
        "color": "#fd7e14",
    },
    {
        "id": "gov5",
        "section": "GOV 5",
        "title": "External Feedback",
        "subtitle": "External feedback collection and integration mechanisms",
        "color": "#20c997",
    },
    {
        "id": "gov6",
        "section": "GOV 6",
        "title": "Third-Party Risk",
        "subtitle": "Vendor AI policies, contingency processes, and contractual controls",
        "color": "#6c757d",
    },
    {
        "id": "gov7",
        "section": "GOV 7",
        "title": "Lifecycle & Tiered Governance",
        "subtitle": "Tier classification, deployment controls, monitoring, and change management",
        "color": "#001f3f",
    },
    {
        "id": "gov8",
        "section": "GOV 8",
        "title": "Privacy & Security",
        "subtitle": "HIPAA/regulatory compliance, security controls, and PHI/PII protections",
        "color": "#dc3545",
    },
]

MATURITY_LEVELS = [
    {"label": "0 - Absent", "value": 0},
    {"label": "1 - Initial/Ad hoc", "value": 1},
    {"label": "2 - Defined", "value": 2},
    {"label": "3 - Repeatable", "value": 3},
    {"label": "4 - Managed/Optimized", "value": 4},
]

# Benefit runs low -> high, effort runs high -> low so that "2" is always the attractive end.
BENEFIT_LEVELS = [
    {"label": "Minimal", "value": 0},
    {"label": "Moderate", "value": 1},
    {"label": "Significant", "value": 2},
]

EFFORT_LEVELS = [
    {"label": "Significant", "value": 0},
    {"label": "Moderate", "value": 1},
    {"label": "Minimal", "value": 2},
]

DEFAULT_BENEFIT = 1
DEFAULT_EFFORT = 1

LEVEL_COLORS = ["#dc3545", "#fd7e14", "#ffc107", "#28a745", "#17a2b8"]

PRIORITY_COLORS = {
    "Critical": "#dc3545",
    "High": "#fd7e14",
    "Medium": "#ffc107",
    "Low": "#28a745",
}

# 28 assessment questions (GOV 1.1 - GOV 8.3) with default current/target levels.
QUESTIONS = [
    # GOV 1: Governance Policies & Procedures
    {
        "code": "GOV 1.1",
        "domain": "gov1",
        "question": "Legal and regulatory requirements involving AI are understood, managed, and documented.",
        "description": "We have identified, understood, managed, and documented legal and regulatory requirements involving AI in the jurisdictions and industries where we operate, including HIPAA, CMIA, CPRA/CCPA compliance.",
        "default_current": 3,
        "default_target": 4,
    },
    {
        "code": "GOV 1.2",
        "domain": "gov1",
        "question": "Responsible AI principles are documented and integrated into organizational policies.",
        "description": "We have documented responsible AI principles (fairness, transparency, accountability, privacy, security) integrated into organizational policies and the AI lifecycle.",
        "default_current": 1,
        "default_target": 4,
    },
    {
        "code": "GOV 1.3",
        "domain": "gov1",
        "question": "Processes are in place to determine needed risk management activities based on organizational risk tolerance.",
        "description": "We have established processes, procedures, and practices to determine the needed level of risk management activities based on the organization's risk tolerance, including tiered governance (Tier 0-3).",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 1.4",
        "domain": "gov1",
        "question": "Risk management process outcomes are established through transparent policies and controls.",
        "description": "We have established a risk management process with outcomes documented through transparent policies, procedures, and controls based on organizational risk priorities.",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 1.5",
        "domain": "gov1",
        "question": "Risk management process is monitored and reviewed periodically with defined roles and frequencies.",
        "description": "We monitor and periodically review our risk management process. Review outcomes and frequency are planned, and organizational roles and responsibilities are clearly defined.",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 1.6",
        "domain": "gov1",
        "question": "Mechanisms are in place and resourced to maintain an inventory of AI systems.",
        "description": "We have a sufficiently resourced mechanism to inventory AI systems, track governance tier classifications, approvals, and compliance status.",
        "default_current": 2,
        "default_target": 3,
    },
    {
        "code": "GOV 1.7",
        "domain": "gov1",
        "question": "Processes exist for safe decommissioning of AI systems aligned with risk tolerance.",
        "description": "We have necessary processes and procedures for decommissioning and phasing out AI systems safely and in line with our risk tolerance, including data deletion and vendor exit plans.",
        "default_current": 1,
        "default_target": 3,
    },
    # GOV 2: Accountability & Roles
    {
        "code": "GOV 2.1",
        "domain": "gov2",
        "question": "Roles, responsibilities, and communication lines for AI risk management are documented and understood.",
        "description": "We have documented roles and responsibilities and lines of communication related to mapping, measuring, and managing AI risks. These roles are clearly understood by people assigned to those roles, including AI Governance Committee membership.",
        "default_current": 1,
        "default_target": 3,
    },
    {
        "code": "GOV 2.2",
        "domain": "gov2",
        "question": "Personnel and partners receive AI risk management training aligned with policies.",
        "description": "Our organization's personnel and partners receive AI risk management training to enable them to perform their duties consistent with related policies, procedures, and agreements. Training includes prohibited uses, tier requirements, and attestation.",
        "default_current": 0,
        "default_target": 3,
    },
    {
        "code": "GOV 2.3",
        "domain": "gov2",
        "question": "Executive leadership takes responsibility for decisions about material AI risks.",
        "description": "Executive leadership (CIO, CCO) takes responsibility for decisions about material AI risks, including escalation authority for Tier C/D systems and regulatory implications.",
        "default_current": 1,
        "default_target": 4,
    },
    # GOV 3: Human Oversight & Decision-Making
    {
        "code": "GOV 3.1",
        "domain": "gov3",
        "question": "Decision-making is informed by diverse teams providing multiple perspectives.",
        "description": "Decision-making is informed by a diverse team (compliance, legal, clinical, IT, data governance, security, privacy) to provide multiple perspectives for AI risk management through the AI Governance Committee.",
        "default_current": 1,
        "default_target": 3,
    },
    {
        "code": "GOV 3.2",
        "domain": "gov3",
        "question": "Human-in-the-loop oversight processes are defined for AI systems.",
        "description": "We have defined roles, responsibilities, practices, and processes for human-in-the-loop oversight of AI systems. AI may support but not replace human judgment for member-impacting decisions.",
        "default_current": 1,
        "default_target": 4,
    },
    {
        "code": "GOV 3.3",
        "domain": "gov3",
        "question": "Override and escalation mechanisms are established for AI-assisted decisions.",
        "description": "Staff have clear override authority and escalation pathways. Any denial/delay/modification workflow meets applicable human review requirements. AI-generated content is not 'policy' unless formally approved.",
        "default_current": 1,
        "default_target": 4,
    },
    # GOV 4: Culture & Communication
    {
        "code": "GOV 4.1",
        "domain": "gov4",
        "question": "Policies foster a critical thinking and safety-first mindset in AI design and deployment.",
        "description": "Our policies foster a critical thinking and safety-first mindset in AI design and deployment, ensuring ethical, unbiased, and legally compliant AI use with fairness/bias assessment for member-impacting workflows.",
        "default_current": 1,
        "default_target": 3,
    },
    {
        "code": "GOV 4.2",
        "domain": "gov4",
        "question": "Teams document and communicate the risks and impacts of AI technology they use.",
        "description": "Teams document and communicate the risks and impacts of the AI technology they use, including output disclaimers, usage limitations, and risk assessments for each governance tier.",
        "default_current": 0,
        "default_target": 4,
    },
    {
        "code": "GOV 4.3",
        "domain": "gov4",
        "question": "Practices are in place for AI testing, incident identification, and information sharing.",
        "description": "We have practices in place for AI testing, incident identification, and information sharing, including incident response protocols, root cause analysis, and corrective actions for AI-related events.",
        "default_current": 1,
        "default_target": 4,
    },
    # GOV 5: External Feedback & Stakeholder Engagement
    {
        "code": "GOV 5.1",
        "domain": "gov5",
        "question": "Policies exist to collect, consider, and integrate external feedback regarding AI risks.",
        "description": "Organizational policies and practices are in place to collect, consider, prioritize, and integrate feedback from those external to the team(s) that developed or deployed AI systems regarding potential individual and societal impacts.",
        "default_current": 0,
        "default_target": 3,
    },
    {
        "code": "GOV 5.2",
        "domain": "gov5",
        "question": "Mechanisms regularly incorporate adjudicated feedback from relevant AI actors.",
        "description": "Mechanisms are established to enable regular incorporation of adjudicated feedback from relevant AI actors (members, providers, regulators, vendors) into system design and implementation.",
        "default_current": 1,
        "default_target": 3,
    },
    # GOV 6: Third-Party & Vendor Risk
    {
        "code": "GOV 6.1",
        "domain": "gov6",
        "question": "Policies address AI risks related to third-party entities and vendors.",
        "description": "We have policies addressing AI risks related to third-party entities, including vendor AI evaluation in procurement, BAA requirements, no-training clauses, data retention controls, and SOC 2 Type II attestation.",
        "default_current": 1,
        "default_target": 3,
    },
    {
        "code": "GOV 6.2",
        "domain": "gov6",
        "question": "Contingency processes handle failures in third-party AI systems.",
        "description": "We have contingency processes to handle failures or incidents in high-risk third-party data or AI systems, including exit plans and ability to revoke access and delete data.",
        "default_current": 0,
        "default_target": 3,
    },
    {
        "code": "GOV 6.3",
        "domain": "gov6",
        "question": "Vendor AI disclosures and contractual controls are enforced.",
        "description": "All vendors disclose use of AI-enabled systems. Execution of a BAA does not substitute for AI Governance Committee approval. Third-party AI systems are subject to the same tier classification and monitoring requirements.",
        "default_current": 1,
        "default_target": 3,
    },
    # GOV 7: AI System Lifecycle & Tiered Governance
    {
        "code": "GOV 7.1",
        "domain": "gov7",
        "question": "AI systems are classified into governance tiers based on operational impact.",
        "description": "All AI-enabled systems are classified into governance tiers (Tier 0: Exploratory, Tier 1: Internal Decision Support, Tier 2: Operational/Member-Impacting, Tier 3: High-Risk/Regulated Automation) based on operational impact, not intent or architecture.",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 7.2",
        "domain": "gov7",
        "question": "Tier-appropriate controls and documentation are required before deployment.",
        "description": "Based on proposed tier, AI Governance Committee confirms classification, reviews required control elements, and approves/conditions/defers/denies use. No Tier 2/3 system moves to production without recorded approval.",
        "default_current": 1,
        "default_target": 4,
    },
    {
        "code": "GOV 7.3",
        "domain": "gov7",
        "question": "Ongoing monitoring and periodic recertification are enforced for production AI.",
        "description": "Tier 2 and Tier 3 systems are subject to ongoing monitoring and periodic reporting including performance drift, bias/fairness concerns, incidents, vendor changes, and model updates.",
        "default_current": 1,
        "default_target": 4,
    },
    {
        "code": "GOV 7.4",
        "domain": "gov7",
        "question": "Change management triggers re-review and potential re-tiering.",
        "description": "Changes in data types, functionality, member impact, vendor/model updates, or applicable laws trigger re-review and potential re-tiering by the AI Governance Committee.",
        "default_current": 1,
        "default_target": 4,
    },
    # GOV 8: Privacy, Security & Compliance
    {
        "code": "GOV 8.1",
        "domain": "gov8",
        "question": "AI systems comply with HIPAA, CMIA, and applicable privacy regulations.",
        "description": "AI use aligns with HIPAA, CMIA, CPRA/CCPA and internal policies. PHI/PII disclosure requirements and prohibited uses are defined and enforced. Documentation completeness is validated for audits and regulatory inquiries.",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 8.2",
        "domain": "gov8",
        "question": "Security controls (encryption, logging, least privilege) are enforced for AI systems.",
        "description": "AI systems are reviewed for security risks with required controls enforced (least privilege, encryption, logging). Incident response expectations for AI-related events (data exposure, misuse, leakage) are defined.",
        "default_current": 2,
        "default_target": 4,
    },
    {
        "code": "GOV 8.3",
        "domain": "gov8",
        "question": "PHI/PII boundaries and prohibited uses are clearly defined and enforced.",
        "description": "Staff are prohibited from inputting PHI/PII into AI systems without an executed BAA. Sensitive data boundaries, disclosure requirements, and staff attestation requirements are defined and enforced.",
        "default_current": 1,
        "default_target": 4,
    },
]

# --- Dashboard limits ---------------------------------------------------------------------------

# Dashboard "top actions" panel and LLM prompt size.
DASHBOARD_TOP_ACTIONS = 5
PROMPT_GAP_LIMIT = 10

# --- LLM ------------------------------------------------------------------------------------------

LLM_PROVIDERS = [
    {"label": "llama.cpp (Local)", "value": "llama_cpp"},
    {"label": "Ollama (Local)", "value": "ollama"},
    {"label": "OpenAI", "value": "openai"},
]
DEFAULT_LLM_PROVIDER = "llama_cpp"

DEFAULT_MODELS = {
    "llama_cpp": "local-model",  # display only, llama-server serves whatever it loaded
    "ollama": "llama3.1:8b",
    "openai": "gpt-4",
}

DEFAULT_BASE_URLS = {
    "llama_cpp": "http://localhost:8080",
    "ollama": "http://localhost:11434",
    "openai": "",
}

OLLAMA_MODELS = [
    "llama3.1:8b",
    "llama3.1:70b",
    "llama3.2:3b",
    "mistral:7b",
    "mixtral:8x7b",
    "codellama:13b",
    "phi3:mini",
    "gpt-oss:120b-cloud",
]

OPENAI_MODELS = ["gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"]

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"

LLM_TIMEOUT_SECONDS = 120.0
LLM_TEMPERATURE = 0.7
LLAMA_CPP_MAX_TOKENS = 2048

SYSTEM_PROMPT = (
    "You are an expert AI governance consultant specializing in NIST AI RMF, healthcare "
    "compliance (HIPAA, CMIA, CPRA/CCPA), and organizational risk management. You help "
    "organizations improve their AI governance maturity. Provide concise, actionable "
    "recommendations that are specific and implementable."
)

CONNECTION_TEST_PROMPT = "Respond with exactly: 'Connection successful'"
