# reports.py

import logging
from datetime import date

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, TYPE_STRING
from pptx import Presentation
from pptx.util import Inches
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import (ListFlowable, ListItem, Paragraph,
                                SimpleDocTemplate, Spacer, Table, TableStyle)

from config import BENEFIT_LEVELS, DASHBOARD_TOP_ACTIONS, EFFORT_LEVELS
from scoring import (URGENT_PRIORITIES, aggregate, overall_summary,
                     score_ratings, top_gap_items)

logger = logging.getLogger(__name__)

DETAIL_SHEET = "Full Assessment"

DETAIL_COLUMNS = {
    "code": "Code",
    "question": "Question",
    "section": "Section",
    "domain": "Domain",
    "current": "Current",
    "target": "Target",
    "gap": "Gap",
    "priority": "Priority",
    "action_items": "Action_Items",
    "benefit": "Benefit",
    "effort": "Effort",
}

SUMMARY_COLUMNS = {
    "domain": "Domain",
    "avg_current": "Avg_Current",
    "avg_target": "Avg_Target",
    "avg_gap": "Avg_Gap",
    "questions": "Questions",
    "critical_high": "Critical_High",
}

FILENAMES = {
    "executive": "AI_Governance_Executive_Summary",
    "detailed": "AI_Governance_Detailed_Report",
    "action_plan": "AI_Governance_Action_Plan",
    "pdf": "AI_Governance_Executive_Summary",
    "pptx": "AI_Governance_Briefing",
}

EXTENSIONS = {"pdf": ".pdf", "pptx": ".pptx"}


def export_filename(kind, today=None):
    """
    File name for a download, e.g. "AI_Governance_Action_Plan_20261016.xlsx".

    :param kind: one of "executive", "detailed", "action_plan", "pdf", "pptx"
    :param today: date stamped into the name (defaults to today)
    """
    stamp = (today or date.today()).strftime("%Y%m%d")
    return f"{FILENAMES[kind]}_{stamp}{EXTENSIONS.get(kind, '.xlsx')}"


def _excel_safe(df):
    """Copy of `df` without the control characters openpyxl refuses to store."""
    df = df.copy()
    for col in df.columns:
        if not pd.api.types.is_numeric_dtype(df[col]):
            df[col] = df[col].map(
                lambda v: ILLEGAL_CHARACTERS_RE.sub("", v) if isinstance(v, str) else v
            )
    return df


def _to_sheet(writer, df, sheet_name, startrow=0):
    """
    Write `df` to a sheet with every text cell stored as a literal string.

    openpyxl turns text starting with "=" into a formula; user text such as
    "=Owner: CIO" must come back as typed.
    """
    df = _excel_safe(df)
    df.to_excel(writer, sheet_name=sheet_name, index=False, startrow=startrow)
    ws = writer.sheets[sheet_name]
    for row in ws.iter_rows(min_row=startrow + 1, max_row=startrow + 1 + len(df)):
        for cell in row:
            if isinstance(cell.value, str):
                cell.data_type = TYPE_STRING


def _detail_frame(session):
    scored = score_ratings(session.ratings_frame())
    return scored[list(DETAIL_COLUMNS)].rename(columns=DETAIL_COLUMNS)


def _summary_frame(session):
    return aggregate(session.ratings_frame()).rename(columns=SUMMARY_COLUMNS)


def _metrics_frame(session, today):
    summary = overall_summary(session.ratings_frame())
    return pd.DataFrame(
        {
            "Metric": ["Overall Maturity Score", "Target Score", "Assessment Cycle", "Date"],
            "Value": [
                f"{summary['overall']:.1f}",
                f"{summary['target']:.1f}",
                str(session.cycle_number),
                today.isoformat(),
            ],
        }
    )


def write_executive_summary(target, session, today=None):
    """
    Write the executive summary workbook.

    Sheets:
    1. "Executive Summary": headline metrics, then the domain summary from row 8.
    2. "Priority Actions": every Critical/High item.

    Args:
        target: path or binary file object
        session (AssessmentSession): the ratings to report on
        today (date, optional): report date
    """
    today = today or date.today()
    detail = _detail_frame(session)
    priority = detail[detail["Priority"].isin(URGENT_PRIORITIES)][
        ["Code", "Question", "Current", "Target", "Gap", "Priority", "Action_Items"]
    ]
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        _to_sheet(writer, _metrics_frame(session, today), "Executive Summary")
        _to_sheet(writer, _summary_frame(session), "Executive Summary", startrow=7)
        _to_sheet(writer, priority, "Priority Actions")


def write_detailed_report(target, session):
    """Write every rating with its derived columns, plus the domain summary."""
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        _to_sheet(writer, _detail_frame(session), DETAIL_SHEET)
        _to_sheet(writer, _summary_frame(session), "Domain Summary")


def action_plan_frame(session):
    """Open gaps (gap > 0), largest first, with benefit/effort labels."""
    detail = _detail_frame(session)
    plan = detail[detail["Gap"] > 0].sort_values("Gap", ascending=False, kind="stable")
    plan = plan.drop(columns=["Section"]).reset_index(drop=True)
    plan["Benefit_Label"] = plan["Benefit"].map({b["value"]: b["label"] for b in BENEFIT_LEVELS})
    plan["Effort_Label"] = plan["Effort"].map({e["value"]: e["label"] for e in EFFORT_LEVELS})
    return plan


def write_action_plan(target, session):
    plan = action_plan_frame(session)
    logger.info("Exporting action plan with %d open gaps", len(plan))
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        _to_sheet(writer, plan, "Action Plan")


def read_ratings(source):
    """
    Read the ratings back out of a detailed report.

    Args:
        source: path or binary file object written by `write_detailed_report`

    Returns:
        pd.DataFrame: code, current, target, action_items, benefit, effort
    """
    # keep_default_na=False so an action item reading "NA" stays text
    df = pd.read_excel(
        source,
        sheet_name=DETAIL_SHEET,
        dtype={"Code": str, "Action_Items": str},
        keep_default_na=False,
    )
    df = df.rename(columns={v: k for k, v in DETAIL_COLUMNS.items()})
    df = df[["code", "current", "target", "action_items", "benefit", "effort"]].copy()
    for col in ("current", "target", "benefit", "effort"):
        df[col] = df[col].astype(int)
    df["action_items"] = df["action_items"].fillna("").astype(str)
    return df


# ---------- Briefings (PDF / PPTX) ------------------


def _briefing_data(session):
    ratings = session.ratings_frame()
    return (
        overall_summary(ratings),
        aggregate(ratings),
        top_gap_items(ratings, DASHBOARD_TOP_ACTIONS),
    )


def _table_style(align="RIGHT"):
    return TableStyle(
        [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e9ebf3")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#0b1020")),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("ALIGN", (1, 1), (-1, -1), align),
            ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
            ("TOPPADDING", (0, 0), (-1, 0), 6),
        ]
    )


def write_pdf_summary(buf, session, today=None):
    """
    Write a one-document executive briefing as PDF.

    Contents: headline scores, domain table (current/target/gap/critical+high),
    and the top priority actions.
    """
    today = today or date.today()
    summary, domains, top = _briefing_data(session)

    doc = SimpleDocTemplate(
        buf, pagesize=A4, leftMargin=16, rightMargin=16, topMargin=16, bottomMargin=16
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph("<b>AI Governance Assessment</b>", styles["Title"]),
        Spacer(1, 8),
        Paragraph(
            f"Assessment Cycle: #{session.cycle_number}&nbsp;&nbsp;&nbsp; Date: {today.isoformat()}",
            styles["Normal"],
        ),
        Spacer(1, 10),
        Paragraph(
            f"<b>Overall Maturity:</b> {summary['overall']:.1f} / 4.0 "
            f"(target {summary['target']:.1f}, {summary['critical_high']} critical/high gaps)",
            styles["Heading3"],
        ),
        Spacer(1, 8),
    ]

    tbl_data = [["Domain", "Current", "Target", "Gap", "Critical/High"]] + [
        [
            r["domain"],
            f"{r['avg_current']:.1f}",
            f"{r['avg_target']:.1f}",
            f"{r['avg_gap']:.1f}",
            str(r["critical_high"]),
        ]
        for r in domains.to_dict(orient="records")
    ]
    avail = A4[0] - 72
    col0 = 200
    dcol = (avail - col0) / 4
    tbl = Table(tbl_data, colWidths=[col0] + [dcol] * 4, hAlign="LEFT")
    tbl.setStyle(_table_style())
    story += [
        Paragraph("<b>Domain Maturity</b>", styles["Heading3"]),
        Spacer(1, 6),
        tbl,
        Spacer(1, 12),
    ]

    if not top.empty:
        bullets = ListFlowable(
            [
                ListItem(
                    Paragraph(
                        f"[{r['code']}] {r['question']} "
                        f"(current {r['current']}, target {r['target']}, {r['priority']})",
                        styles["Normal"],
                    )
                )
                for r in top.to_dict(orient="records")
            ],
            bulletType="bullet",
        )
        story += [
            Paragraph("<b>Top Priority Actions</b>", styles["Heading3"]),
            Spacer(1, 6),
            bullets,
        ]

    doc.build(story)


def write_pptx_summary(buf, session, today=None):
    """
    Write a short briefing deck.

    1. Title slide with cycle and date.
    2. Summary slide with overall and target maturity.
    3. Domain maturity table.
    4. Top priority actions.
    """
    today = today or date.today()
    summary, domains, top = _briefing_data(session)

    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[0])
    slide.shapes.title.text = "AI Governance Assessment"
    slide.placeholders[1].text = (
        f"Assessment Cycle: #{session.cycle_number}\nDate: {today.isoformat()}"
    )

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Summary"
    body = slide.shapes.placeholders[1].text_frame
    body.clear()
    body.paragraphs[0].text = f"Overall Maturity: {summary['overall']:.1f} / 4.0"
    body.add_paragraph().text = f"Target Maturity: {summary['target']:.1f} / 4.0"
    body.add_paragraph().text = (
        f"Critical/High gaps: {summary['critical_high']} of {summary['questions']} questions"
    )

    slide = prs.slides.add_slide(prs.slide_layouts[5])
    slide.shapes.title.text = "Domain Maturity"
    rows, cols = len(domains) + 1, 4
    table = slide.shapes.add_table(
        rows, cols, Inches(0.5), Inches(1.5), Inches(9.0), Inches(0.8 + 0.35 * rows)
    ).table
    for j, head in enumerate(["Domain", "Current", "Target", "Gap"]):
        table.cell(0, j).text = head
    for i, r in enumerate(domains.to_dict(orient="records"), start=1):
        table.cell(i, 0).text = r["domain"]
        table.cell(i, 1).text = f"{r['avg_current']:.1f}"
        table.cell(i, 2).text = f"{r['avg_target']:.1f}"
        table.cell(i, 3).text = f"{r['avg_gap']:.1f}"

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Top Priority Actions"
    tf = slide.placeholders[1].text_frame
    tf.clear()
    lines = [
        f"[{r['code']}] {r['question']} ({r['priority']}, gap {r['gap']})"
        for r in top.to_dict(orient="records")
    ] or ["No open gaps."]
    # clear() keeps one empty paragraph; the first line goes there
    tf.paragraphs[0].text = lines[0]
    for line in lines[1:]:
        tf.add_paragraph().text = line

    prs.save(buf)
