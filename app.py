# app.py

import logging

import dash
import dash_daq as daq
import plotly.graph_objects as go
from dash import ALL, MATCH, Input, Output, State, ctx, dash_table, dcc, html

from config import (BENEFIT_LEVELS, DASHBOARD_TOP_ACTIONS, DEFAULT_BASE_URLS,
                    DEFAULT_LLM_PROVIDER, DEFAULT_MODELS, DOMAINS,
                    EFFORT_LEVELS, LLM_PROVIDERS, MATURITY_LEVELS,
                    OLLAMA_MODELS, OPENAI_API_KEY_ENV, OPENAI_MODELS,
                    PRIORITY_COLORS, QUESTIONS)
from llm import (Provider, ProviderConfig, check_connection,
                 generate_recommendations, provider_hint)
from reports import (export_filename, write_action_plan,
                     write_detailed_report, write_executive_summary,
                     write_pdf_summary, write_pptx_summary)
from scoring import (aggregate, items_with_priority,
                     overall_summary, priority_counts, priority_of,
                     score_ratings, top_gap_items)
from session import AssessmentSession, validate_catalog

logger = logging.getLogger(__name__)

app = dash.Dash(__name__, suppress_callback_exceptions=True)
app.title = "AI Governance Assessment"
server = app.server

validate_catalog()

RATING_INPUTS = ("current", "target", "action_items", "benefit", "effort")


# ----------- Helpers -------------
def _slug(s: str):
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in s).strip("-")


def gap_badge(current, target):
    """
    Text and CSS class for the gap badge shown next to a question.

    :param current: current maturity level
    :param target: target maturity level
    :return: (label, class name), the class carrying the priority tier
    """
    if current is None or target is None:
        return "Gap: -", "gap-indicator gap-low"
    gap = target - current
    tier = priority_of(gap, current).value.lower()
    return f"Gap: {gap}", f"gap-indicator gap-{tier}"


def apply_session_event(data, trigger, value, now=None, today=None):
    """
    Apply one UI event to the serialized session.

    Args:
        data (dict): the "session-store" contents.
        trigger: the Dash id that fired. A dict {"type": <field>, "code": <code>} is a
            rating edit; "save-progress" and "new-cycle" are the two buttons.
        value: the new value for a rating edit.
        now (datetime, optional): timestamp for "save-progress".
        today (date, optional): date for "new-cycle".

    Returns:
        dict: the updated store contents

    Raises:
        dash.exceptions.PreventUpdate: if the event changes nothing.
    """
    session = AssessmentSession.from_dict(data)
    if isinstance(trigger, dict) and trigger.get("type") in RATING_INPUTS:
        if not session.set_field(trigger["code"], trigger["type"], value):
            raise dash.exceptions.PreventUpdate
    elif trigger == "save-progress":
        session.mark_saved(now)
    elif trigger == "new-cycle":
        session.start_new_cycle(today)
    else:
        raise dash.exceptions.PreventUpdate
    return session.to_dict()


def provider_config_from_inputs(provider, model, base_url, api_key, use_client):
    """Build the `ProviderConfig` from the Action Plan settings controls."""
    return ProviderConfig(
        provider=provider or DEFAULT_LLM_PROVIDER,
        model=(model or "").strip(),
        base_url=(base_url or "").strip(),
        api_key=(api_key or "").strip(),
        use_client_library=bool(use_client),
    )


def provider_change_hint(provider):
    """
    Status hint for a newly selected provider.

    The model and URL inputs still hold the previous provider's values while
    this runs, so the hint uses the new provider's defaults.
    """
    return provider_hint(ProviderConfig(provider=provider or DEFAULT_LLM_PROVIDER))


def status_alert(text, ok=False, error=False):
    kind = "success" if ok else ("danger" if error else "warning")
    return html.Div(text, className=f"alert alert-{kind}", style={"whiteSpace": "pre-wrap"})


# for chart sizes
RADAR_H = 380
BAR_H = 380
GAP_H = 300
DETAIL_H = 520
MATRIX_H = 400


def _base_fig_layout(fig, theme="light", height=360):
    """
    Apply a consistent layout to a figure.

    This sets the font to a contrasting color for light/dark themes,
    and sets the grid color to a contrasting color. It also sets the
    axis colors to match the text color.

    :param fig: a figure to update
    :param theme: a string, either "light" or "dark"
    :param height: the height of the figure in pixels
    :return: the updated figure
    """

    font_color = "#f6f7fb" if theme == "dark" else "#0b1020"
    grid_color = "#334155" if theme == "dark" else "#CBD5E1"
    fig.update_layout(
        autosize=False,
        height=height,
        margin=dict(l=30, r=30, t=30, b=30),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=font_color),
        xaxis=dict(gridcolor=grid_color, zeroline=False, linecolor=font_color, fixedrange=True),
        yaxis=dict(gridcolor=grid_color, zeroline=False, linecolor=font_color, fixedrange=True),
        uirevision="keep",
    )
    return fig


def _empty_figure(message, theme="light", height=360):
    muted = "#a9b0c4" if theme == "dark" else "#60646e"
    fig = go.Figure()
    fig.update_layout(
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        annotations=[
            dict(
                text=message,
                xref="paper",
                yref="paper",
                x=0.5,
                y=0.5,
                showarrow=False,
                font=dict(size=14, color=muted),
            )
        ],
    )
    return _base_fig_layout(fig, theme, height=height)


# -------------- Layout --------------------
def _level_dropdown(kind, code, value):
    return dcc.Dropdown(
        id={"type": kind, "code": code},
        options=MATURITY_LEVELS,
        value=value,
        clearable=False,
        className="level-select",
    )


def _scale_slider(kind, code, levels, value):
    return dcc.Slider(
        id={"type": kind, "code": code},
        min=0,
        max=2,
        step=1,
        value=value,
        marks={lv["value"]: lv["label"] for lv in levels},
    )


def build_question_cards(session):
    """
    Build one card per domain, each holding the rating controls for its questions.

    :param session: the `AssessmentSession` whose ratings seed the controls
    :return: a list of HTML Div elements, one per domain
    """
    groups = {}
    for q in QUESTIONS:
        groups.setdefault(q["domain"], []).append(q)
    cards = []
    for domain in DOMAINS:
        children = [
            html.H3(f"{domain['section']}: {domain['title']}", className="domain-title"),
            html.P(domain["subtitle"], className="domain-subtitle"),
        ]
        for q in groups.get(domain["id"], []):
            code = q["code"]
            r = session.rating(code)
            label, badge_class = gap_badge(r.current, r.target)
            children.append(
                html.Div(
                    [
                        html.Div(code, className="question-code"),
                        html.Div(q["question"], className="qtext"),
                        html.Div(q["description"], className="question-description"),
                        html.Div(
                            [
                                html.Div(
                                    [html.Label("Current Level"), _level_dropdown("current", code, r.current)],
                                    className="field",
                                ),
                                html.Div(
                                    [html.Label("Target Level"), _level_dropdown("target", code, r.target)],
                                    className="field",
                                ),
                                html.Span(
                                    label,
                                    id={"type": "gap-badge", "code": code},
                                    className=badge_class,
                                ),
                            ],
                            className="level-row",
                        ),
                        html.Label("Action Items"),
                        dcc.Textarea(
                            id={"type": "action_items", "code": code},
                            value=r.action_items,
                            placeholder="Enter specific action items to close the gap...",
                            className="actions-text",
                        ),
                        html.Div(
                            [
                                html.Div(
                                    [
                                        html.Label("Expected Benefit"),
                                        _scale_slider("benefit", code, BENEFIT_LEVELS, r.benefit),
                                    ],
                                    className="field",
                                ),
                                html.Div(
                                    [
                                        html.Label("Implementation Effort"),
                                        _scale_slider("effort", code, EFFORT_LEVELS, r.effort),
                                    ],
                                    className="field",
                                ),
                            ],
                            className="scale-row",
                        ),
                    ],
                    className="qrow question-card",
                )
            )
        cards.append(html.Div(children, className=f"domain-card d-{_slug(domain['title'])}"))
    return cards


def _graph(graph_id, height):
    return dcc.Graph(
        id=graph_id,
        style={"height": f"{height}px"},
        config={"responsive": False, "displaylogo": False, "scrollZoom": False},
    )


def _llm_settings():
    return html.Div(
        [
            html.Div(
                [
                    html.Div(
                        [
                            html.Label("LLM Provider"),
                            dcc.Dropdown(
                                id="llm-provider",
                                options=LLM_PROVIDERS,
                                value=DEFAULT_LLM_PROVIDER,
                                clearable=False,
                            ),
                        ],
                        className="field",
                    ),
                    html.Div(
                        [
                            html.Label("Model"),
                            dcc.Input(
                                id="llm-model",
                                value=DEFAULT_MODELS[DEFAULT_LLM_PROVIDER],
                                list="llm-model-options",
                                className="textin",
                            ),
                            html.Datalist(id="llm-model-options"),
                        ],
                        className="field",
                    ),
                    html.Div(
                        [
                            html.Label("Server URL"),
                            dcc.Input(
                                id="llm-url",
                                value=DEFAULT_BASE_URLS[DEFAULT_LLM_PROVIDER],
                                className="textin",
                            ),
                        ],
                        id="llm-url-field",
                        className="field",
                    ),
                    html.Div(
                        [
                            html.Label("OpenAI API Key"),
                            dcc.Input(
                                id="llm-key",
                                type="password",
                                placeholder=f"sk-... (or set {OPENAI_API_KEY_ENV} env var)",
                                className="textin",
                            ),
                        ],
                        id="llm-key-field",
                        className="field",
                        style={"display": "none"},
                    ),
                    html.Div(
                        dcc.Checklist(
                            id="llm-client",
                            options=[{"label": "Use client library", "value": "client"}],
                            value=["client"],
                        ),
                        id="llm-client-field",
                        className="field",
                        style={"display": "none"},
                    ),
                ],
                className="meta",
            ),
            html.Div(id="llm-status"),
            html.Div(
                [
                    html.Button(
                        "Generate AI Recommendations",
                        id="generate-llm",
                        n_clicks=0,
                        className="primary",
                    ),
                    html.Button(
                        "Test Connection", id="test-llm", n_clicks=0, className="secondary"
                    ),
                ],
                className="export-row",
            ),
            dcc.Loading(
                html.Div(
                    dcc.Markdown(
                        "Click 'Generate AI Recommendations' to get AI-powered insights "
                        "based on your assessment."
                    ),
                    id="llm-recommendations",
                    className="llm-output",
                )
            ),
        ],
        className="llm-panel",
    )


def build_layout():
    session = AssessmentSession.new()
    return html.Div(
        id="page-root",
        className="page theme-light",
        children=[
            dcc.Store(id="session-store", data=session.to_dict()),
            dcc.Store(id="theme-store", data="light"),
            # Header
            html.Div(
                [
                    html.H1("AI Governance Assessment"),
                    html.Div(
                        [
                            html.Div(id="sidebar-status", className="field status"),
                            html.Div(
                                [
                                    html.Label("Dark mode"),
                                    daq.BooleanSwitch(
                                        id="theme-switch",
                                        on=False,
                                        color="#4f46e5",
                                        className="theme-switch",
                                    ),
                                ],
                                className="field",
                            ),
                        ],
                        className="meta",
                    ),
                ],
                className="header",
            ),
            dcc.Tabs(
                id="tabs",
                value="tab-dashboard",
                children=[
                    dcc.Tab(
                        label="Dashboard",
                        value="tab-dashboard",
                        children=[
                            html.Div(id="kpis", className="kpis"),
                            html.Div(
                                [_graph("radar", RADAR_H), _graph("comparison", BAR_H)],
                                className="charts",
                            ),
                            html.Div(
                                [_graph("domain-gap", GAP_H), _graph("priority-pie", GAP_H)],
                                className="charts",
                            ),
                            html.H3("Top Priority Actions"),
                            html.Div(id="top-actions", className="actions"),
                        ],
                    ),
                    dcc.Tab(
                        label="Assessment",
                        value="tab-assess",
                        children=[
                            html.Div(build_question_cards(session), className="grid"),
                            html.Div(
                                [
                                    html.Button(
                                        "Save Progress",
                                        id="save-progress",
                                        n_clicks=0,
                                        className="secondary",
                                    ),
                                    html.Button(
                                        "Complete Assessment",
                                        id="complete-assessment",
                                        n_clicks=0,
                                        className="primary",
                                    ),
                                ],
                                className="export-row",
                            ),
                        ],
                    ),
                    dcc.Tab(
                        label="Gap Analysis",
                        value="tab-gaps",
                        children=[
                            _graph("gap-detail", DETAIL_H),
                            dash_table.DataTable(
                                id="gap-table",
                                columns=[
                                    {"name": "Code", "id": "code"},
                                    {"name": "Question", "id": "question"},
                                    {"name": "Domain", "id": "domain"},
                                    {"name": "Current", "id": "current"},
                                    {"name": "Target", "id": "target"},
                                    {"name": "Gap", "id": "gap"},
                                    {"name": "Priority", "id": "priority"},
                                    {"name": "Action Items", "id": "action_items"},
                                ],
                                page_size=15,
                                sort_action="native",
                                filter_action="native",
                                style_table={"overflowX": "auto"},
                                style_cell={"textAlign": "left", "whiteSpace": "normal"},
                                style_data_conditional=[
                                    {
                                        "if": {"filter_query": f'{{priority}} = "{p}"', "column_id": "priority"},
                                        "backgroundColor": color,
                                        "color": "black" if p == "Medium" else "white",
                                    }
                                    for p, color in PRIORITY_COLORS.items()
                                ],
                            ),
                        ],
                    ),
                    dcc.Tab(
                        label="Action Plan",
                        value="tab-actions",
                        children=[
                            html.Div(
                                [
                                    html.Div(
                                        [html.H3(f"{p} Priority"), html.Div(id=f"{p.lower()}-actions")],
                                        className=f"col priority-col priority-{p.lower()}",
                                    )
                                    for p in ("Critical", "High", "Medium")
                                ],
                                className="charts",
                            ),
                            html.H3("AI-Generated Recommendations"),
                            _llm_settings(),
                            html.H3("Benefit vs Effort Matrix"),
                            _graph("benefit-effort", MATRIX_H),
                        ],
                    ),
                    dcc.Tab(
                        label="Reports",
                        value="tab-reports",
                        children=[
                            html.Div(
                                [
                                    html.Button(label, id=f"dl-{kind}", n_clicks=0, className="secondary")
                                    for kind, label in (
                                        ("executive", "Download Executive Summary"),
                                        ("detailed", "Download Detailed Report"),
                                        ("action-plan", "Download Action Plan"),
                                        ("pdf", "Download PDF Briefing"),
                                        ("pptx", "Download PPTX Briefing"),
                                    )
                                ]
                                + [
                                    dcc.Download(id=f"dl-{kind}-out")
                                    for kind in ("executive", "detailed", "action-plan", "pdf", "pptx")
                                ],
                                className="export-row",
                            ),
                            html.H3("Assessment History"),
                            dash_table.DataTable(
                                id="history-table",
                                columns=[
                                    {"name": "Cycle", "id": "cycle"},
                                    {"name": "Date", "id": "date"},
                                    {"name": "Overall Score", "id": "overall_score"},
                                    {"name": "Target Score", "id": "target_score"},
                                    {"name": "Critical Gaps", "id": "critical_gaps"},
                                ],
                                page_size=10,
                            ),
                            html.Button(
                                "Start New Assessment Cycle",
                                id="new-cycle",
                                n_clicks=0,
                                className="primary",
                            ),
                        ],
                    ),
                ],
            ),
        ],
    )


app.layout = build_layout


# ---------- Figures (fixed sizes, consistent) ------------------
def radar_figure(summary, theme="light"):
    """
    Return a radar figure of current vs target maturity per domain.

    Args:
        summary (pd.DataFrame): domain summary from `scoring.aggregate`
        theme (str, optional): light or dark. Defaults to "light".

    Returns:
        go.Figure: radar figure
    """
    cats = list(summary["domain"])
    cur = list(summary["avg_current"])
    tgt = list(summary["avg_target"])
    grid_color = "#334155" if theme == "dark" else "#CBD5E1"

    fig = go.Figure()
    fig.add_trace(
        go.Scatterpolar(
            r=cur + cur[:1],
            theta=cats + cats[:1],
            fill="toself",
            name="Current State",
            fillcolor="rgba(60, 141, 188, 0.3)",
            line=dict(color="#3c8dbc", width=2),
            marker=dict(size=6),
        )
    )
    fig.add_trace(
        go.Scatterpolar(
            r=tgt + tgt[:1],
            theta=cats + cats[:1],
            fill="toself",
            name="Target State",
            fillcolor="rgba(40, 167, 69, 0.2)",
            line=dict(color="#28a745", width=2, dash="dash"),
            marker=dict(size=6),
        )
    )
    fig.update_layout(
        polar=dict(
            radialaxis=dict(
                range=[0, 4],
                autorange=False,
                tickvals=[0, 1, 2, 3, 4],
                gridcolor=grid_color,
            ),
            angularaxis=dict(gridcolor=grid_color),
        ),
        showlegend=True,
        legend=dict(orientation="h", y=-0.1),
    )
    return _base_fig_layout(fig, theme, height=RADAR_H)


def comparison_figure(summary, theme="light"):
    """Grouped horizontal bars of current vs target maturity per domain."""
    fig = go.Figure()
    fig.add_trace(
        go.Bar(y=summary["domain"], x=summary["avg_current"], name="Current",
               orientation="h", marker_color="#3c8dbc")
    )
    fig.add_trace(
        go.Bar(y=summary["domain"], x=summary["avg_target"], name="Target",
               orientation="h", marker_color="#28a745")
    )
    fig = _base_fig_layout(fig, theme, height=BAR_H)
    fig.update_layout(
        barmode="group",
        xaxis=dict(title="Maturity Level", range=[0, 4.5]),
        yaxis=dict(categoryorder="array", categoryarray=list(summary["domain"])[::-1]),
        legend=dict(orientation="h", y=-0.15),
        margin=dict(l=180),
    )
    return fig


def domain_gap_figure(summary, theme="light"):
    """Average gap per domain, largest first; red from 2, amber from 1."""
    df = summary.sort_values("avg_gap", ascending=False, kind="stable")
    bar_colors = [
        "#dc3545" if g >= 2 else "#ffc107" if g >= 1 else "#28a745" for g in df["avg_gap"]
    ]
    fig = go.Figure(go.Bar(x=df["domain"], y=df["avg_gap"], marker_color=bar_colors))
    fig = _base_fig_layout(fig, theme, height=GAP_H)
    fig.update_layout(
        xaxis=dict(tickangle=-45),
        yaxis=dict(title="Average Gap (Target - Current)", range=[0, max(df["avg_gap"].max(), 0.1) * 1.2]),
        margin=dict(b=100),
    )
    return fig


def priority_figure(counts, theme="light"):
    """Pie of questions per priority tier (empty tiers left out)."""
    df = counts[counts["count"] > 0]
    fig = go.Figure(
        go.Pie(
            labels=df["priority"],
            values=df["count"],
            marker=dict(colors=[PRIORITY_COLORS[p] for p in df["priority"]]),
            textinfo="label+value",
            textposition="inside",
            sort=False,
        )
    )
    fig.update_layout(showlegend=False)
    return _base_fig_layout(fig, theme, height=GAP_H)


def gap_detail_figure(scored, theme="light"):
    """One horizontal bar per question, colored by priority, largest gap on top."""
    df = scored.sort_values("gap", ascending=False, kind="stable")
    fig = go.Figure(
        go.Bar(
            y=df["code"],
            x=df["gap"],
            orientation="h",
            marker_color=[PRIORITY_COLORS[p] for p in df["priority"]],
            text=[f"Current: {c} | Target: {t}" for c, t in zip(df["current"], df["target"])],
            hoverinfo="text+x",
        )
    )
    fig = _base_fig_layout(fig, theme, height=DETAIL_H)
    fig.update_layout(
        xaxis=dict(title="Gap (Target - Current)"),
        yaxis=dict(categoryorder="array", categoryarray=list(df["code"])[::-1]),
        margin=dict(l=80),
    )
    return fig


def benefit_effort_figure(scored, theme="light"):
    """
    Scatter of open gaps on the benefit/effort grid.

    Marker size grows with the gap. The top-right quadrant (high benefit,
    low effort) is shaded as "Quick Wins", the top-left as "Strategic".
    """
    df = scored[scored["gap"] > 0]
    if df.empty:
        return _empty_figure("No gaps to display", theme, height=MATRIX_H)

    fig = go.Figure(
        go.Scatter(
            x=df["effort"],
            y=df["benefit"],
            mode="markers+text",
            text=df["code"],
            textposition="top center",
            hovertext=[f"{c}<br>{q}<br>Gap: {g}" for c, q, g in zip(df["code"], df["question"], df["gap"])],
            hoverinfo="text",
            marker=dict(
                size=df["gap"] * 10 + 10,
                color=[PRIORITY_COLORS[p] for p in df["priority"]],
                opacity=0.7,
                line=dict(color="white", width=1),
            ),
        )
    )
    fig = _base_fig_layout(fig, theme, height=MATRIX_H)
    fig.update_layout(
        xaxis=dict(
            title="Implementation Effort",
            tickvals=[0, 1, 2],
            ticktext=["High Effort", "Medium", "Low Effort"],
            range=[-0.5, 2.5],
        ),
        yaxis=dict(
            title="Expected Benefit",
            tickvals=[0, 1, 2],
            ticktext=["Low Benefit", "Medium", "High Benefit"],
            range=[-0.5, 2.5],
        ),
        shapes=[
            dict(type="rect", x0=1.5, x1=2.5, y0=1.5, y1=2.5,
                 fillcolor="rgba(40, 167, 69, 0.1)", line=dict(width=0)),
            dict(type="rect", x0=-0.5, x1=1.5, y0=1.5, y1=2.5,
                 fillcolor="rgba(23, 162, 184, 0.1)", line=dict(width=0)),
        ],
        annotations=[
            dict(x=2, y=2.3, text="Quick Wins", showarrow=False, font=dict(color="#28a745", size=12)),
            dict(x=0.5, y=2.3, text="Strategic", showarrow=False, font=dict(color="#17a2b8", size=12)),
        ],
    )
    return fig


def action_items_list(items, empty_text):
    """Render priority items as cards; `empty_text` when there are none."""
    if items.empty:
        return html.P(empty_text)
    cards = []
    for r in items.to_dict(orient="records"):
        children = [
            html.Strong(r["code"]),
            " - ",
            r["question"],
            html.Br(),
            html.Small(f"Current: {r['current']}  Target: {r['target']} | Gap: {r['gap']}"),
        ]
        if r["action_items"]:
            children.append(html.Div(r["action_items"], className="action-note"))
        cards.append(html.Div(children, className=f"priority-item priority-{r['priority'].lower()}"))
    return cards


# -------- Callbacks ------------------
@app.callback(
    Output("session-store", "data"),
    Input({"type": "current", "code": ALL}, "value"),
    Input({"type": "target", "code": ALL}, "value"),
    Input({"type": "action_items", "code": ALL}, "value"),
    Input({"type": "benefit", "code": ALL}, "value"),
    Input({"type": "effort", "code": ALL}, "value"),
    Input("save-progress", "n_clicks"),
    Input("new-cycle", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def update_session(*args):
    """
    Single writer for the session store.

    Every rating control and the two session buttons feed this callback; only
    the control that fired is applied, one field at a time.
    """
    data = args[-1]
    value = ctx.triggered[0]["value"] if ctx.triggered else None
    return apply_session_event(data, ctx.triggered_id, value)


@app.callback(
    Output({"type": "gap-badge", "code": MATCH}, "children"),
    Output({"type": "gap-badge", "code": MATCH}, "className"),
    Input({"type": "current", "code": MATCH}, "value"),
    Input({"type": "target", "code": MATCH}, "value"),
    prevent_initial_call=True,
)
def update_gap_badge(current, target):
    return gap_badge(current, target)


@app.callback(
    Output("kpis", "children"),
    Output("sidebar-status", "children"),
    Output("radar", "figure"),
    Output("comparison", "figure"),
    Output("domain-gap", "figure"),
    Output("priority-pie", "figure"),
    Output("top-actions", "children"),
    Output("gap-detail", "figure"),
    Output("gap-table", "data"),
    Output("critical-actions", "children"),
    Output("high-actions", "children"),
    Output("medium-actions", "children"),
    Output("benefit-effort", "figure"),
    Output("history-table", "data"),
    Input("session-store", "data"),
    Input("theme-store", "data"),
)
def update_results(data, theme):
    """
    Recompute every derived view from the current ratings.

    Args:
        data (dict): the serialized `AssessmentSession` in "session-store".
        theme (str): the theme name ("light" or "dark"), as stored in "theme-store".

    Returns:
        tuple: KPI cards, status, dashboard figures, top actions, gap chart and table,
            the three action-plan columns, benefit/effort matrix and history rows.
    """
    session = AssessmentSession.from_dict(data)
    ratings = session.ratings_frame()
    scored = score_ratings(ratings)
    summary = aggregate(ratings)
    headline = overall_summary(ratings)

    last_saved = session.last_saved.strftime("%Y-%m-%d %H:%M") if session.last_saved else "Not yet saved"
    kpis = [
        ("Overall Maturity Score", f"{headline['overall']:.1f}", "Target: 4.0 | Max: 4.0"),
        ("Questions Assessed", str(headline["questions"]), f"{len(QUESTIONS)} total"),
        ("Critical/High Gaps", str(headline["critical_high"]), "Requiring immediate attention"),
        ("Assessment Cycle", f"#{session.cycle_number}", last_saved),
    ]
    kpi_children = [
        html.Div(
            [
                html.Div(title, className="kpi-title"),
                html.Div(value, className="kpi-value"),
                html.Small(note),
            ],
            className="kpi",
        )
        for title, value, note in kpis
    ]
    status = [
        html.Small("Overall Progress"),
        html.Div(
            html.Div(
                f"{headline['progress_pct']:.0f}%",
                className="progress-bar",
                style={"width": f"{headline['progress_pct']:.0f}%"},
            ),
            className="progress",
        ),
        html.Small(f"Current: {headline['overall']:.1f} | Target: {headline['target']:.1f}"),
    ]

    top = top_gap_items(ratings, DASHBOARD_TOP_ACTIONS)
    table = scored.sort_values("gap", ascending=False, kind="stable")[
        ["code", "question", "domain", "current", "target", "gap", "priority", "action_items"]
    ]
    columns = [
        action_items_list(items_with_priority(ratings, p), f"No {p.lower()} priority items.")
        for p in ("Critical", "High", "Medium")
    ]

    return (
        kpi_children,
        status,
        radar_figure(summary, theme),
        comparison_figure(summary, theme),
        domain_gap_figure(summary, theme),
        priority_figure(priority_counts(ratings), theme),
        action_items_list(top, "No open gaps. Great job!"),
        gap_detail_figure(scored, theme),
        table.to_dict(orient="records"),
        *columns,
        benefit_effort_figure(scored, theme),
        session.history_frame().to_dict(orient="records"),
    )


@app.callback(
    Output("llm-model", "value"),
    Output("llm-model-options", "children"),
    Output("llm-url", "value"),
    Output("llm-url-field", "style"),
    Output("llm-key-field", "style"),
    Output("llm-client-field", "style"),
    Input("llm-provider", "value"),
)
def on_provider_change(provider):
    """Reset model/URL to the provider defaults and show only the relevant fields."""
    provider = Provider(provider or DEFAULT_LLM_PROVIDER)
    models = {Provider.OLLAMA: OLLAMA_MODELS, Provider.OPENAI: OPENAI_MODELS}.get(provider, [])
    shown, hidden = {}, {"display": "none"}
    return (
        DEFAULT_MODELS[provider.value],
        [html.Option(value=m) for m in models],
        DEFAULT_BASE_URLS[provider.value],
        hidden if provider is Provider.OPENAI else shown,
        shown if provider is Provider.OPENAI else hidden,
        shown if provider is Provider.OLLAMA else hidden,
    )


@app.callback(
    Output("llm-recommendations", "children"),
    Output("llm-status", "children"),
    Input("generate-llm", "n_clicks"),
    Input("test-llm", "n_clicks"),
    Input("llm-provider", "value"),
    State("llm-model", "value"),
    State("llm-url", "value"),
    State("llm-key", "value"),
    State("llm-client", "value"),
    State("session-store", "data"),
)
def run_llm(_gen, _test, provider, model, url, key, use_client, data):
    """
    Generate recommendations or test the connection, depending on the button.

    A provider change (and the initial render) only refreshes the status hint.
    The request blocks this callback for up to the LLM timeout; other
    callbacks keep running.
    """
    config = provider_config_from_inputs(provider, model, url, key, use_client)
    trigger = ctx.triggered_id

    if trigger == "test-llm":
        result = check_connection(config)
        if result.success:
            return dash.no_update, status_alert(f"Connected to {config.effective_model}", ok=True)
        return dash.no_update, status_alert(result.message, error=True)

    if trigger == "generate-llm":
        ratings = AssessmentSession.from_dict(data).ratings_frame()
        result = generate_recommendations(ratings, config)
        if result.success:
            return (
                dcc.Markdown(result.content),
                status_alert(f"Connected to {config.effective_model}", ok=True),
            )
        if result.error is None:
            return dash.no_update, status_alert(result.message)
        return dash.no_update, status_alert(result.message, error=True)

    return dash.no_update, status_alert(provider_change_hint(provider))


# Exports
def _download(data, writer, kind):
    session = AssessmentSession.from_dict(data)
    return dcc.send_bytes(lambda b: writer(b, session), export_filename(kind))


@app.callback(
    Output("dl-executive-out", "data"),
    Input("dl-executive", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def download_executive_summary(_, data):
    return _download(data, write_executive_summary, "executive")


@app.callback(
    Output("dl-detailed-out", "data"),
    Input("dl-detailed", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def download_detailed_report(_, data):
    return _download(data, write_detailed_report, "detailed")


@app.callback(
    Output("dl-action-plan-out", "data"),
    Input("dl-action-plan", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def download_action_plan(_, data):
    return _download(data, write_action_plan, "action_plan")


@app.callback(
    Output("dl-pdf-out", "data"),
    Input("dl-pdf", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def download_pdf(_, data):
    return _download(data, write_pdf_summary, "pdf")


@app.callback(
    Output("dl-pptx-out", "data"),
    Input("dl-pptx", "n_clicks"),
    State("session-store", "data"),
    prevent_initial_call=True,
)
def download_pptx(_, data):
    return _download(data, write_pptx_summary, "pptx")


# UX: switch to the dashboard after completing the assessment
@app.callback(
    Output("tabs", "value"),
    Input("complete-assessment", "n_clicks"),
    prevent_initial_call=True,
)
def switch_to_dashboard(n):
    """
    Switch the app to the "Dashboard" tab after completing the assessment.

    Raises:
        dash.exceptions.PreventUpdate: If the button has not been clicked.
    """
    if n:
        return "tab-dashboard"
    raise dash.exceptions.PreventUpdate


# Theme toggle -> update page class and store
@app.callback(
    Output("page-root", "className"),
    Output("theme-store", "data"),
    Input("theme-switch", "on"),
)
def apply_theme(is_on):
    """
    Toggle the page theme class and store the current theme value.

    Args:
        is_on (bool): The on/off state of the theme switch.

    Returns:
        tuple: A pair of (page class name, theme name).
    """
    theme = "dark" if is_on else "light"
    return f"page theme-{theme}", theme


# ---------- Main -------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    app.run(debug=False)
