# app.py

import logging
from dataclasses import asdict

import dash
import dash_daq as daq
import numpy as np
import plotly.graph_objects as go
from dash import ALL, Input, Output, State, dcc, html

from config import (DOMAINS, LANGUAGES, MATURITY_LEVELS, MATURITY_OPTIONS,
                    MAX_LEVEL, PRIORITY_COLORS, QUESTIONS, SUBDOMAINS,
                    TARGET_LEVEL, TIER_COLORS, TREND_CHECKPOINTS)
from models import AnswerRecord, AuditInfo
from report import compute_report, responses_csv, write_pdf_bytes
from scoring import audit_progress, build_answer_records, project

logger = logging.getLogger(__name__)

app = dash.Dash(__name__, suppress_callback_exceptions=True)
app.title = "COBIT 2019 Maturity Assessment"
server = app.server


# ----------- Helpers -------------
def _slug(s: str):
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in s).strip("-")


def collect_answers(qbank, values, notes):
    """
    Pair question-bank entries with the form values.

    Questions left unanswered (value None) are skipped, not defaulted, so
    they never pull a domain average up or down.

    :param qbank: list of question dicts, in form order
    :param values: list of selected maturity levels, aligned with qbank
    :param notes: list of free-text notes, aligned with qbank
    :return: list of answer dicts ready for ``build_answer_records``
    """
    qbank = qbank or []
    values = values or []
    notes = notes or []
    answers = []
    for i, q in enumerate(qbank):
        v = values[i] if i < len(values) else None
        if v is None:
            continue
        answers.append(
            {
                "question_id": q["id"],
                "maturity_level": v,
                "notes": (notes[i] if i < len(notes) else None) or None,
            }
        )
    return answers


def _records_from_store(data):
    return [AnswerRecord.from_dict(r) for r in (data or {}).get("records", [])]


def _info_from_store(data):
    return AuditInfo(**(data or {}).get("info", {}))


# for chart sizes
BAR_H = 360
HEAT_H = 220
TREND_H = 360


def _base_fig_layout(fig, theme="light", height=360):
    """
    Apply a consistent layout to a figure.

    :param fig: a figure to update
    :param theme: a string, either "light" or "dark"
    :param height: the height of the figure in pixels
    :return: the updated figure
    """
    font_color = "#f6f7fb" if theme == "dark" else "#0b1020"
    grid_color = "#334155" if theme == "dark" else "#CBD5E1"
    axis = dict(
        showgrid=True,
        gridcolor=grid_color,
        zeroline=False,
        linecolor=font_color,
        ticks="outside",
        fixedrange=True,
    )
    fig.update_layout(
        autosize=False,
        height=height,
        margin=dict(l=30, r=30, t=30, b=30),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=font_color),
        xaxis=axis,
        yaxis=axis,
        uirevision="keep",
    )
    return fig


# -------------- Layout --------------------
def form_questions(questions):
    """
    Order questions the way the form renders them: grouped by domain, domains
    in ``DOMAINS`` order, unknown domains last.

    The pattern-matching radio values arrive in this order, so the question
    store must hold the same list.
    """
    rank = {d: i for i, d in enumerate(DOMAINS)}
    return sorted(questions, key=lambda q: rank.get(q["domain_id"], len(rank)))


FORM_QUESTIONS = form_questions(QUESTIONS)


def build_question_cards(questions=None):
    """
    Build one card per COBIT domain, each with its questions, a 0-5 maturity
    selector and a notes field.
    """
    groups = {d: [] for d in DOMAINS}
    for q in form_questions(FORM_QUESTIONS if questions is None else questions):
        groups.setdefault(q["domain_id"], []).append(q)
    cards = []
    for domain_id, qlist in groups.items():
        domain_name = DOMAINS.get(domain_id, domain_id)
        children = [html.H3(f"{domain_id} • {domain_name}", className="domain-title")]
        for q in qlist:
            children.append(
                html.Div(
                    [
                        html.Div(
                            f"{q['subdomain_id']} • {SUBDOMAINS.get(q['subdomain_id'], '')}",
                            className="qsub",
                        ),
                        html.Div(q["text"], className="qtext"),
                        dcc.RadioItems(
                            id={"type": "q-input", "qid": q["id"]},
                            options=MATURITY_OPTIONS,
                            value=None,
                            className="likert",
                        ),
                        dcc.Input(
                            id={"type": "q-notes", "qid": q["id"]},
                            placeholder="Notes / evidence",
                            className="textin notes",
                        ),
                    ],
                    className="qrow",
                )
            )
        cards.append(html.Div(children, className=f"domain-card d-{_slug(domain_id)}"))
    return cards


def build_scale_reference():
    return html.Details(
        [
            html.Summary("Tingkat Kematangan COBIT 2019 / Maturity Levels"),
            html.Ul(
                [
                    html.Li(f"{lvl} • {info['name']}: {info['id']} / {info['en']}")
                    for lvl, info in MATURITY_LEVELS.items()
                ]
            ),
        ],
        className="scale-info",
    )


def _field(label, component):
    return html.Div([html.Label(label), component], className="field")


def _graph(gid, height):
    return dcc.Graph(
        id=gid,
        style={"height": f"{height}px"},
        config={"responsive": False, "displaylogo": False, "scrollZoom": False},
    )


app.layout = html.Div(
    id="page-root",
    className="page theme-light",
    children=[
        dcc.Store(id="responses-store"),
        dcc.Store(id="questions-store", data=FORM_QUESTIONS),
        dcc.Store(id="theme-store", data="light"),
        # Header
        html.Div(
            [
                html.H1("COBIT 2019 IT Governance Self-Assessment"),
                html.Div(
                    [
                        _field("Organization", dcc.Input(id="org-name", placeholder="e.g., PT Contoh", className="textin")),
                        _field("Audit title", dcc.Input(id="audit-title", className="textin")),
                        _field("Audit date", dcc.Input(id="audit-date", placeholder="YYYY-MM-DD", className="textin")),
                        _field("Scope", dcc.Input(id="audit-scope", className="textin")),
                        _field("Auditor", dcc.Input(id="auditor", placeholder="Your name", className="textin")),
                        _field(
                            "Dark mode",
                            daq.BooleanSwitch(id="theme-switch", on=False, color="#4f46e5", className="theme-switch"),
                        ),
                        _field(
                            "Language",
                            dcc.RadioItems(
                                id="language",
                                options=[{"label": lang.upper(), "value": lang} for lang in LANGUAGES],
                                value=LANGUAGES[0],
                                inline=True,
                            ),
                        ),
                    ],
                    className="meta",
                ),
            ],
            className="header",
        ),
        dcc.Tabs(
            id="tabs",
            value="tab-assess",
            children=[
                dcc.Tab(
                    label="Assessment",
                    value="tab-assess",
                    children=[
                        build_scale_reference(),
                        html.Div(id="progress", className="progress"),
                        html.Div(build_question_cards(), className="grid"),
                        html.Button("Compute Scores", id="submit-assessment", n_clicks=0, className="primary"),
                    ],
                ),
                dcc.Tab(
                    label="Results & Insights",
                    value="tab-results",
                    children=[
                        html.Div(id="kpis", className="kpis"),
                        html.Div(
                            [
                                html.Button("Download CSV", id="dl-csv", n_clicks=0, className="secondary"),
                                dcc.Download(id="dl-csv-out"),
                                html.Button("Download PDF", id="dl-pdf", n_clicks=0, className="secondary"),
                                dcc.Download(id="dl-pdf-out"),
                            ],
                            className="export-row",
                        ),
                        html.Div(id="summary-text", className="summary"),
                        html.Div([_graph("bar", BAR_H), _graph("trend", TREND_H)], className="charts"),
                        html.Div(
                            className="row-heat-actions",
                            children=[
                                html.Div(
                                    [html.H3("Prioritization Heat Map"), _graph("heatmap", HEAT_H)],
                                    className="col heatmap-col",
                                ),
                                html.Div(
                                    [html.H3("Recommendations"), html.Ul(id="actions-list", className="actions")],
                                    className="col recs-col",
                                ),
                            ],
                        ),
                    ],
                ),
            ],
        ),
    ],
)


# ---------- Figures (fixed sizes, consistent) ------------------
def bar_figure(domains, theme="light"):
    """
    Current vs target maturity per domain.

    Args:
        domains (list[DomainMaturity]): aggregated domains
        theme (str, optional): light or dark. Defaults to "light".
    """
    ids = [d.domain_id for d in domains]
    fig = go.Figure(
        [
            go.Bar(name="Current", x=ids, y=[d.current_level for d in domains]),
            go.Bar(name="Target", x=ids, y=[d.target_level for d in domains], opacity=0.35),
        ]
    )
    fig.update_layout(barmode="group")
    _base_fig_layout(fig, theme, height=BAR_H)
    fig.update_yaxes(range=[0, MAX_LEVEL], tick0=0, dtick=1)
    return fig


def heatmap_figure(rows, theme="light"):
    """
    One-row heat map of gaps (from ``scoring.priority_map``), colored by tier.

    With no rows the figure shows an empty-state note instead.
    """
    muted = "#a9b0c4" if theme == "dark" else "#60646e"
    if not rows:
        fig = go.Figure(go.Heatmap(z=np.zeros((1, 1)), showscale=False, colorscale=[[0, "#d8dde9"], [1, "#d8dde9"]]))
        fig.update_layout(
            annotations=[
                dict(
                    text="No answers yet",
                    xref="paper",
                    yref="paper",
                    x=0.5,
                    y=0.5,
                    showarrow=False,
                    font=dict(size=14, color=muted),
                )
            ]
        )
        return _base_fig_layout(fig, theme, height=HEAT_H)

    z = np.array([[r["gap"] for r in rows]], dtype=float)
    fig = go.Figure(
        go.Heatmap(
            z=z,
            x=[r["domain_id"] for r in rows],
            y=["Gap"],
            zmin=0,
            zmax=TARGET_LEVEL,
            colorscale=[
                [0.0, TIER_COLORS["Low"]["hex"]],
                [0.4, TIER_COLORS["Medium"]["hex"]],
                [0.6, TIER_COLORS["High"]["hex"]],
                [1.0, TIER_COLORS["Critical"]["hex"]],
            ],
            text=[[f"{r['gap']:.2f}<br>{r['tier']}" for r in rows]],
            texttemplate="%{text}",
            hovertemplate="Domain: %{x}<br>Gap: %{z:.2f}<extra></extra>",
            xgap=2,
        )
    )
    return _base_fig_layout(fig, theme, height=HEAT_H)


def trend_figure(domains, theme="light"):
    """Illustrative improvement path per domain."""
    fig = go.Figure(
        [
            go.Scatter(x=TREND_CHECKPOINTS, y=project(d), mode="lines+markers", name=d.domain_id)
            for d in domains
        ]
    )
    fig.update_layout(title=dict(text="Illustrative trend (not a forecast)", font=dict(size=12)))
    _base_fig_layout(fig, theme, height=TREND_H)
    fig.update_yaxes(range=[0, MAX_LEVEL], tick0=0, dtick=1)
    return fig


# -------- Callbacks ------------------
@app.callback(
    Output("progress", "children"),
    Input({"type": "q-input", "qid": ALL}, "value"),
)
def update_progress(values):
    answered = sum(v is not None for v in values or [])
    pct = audit_progress(answered, len(FORM_QUESTIONS))
    return f"Progress: {answered}/{len(FORM_QUESTIONS)} ({pct}%)"


@app.callback(
    Output("responses-store", "data"),
    Input("submit-assessment", "n_clicks"),
    State("questions-store", "data"),
    State("org-name", "value"),
    State("audit-title", "value"),
    State("audit-date", "value"),
    State("audit-scope", "value"),
    State("auditor", "value"),
    State({"type": "q-input", "qid": ALL}, "value"),
    State({"type": "q-notes", "qid": ALL}, "value"),
    prevent_initial_call=True,
)
def on_submit(_, qbank, org, title, audit_date, scope, auditor, values, notes):
    """
    Snapshot the answered questions and audit metadata into the store.

    Scores are recomputed from this snapshot, so later edits to the form do
    not change a report until the assessment is submitted again.
    """
    records = build_answer_records(collect_answers(qbank, values, notes), qbank or [])
    info = AuditInfo(
        organization=org or "",
        audit_date=audit_date or "",
        title=title or "",
        scope=scope or "",
        auditor=auditor or "",
    )
    logger.info("Assessment submitted: %d answers for %r", len(records), info.organization)
    return {"info": asdict(info), "records": [r.to_dict() for r in records]}


@app.callback(
    Output("kpis", "children"),
    Output("summary-text", "children"),
    Output("bar", "figure"),
    Output("trend", "figure"),
    Output("heatmap", "figure"),
    Output("actions-list", "children"),
    Input("responses-store", "data"),
    Input("theme-store", "data"),
    Input("language", "value"),
    prevent_initial_call=True,
)
def update_results(data, theme, language):
    """
    Refresh KPIs, narrative, charts and recommendations from the stored answers.
    """
    if not data:
        raise dash.exceptions.PreventUpdate
    result = compute_report(_records_from_store(data))
    summary = result["summary"]
    domains = result["domains"]

    kpi_children = [
        html.Div(
            [
                html.Div("Overall Maturity", className="kpi-title"),
                html.Div(f"{summary.overall_average:.2f} / {TARGET_LEVEL}", className="kpi-value"),
            ],
            className="kpi",
        ),
        html.Div(
            [
                html.Div("Average Gap", className="kpi-title"),
                html.Div(f"{summary.average_gap:.2f}", className="kpi-value"),
            ],
            className="kpi",
        ),
    ]
    for d in domains:
        kpi_children.append(
            html.Div(
                [
                    html.Div(d.domain_id, className="kpi-title"),
                    html.Div(f"{d.current_level:.2f}", className="kpi-value"),
                ],
                className="kpi",
            )
        )
    return (
        kpi_children,
        summary.narrative(language or LANGUAGES[0]),
        bar_figure(domains, theme),
        trend_figure(domains, theme),
        heatmap_figure(result["priority_map"], theme),
        [
            html.Li(
                [
                    html.Span(r.priority, style={"color": PRIORITY_COLORS[r.priority]}, className="prio"),
                    f" [{r.domain_id}] {r.description} {r.impact}",
                ]
            )
            for r in result["recommendations"]
        ],
    )


# Exports
@app.callback(
    Output("dl-csv-out", "data"),
    Input("dl-csv", "n_clicks"),
    State("responses-store", "data"),
    prevent_initial_call=True,
)
def download_csv(_, data):
    if not data:
        raise dash.exceptions.PreventUpdate
    return dcc.send_string(responses_csv(_records_from_store(data)), "cobit_assessment_responses.csv")


@app.callback(
    Output("dl-pdf-out", "data"),
    Input("dl-pdf", "n_clicks"),
    State("responses-store", "data"),
    prevent_initial_call=True,
)
def download_pdf(_, data):
    """
    Download the full assessment report as a PDF file.
    """
    if not data:
        raise dash.exceptions.PreventUpdate
    records = _records_from_store(data)
    info = _info_from_store(data)
    return dcc.send_bytes(lambda b: write_pdf_bytes(b, records, info), info.report_filename)


# UX: switch to results after computing
@app.callback(
    Output("tabs", "value"),
    Input("submit-assessment", "n_clicks"),
    prevent_initial_call=True,
)
def switch_to_results(n):
    if n:
        return "tab-results"
    raise dash.exceptions.PreventUpdate


# Theme toggle -> update page class and store
@app.callback(
    Output("page-root", "className"),
    Output("theme-store", "data"),
    Input("theme-switch", "on"),
)
def apply_theme(is_on):
    theme = "dark" if is_on else "light"
    return f"page theme-{theme}", theme


# ---------- Main -------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(debug=False)
