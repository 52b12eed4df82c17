# report.py
"""
Report assembly: CSV export and the multi-section PDF.

All numbers come from ``scoring``; this module only lays them out.
"""

import datetime
import logging
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import (PageBreak, Paragraph, SimpleDocTemplate,
                                Spacer, Table, TableStyle)

from config import (GAP_TIERS, MATURITY_LEVELS, PRIORITY_COLORS,
                    TIER_ACTIONS, TIER_COLORS, TREND_CHECKPOINTS)
from models import AuditInfo
from scoring import (aggregate, classify, compute_gap, gap_analysis_lines,
                     group_detailed_results, priority_map, recommend,
                     summarize, trend_table)

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "domain_id",
    "domain_name",
    "subdomain_id",
    "subdomain_name",
    "question_text",
    "maturity_level",
    "notes",
]

HEADER_BG = colors.HexColor("#505050")
AVAIL_W = A4[0] - 72


def compute_report(records):
    """
    Run the scoring pipeline once and collect everything the report needs.

    :param records: list of AnswerRecord
    :return: dict with domains, gaps, priority_map, recommendations, trend,
        summary and detailed results
    """
    domains = aggregate(records)
    return {
        "domains": domains,
        "gaps": [classify(d) for d in domains],
        "priority_map": priority_map(domains),
        "recommendations": recommend(domains),
        "trend": trend_table(domains),
        "summary": summarize(domains),
        "detailed": group_detailed_results(records),
    }


def responses_csv(records):
    """One row per answer, in the order given."""
    df = pd.DataFrame([r.to_dict() for r in records], columns=CSV_COLUMNS)
    return df.to_csv(index=False)


# ---------- PDF ------------------
class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Page i of n" and the generation date on every page."""

    generated_on = ""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total):
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.HexColor("#646464"))
        mid = A4[0] / 2
        self.drawCentredString(mid, 22, f"Page {self._pageNumber} of {total}")
        self.drawCentredString(
            mid,
            12,
            f"COBIT 2019 Assessment Report - Generated on {self.generated_on}",
        )


def _table(data, col_widths, extra_styles=()):
    tbl = Table(data, colWidths=col_widths, hAlign="LEFT", repeatRows=1)
    tbl.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                ("TOPPADDING", (0, 0), (-1, 0), 6),
                *extra_styles,
            ]
        )
    )
    return tbl


def _p(text, style):
    return Paragraph(escape(str(text)), style)


def _heading(text, styles):
    return [Paragraph(f"<b>{escape(text)}</b>", styles["Heading2"]), Spacer(1, 6)]


def _metadata_section(info, styles):
    return [
        Paragraph("<b>COBIT 2019 Audit Report</b>", styles["Title"]),
        Spacer(1, 8),
        _p(f"Organization: {info.organization}", styles["Normal"]),
        _p(f"Audit Date: {info.audit_date}", styles["Normal"]),
        _p(f"Title: {info.title}", styles["Normal"]),
        _p(f"Scope: {info.scope or 'Not specified'}", styles["Normal"]),
        _p(f"Auditor: {info.auditor}", styles["Normal"]),
        Spacer(1, 12),
    ]


def _summary_section(summary, styles):
    story = _heading("Executive Summary", styles)
    for block in summary.narrative_text.split("\n\n"):
        story += [_p(block, styles["Normal"]), Spacer(1, 6)]
    return story


def _maturity_section(domains, styles):
    data = [["Domain", "Domain Name", "Current Level", "Target Level", "Gap"]]
    for d in domains:
        data.append(
            [
                d.domain_id,
                _p(d.domain_name, styles["Normal"]),
                f"{d.current_level:.2f}",
                str(d.target_level),
                f"{compute_gap(d):.2f}",
            ]
        )
    return _heading("Maturity Assessment Results", styles) + [
        _table(data, [50, 215, 90, 90, AVAIL_W - 445], [("ALIGN", (2, 1), (-1, -1), "CENTER")]),
        Spacer(1, 12),
    ]


def _tier_cell_styles(rows, col):
    out = []
    for i, tier in enumerate(rows, start=1):
        out.append(("BACKGROUND", (col, i), (col, i), colors.HexColor(TIER_COLORS[tier]["hex"])))
    return out


def _gap_section(domains, gaps, styles):
    data = [["Domain", "Domain Name", "Current", "Target", "Gap", "Priority"]]
    for d, g in zip(domains, gaps):
        data.append(
            [
                d.domain_id,
                _p(d.domain_name, styles["Normal"]),
                f"{d.current_level:.2f}",
                str(d.target_level),
                f"{g.gap:.2f}",
                g.tier,
            ]
        )
    story = _heading("Gap Analysis", styles)
    story += [
        _table(
            data,
            [50, 185, 65, 65, 65, AVAIL_W - 430],
            [("ALIGN", (2, 1), (-1, -1), "CENTER"), *_tier_cell_styles([g.tier for g in gaps], 5)],
        ),
        Spacer(1, 10),
        Paragraph("<b>Gap Analysis Summary</b>", styles["Heading3"]),
    ]
    story += [_p(line, styles["Normal"]) for line in gap_analysis_lines(domains)]
    return story + [Spacer(1, 12)]


def _detailed_section(detailed, styles):
    story = _heading("Detailed Assessment Results", styles)
    for domain_id, subdomains in detailed.items():
        first = next(iter(subdomains.values()))[0]
        story += [_p(f"{domain_id}: {first.domain_name}", styles["Heading3"])]
        for subdomain_id, answers in subdomains.items():
            story += [_p(f"{subdomain_id}: {answers[0].subdomain_name}", styles["Heading4"])]
            data = [["Question", "Maturity Level", "Notes"]]
            for a in answers:
                data.append(
                    [
                        _p(a.question_text, styles["Normal"]),
                        str(a.maturity_level),
                        _p(a.notes or "-", styles["Normal"]),
                    ]
                )
            story += [
                _table(data, [260, 80, AVAIL_W - 340], [("ALIGN", (1, 1), (1, -1), "CENTER")]),
                Spacer(1, 8),
            ]
    return story


def _recommendations_section(recs, styles):
    data = [["Domain", "Recommendation", "Priority", "Expected Impact"]]
    cell_styles = []
    for i, r in enumerate(recs, start=1):
        data.append(
            [
                r.domain_id,
                _p(r.description, styles["Normal"]),
                r.priority,
                _p(r.impact, styles["Normal"]),
            ]
        )
        cell_styles += [
            ("BACKGROUND", (2, i), (2, i), colors.HexColor(PRIORITY_COLORS[r.priority])),
            ("TEXTCOLOR", (2, i), (2, i), colors.white),
        ]
    return _heading("Recommendations", styles) + [
        _table(data, [50, 200, 60, AVAIL_W - 310], cell_styles),
        Spacer(1, 12),
    ]


HEATMAP_COLUMNS = ["Domain", "Domain Name", "Gap", "Priority", "Color", "Action"]


def heatmap_table_rows(rows):
    """Plain-text cells of the prioritization table, one list per ``priority_map`` row."""
    return [
        [r["domain_id"], r["domain_name"], f"{r['gap']:.2f}", r["tier"], r["color"], r["action"]]
        for r in rows
    ]


def _heatmap_section(rows, styles):
    data = [HEATMAP_COLUMNS]
    for cells in heatmap_table_rows(rows):
        data.append(cells[:1] + [_p(cells[1], styles["Normal"])] + cells[2:5] + [_p(cells[5], styles["Normal"])])
    story = _heading("Prioritization Heat Map", styles)
    story += [
        _table(
            data,
            [45, 150, 45, 60, 50, AVAIL_W - 350],
            [
                ("ALIGN", (2, 1), (4, -1), "CENTER"),
                *_tier_cell_styles([r["tier"] for r in rows], 3),
                *_tier_cell_styles([r["tier"] for r in rows], 4),
            ],
        ),
        Spacer(1, 10),
    ]
    bounds = [f">{above}" for above, _ in GAP_TIERS] + [f"<={GAP_TIERS[-1][0]}"]
    tiers = [tier for _, tier in GAP_TIERS] + ["Low"]
    legend = [["", "Legend"]] + [
        ["", f"{tier} Gap ({bound}): {TIER_ACTIONS[tier]}"] for tier, bound in zip(tiers, bounds)
    ]
    story += [
        _table(legend, [20, AVAIL_W - 20], _tier_cell_styles(tiers, 0)),
        Spacer(1, 8),
        _p(
            "Areas with larger gaps should be prioritized for remediation efforts. "
            "Critical and High gap areas require immediate attention and resource allocation.",
            styles["Normal"],
        ),
        Spacer(1, 12),
    ]
    return story


def _trend_section(trend, styles):
    data = [["Domain"] + TREND_CHECKPOINTS]
    for row in trend.itertuples(index=False):
        data.append([row[0]] + [f"{v:.2f}" for v in row[2:]])
    n = len(TREND_CHECKPOINTS)
    return _heading("Maturity Improvement Trend (Illustrative)", styles) + [
        _p(
            "Simulated improvement path for illustration only; not a forecast.",
            styles["Italic"],
        ),
        Spacer(1, 6),
        _table(data, [60] + [(AVAIL_W - 60) / n] * n, [("ALIGN", (1, 1), (-1, -1), "CENTER")]),
        Spacer(1, 12),
    ]


def _scale_section(styles):
    data = [["Level", "Name", "Description"]]
    for lvl, info in MATURITY_LEVELS.items():
        data.append([str(lvl), info["name"], _p(f"{info['en']} / {info['id']}", styles["Normal"])])
    return _heading("COBIT 2019 Maturity Scale", styles) + [
        _table(data, [40, 120, AVAIL_W - 160]),
    ]


def write_pdf_bytes(buf, records, info=None, generated_on=None):
    """
    Write the full assessment report as PDF into ``buf``.

    With no answers, the report keeps its metadata and summary and replaces
    the data sections with a "no data" notice.
    """
    info = info or AuditInfo()
    generated_on = generated_on or datetime.date.today().isoformat()
    data = compute_report(records)

    doc = SimpleDocTemplate(
        buf, pagesize=A4, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=48,
        title=f"COBIT 2019 Audit Report - {info.organization}",
    )
    styles = getSampleStyleSheet()

    story = _metadata_section(info, styles)
    story += _summary_section(data["summary"], styles)
    if data["summary"].is_empty:
        logger.info("No answers for %r; rendering empty report", info.title)
        story += _heading("Maturity Assessment Results", styles)
        story += [_p(data["summary"].narrative("en"), styles["Normal"])]
    else:
        story += _maturity_section(data["domains"], styles)
        story += [PageBreak()] + _gap_section(data["domains"], data["gaps"], styles)
        story += [PageBreak()] + _detailed_section(data["detailed"], styles)
        story += [PageBreak()] + _recommendations_section(data["recommendations"], styles)
        story += [PageBreak()] + _heatmap_section(data["priority_map"], styles)
        story += _trend_section(data["trend"], styles)
    story += [PageBreak()] + _scale_section(styles)

    footer_canvas = type("FooterCanvas", (NumberedCanvas,), {"generated_on": generated_on})
    doc.build(story, canvasmaker=footer_canvas)
    logger.debug("PDF report built for %r", info.organization)
