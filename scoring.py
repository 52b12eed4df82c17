# scoring.py
"""
Maturity scoring and gap analysis.

Everything here is a pure function over already-fetched answers: no I/O,
no clock, no mutation of the inputs. The same answers always produce the
same domains, tiers, recommendations, trends and summary.
"""

import logging
import numbers
from decimal import ROUND_HALF_UP, Decimal

import numpy as np
import pandas as pd

from config import (DOMAINS, GAP_TIER_DEFAULT, GAP_TIERS, LANGUAGES,
                    MAX_LEVEL, MIN_LEVEL, NARRATIVE, NO_DATA_NARRATIVE,
                    PRIORITY_WEIGHTS, RECS, SUBDOMAINS, TARGET_LEVEL,
                    TIER_ACTIONS, TIER_COLORS, TREND_CHECKPOINTS,
                    TREND_FRACTIONS)
from models import (AnswerRecord, DomainMaturity, GapResult,
                    InvalidAnswerError, Recommendation, Summary)

logger = logging.getLogger(__name__)


# ----------- Helpers -------------
def _round_half_up(x, places):
    q = Decimal(1).scaleb(-places)
    return Decimal(float(x)).quantize(q, rounding=ROUND_HALF_UP)


def round2(x):
    """
    Round to 2 decimals, ties away from zero on the exact binary value.

    Unlike the builtin ``round`` (ties to even), 0.125 -> 0.13.
    """
    return float(_round_half_up(x, 2))


def _is_level(v):
    return isinstance(v, numbers.Integral) and not isinstance(v, bool)


def validate_record(record, index=None):
    """
    Raise ``InvalidAnswerError`` unless ``record.maturity_level`` is an
    integer in [MIN_LEVEL, MAX_LEVEL].
    """
    level = getattr(record, "maturity_level", None)
    if level is None:
        raise InvalidAnswerError("Missing maturity level", record, index)
    if not _is_level(level):
        raise InvalidAnswerError("Maturity level must be an integer", record, index)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidAnswerError(
            f"Maturity level must be between {MIN_LEVEL} and {MAX_LEVEL}",
            record,
            index,
        )


def build_answer_records(answers, questions):
    """
    Join raw answers against the question catalog.

    :param answers: iterable of dicts with "question_id", "maturity_level"
        and optional "notes"
    :param questions: iterable of dicts with "id", "domain_id",
        "subdomain_id" and "text"
    :return: list of AnswerRecord, in answer order
    """
    catalog = {q["id"]: q for q in questions}
    records = []
    for i, a in enumerate(answers):
        q = catalog.get(a.get("question_id"))
        if q is None:
            raise InvalidAnswerError("Answer references an unknown question", a, i)
        records.append(
            AnswerRecord(
                domain_id=q["domain_id"],
                domain_name=DOMAINS.get(q["domain_id"], q["domain_id"]),
                subdomain_id=q["subdomain_id"],
                subdomain_name=SUBDOMAINS.get(q["subdomain_id"], q["subdomain_id"]),
                question_text=q["text"],
                maturity_level=a.get("maturity_level"),
                notes=a.get("notes") or None,
            )
        )
    return records


# -------------- Answer Aggregator ---------------
def aggregate(records):
    """
    Reduce answers to one average maturity per domain.

    Domains come out in order of first appearance; a domain with no answers
    never appears. ``current_level`` is the mean rounded to 2 decimals and
    ``target_level`` is the fixed ceiling.

    Raises:
        InvalidAnswerError: for the first record with a missing, non-integer
            or out-of-range maturity level.
    """
    if not records:
        return []
    for i, r in enumerate(records):
        validate_record(r, i)

    df = pd.DataFrame(
        [
            {
                "domain_id": r.domain_id,
                "domain_name": r.domain_name,
                "maturity_level": int(r.maturity_level),
            }
            for r in records
        ]
    )
    groups = df.groupby("domain_id", sort=False, as_index=False).agg(
        domain_name=("domain_name", "first"),
        total=("maturity_level", "sum"),
        answers=("maturity_level", "size"),
    )
    domains = [
        DomainMaturity(
            domain_id=row.domain_id,
            domain_name=row.domain_name,
            current_level=round2(int(row.total) / int(row.answers)),
            target_level=TARGET_LEVEL,
        )
        for row in groups.itertuples(index=False)
    ]
    logger.debug("Aggregated %d answers into %d domains", len(records), len(domains))
    return domains


# -------------- Gap Analyzer ---------------
def _raw_gap(domain, target_level=None):
    target = domain.target_level if target_level is None else target_level
    return min(max(target - domain.current_level, 0.0), float(MAX_LEVEL))


def compute_gap(domain, target_level=None):
    """Target minus current, kept inside [0, MAX_LEVEL] and rounded to 2 decimals for display."""
    return round2(_raw_gap(domain, target_level))


def gap_tier(gap):
    """Four-tier heat-map scheme: Critical / High / Medium / Low."""
    for above, tier in GAP_TIERS:
        if gap > above:
            return tier
    return GAP_TIER_DEFAULT


def classify(domain, target_level=None):
    """Tier on the unrounded gap; only the reported ``gap`` is rounded."""
    gap = _raw_gap(domain, target_level)
    return GapResult(gap=round2(gap), tier=gap_tier(gap))


def _recommendation_template(gap):
    for tpl in RECS:
        if tpl["above"] is None or gap > tpl["above"]:
            return tpl
    raise LookupError("RECS has no catch-all template")


def recommendation_priority(gap):
    """
    Three-tier recommendation scheme: Tinggi (> 2), Sedang (> 1), Rendah.

    Deliberately coarser than ``gap_tier``; both feed different report
    sections.
    """
    return _recommendation_template(gap)["priority"]


def priority_map(domains):
    """
    Heat-map rows, largest gap first. Equal gaps keep input order.

    :return: list of dicts with domain_id, domain_name, gap, tier, color,
        color_hex and action
    """
    rows = []
    for d in domains:
        res = classify(d)
        rows.append(
            {
                "domain_id": d.domain_id,
                "domain_name": d.domain_name,
                "gap": res.gap,
                "tier": res.tier,
                "color": TIER_COLORS[res.tier]["label"],
                "color_hex": TIER_COLORS[res.tier]["hex"],
                "action": TIER_ACTIONS[res.tier],
            }
        )
    return sorted(rows, key=lambda r: -r["gap"])


def gap_analysis_lines(domains):
    return [
        f"{d.domain_id} ({d.domain_name}): Current {d.current_level:.2f} "
        f"vs Target {d.target_level} - Gap: {compute_gap(d):.2f}"
        for d in domains
    ]


# -------------- Recommendation Generator ---------------
def recommend(domains):
    """
    One recommendation per domain, highest priority first.

    The sort is stable, so domains sharing a priority keep their input order.
    """
    recs = []
    for d in domains:
        tpl = _recommendation_template(_raw_gap(d))
        params = {"domain_id": d.domain_id, "domain_name": d.domain_name}
        recs.append(
            Recommendation(
                domain_id=d.domain_id,
                description=tpl["description"].format(**params),
                priority=tpl["priority"],
                impact=tpl["impact"].format(**params),
            )
        )
    return sorted(recs, key=lambda r: -PRIORITY_WEIGHTS[r.priority])


# -------------- Trend Projector ---------------
def project(domain):
    """
    Illustrative (not predictive) maturity at now, +3, +6, +9 and +12 months.

    Closes a fixed share of the gap at each checkpoint and never reaches the
    target within the horizon.
    """
    gap = domain.target_level - domain.current_level
    values = domain.current_level + gap * np.asarray(TREND_FRACTIONS, dtype=float)
    return [round2(v) for v in values]


def trend_table(domains):
    rows = []
    for d in domains:
        row = {"domain_id": d.domain_id, "domain_name": d.domain_name}
        row.update(zip(TREND_CHECKPOINTS, project(d)))
        rows.append(row)
    return pd.DataFrame(rows, columns=["domain_id", "domain_name"] + TREND_CHECKPOINTS)


# -------------- Summary Synthesizer ---------------
def render_narrative(count, overall, best, worst, gap, languages=None):
    """
    Fill the narrative template once per language.

    :return: dict mapping language code to paragraph
    """
    params = {
        "count": count,
        "overall": overall,
        "best_id": best.domain_id,
        "best_name": best.domain_name,
        "best_level": best.current_level,
        "worst_id": worst.domain_id,
        "worst_name": worst.domain_name,
        "worst_level": worst.current_level,
        "gap": gap,
    }
    return {lang: NARRATIVE[lang].format(**params) for lang in (languages or LANGUAGES)}


def _join_narratives(narratives):
    return "\n\n".join(narratives[lang] for lang in LANGUAGES)


EMPTY_SUMMARY = Summary(
    domain_count=0,
    overall_average=0.0,
    best_domain=None,
    worst_domain=None,
    average_gap=0.0,
    narrative_text=_join_narratives(NO_DATA_NARRATIVE),
    narratives=tuple((lang, NO_DATA_NARRATIVE[lang]) for lang in LANGUAGES),
)


def summarize(domains):
    """
    Overall/best/worst statistics plus the bilingual narrative.

    Returns ``EMPTY_SUMMARY`` when there are no domains. Ties for best or
    worst go to the domain seen first.
    """
    if not domains:
        return EMPTY_SUMMARY

    n = len(domains)
    best = worst = domains[0]
    for d in domains[1:]:
        if d.current_level > best.current_level:
            best = d
        if d.current_level < worst.current_level:
            worst = d

    overall = round2(sum(d.current_level for d in domains) / n)
    avg_gap = round2(sum(d.target_level - d.current_level for d in domains) / n)
    narratives = render_narrative(n, overall, best, worst, avg_gap)
    return Summary(
        domain_count=n,
        overall_average=overall,
        best_domain=best,
        worst_domain=worst,
        average_gap=avg_gap,
        narrative_text=_join_narratives(narratives),
        narratives=tuple((lang, narratives[lang]) for lang in LANGUAGES),
    )


# -------------- Detailed listings ---------------
def group_detailed_results(records):
    """Nest answers as {domain_id: {subdomain_id: [AnswerRecord, ...]}}, keeping input order."""
    grouped = {}
    for r in records:
        grouped.setdefault(r.domain_id, {}).setdefault(r.subdomain_id, []).append(r)
    return grouped


def audit_progress(answered, total):
    """Percentage of answered questions, rounded half up to a whole number."""
    if total <= 0:
        return 0
    return int(_round_half_up(answered / total * 100, 0))
