"""
Unit tests for scoring.py

Covers the answer aggregator, both gap tier schemes, recommendations,
trend projection, summary synthesis and the supporting helpers.
"""

import copy

import pytest

from config import TARGET_LEVEL, TREND_FRACTIONS
from models import AnswerRecord, DomainMaturity, InvalidAnswerError
from scoring import (EMPTY_SUMMARY, aggregate, audit_progress,
                     build_answer_records, classify, compute_gap, gap_tier,
                     group_detailed_results, priority_map, project,
                     recommend, recommendation_priority, round2, summarize,
                     trend_table)


# =============================================================================
# Fixtures
# =============================================================================

def rec(domain_id, level, subdomain_id=None, notes=None):
    sub = subdomain_id or f"{domain_id}01"
    return AnswerRecord(
        domain_id=domain_id,
        domain_name=f"{domain_id} name",
        subdomain_id=sub,
        subdomain_name=f"{sub} name",
        question_text=f"Question for {sub}",
        maturity_level=level,
        notes=notes,
    )


def dom(domain_id, current, target=TARGET_LEVEL):
    return DomainMaturity(domain_id, f"{domain_id} name", current, target)


@pytest.fixture
def scenario_records():
    return [rec("EDM", 1), rec("EDM", 1), rec("APO", 4)]


# =============================================================================
# round2
# =============================================================================

class TestRound2:
    def test_ties_round_up(self):
        assert round2(0.125) == 0.13
        assert round2(2.5) == 2.5

    def test_repeating(self):
        assert round2(2 / 3) == 0.67
        assert round2(10 / 3) == 3.33


# =============================================================================
# Aggregator
# =============================================================================

class TestAggregate:
    def test_mean_of_one_domain(self):
        result = aggregate([rec("EDM", 1), rec("EDM", 2), rec("EDM", 3)])
        assert len(result) == 1
        assert result[0].domain_id == "EDM"
        assert result[0].current_level == 2.0
        assert result[0].target_level == 5

    def test_rounds_to_two_decimals(self):
        result = aggregate([rec("DSS", 1), rec("DSS", 2), rec("DSS", 2)])
        assert result[0].current_level == 1.67

    def test_first_appearance_order(self):
        records = [rec("MEA", 2), rec("EDM", 3), rec("MEA", 4), rec("APO", 0)]
        assert [d.domain_id for d in aggregate(records)] == ["MEA", "EDM", "APO"]

    def test_empty(self):
        assert aggregate([]) == []

    def test_carries_domain_name(self):
        assert aggregate([rec("BAI", 5)])[0].domain_name == "BAI name"

    @pytest.mark.parametrize("bad", [None, 6, -1, 2.5, 3.0, True, "3"])
    def test_invalid_level(self, bad):
        records = [rec("EDM", 2), rec("EDM", bad)]
        with pytest.raises(InvalidAnswerError) as exc:
            aggregate(records)
        assert exc.value.index == 1
        assert exc.value.record is records[1]

    def test_levels_at_bounds_accepted(self):
        result = aggregate([rec("EDM", 0), rec("APO", 5)])
        assert [d.current_level for d in result] == [0.0, 5.0]

    def test_does_not_mutate_input(self, scenario_records):
        before = copy.deepcopy(scenario_records)
        aggregate(scenario_records)
        assert scenario_records == before


# =============================================================================
# Gap Analyzer
# =============================================================================

class TestGapAnalyzer:
    @pytest.mark.parametrize(
        "current,tier",
        [(0.0, "Critical"), (1.99, "Critical"), (2.0, "High"), (2.99, "High"),
         (3.0, "Medium"), (3.99, "Medium"), (4.0, "Low"), (5.0, "Low")],
    )
    def test_four_tier_boundaries(self, current, tier):
        assert classify(dom("EDM", current)).tier == tier

    @pytest.mark.parametrize(
        "gap,priority",
        [(5.0, "Tinggi"), (3.01, "Tinggi"), (3.0, "Tinggi"), (2.01, "Tinggi"),
         (2.0, "Sedang"), (1.01, "Sedang"), (1.0, "Rendah"), (0.0, "Rendah")],
    )
    def test_three_tier_boundaries(self, gap, priority):
        assert recommendation_priority(gap) == priority

    def test_schemes_differ_above_three(self):
        # Critical in the heat map, but still plain Tinggi for recommendations
        assert gap_tier(3.5) == "Critical"
        assert recommendation_priority(3.5) == "Tinggi"

    def test_gap_bounds(self):
        for i in range(0, 501):
            g = compute_gap(dom("EDM", i / 100))
            assert 0 <= g <= 5

    def test_tier_monotonic_in_current_level(self):
        severity = {"Critical": 4, "High": 3, "Medium": 2, "Low": 1}
        levels = [severity[classify(dom("EDM", i / 100)).tier] for i in range(0, 501)]
        assert all(a >= b for a, b in zip(levels, levels[1:]))

    def test_explicit_target(self):
        d = dom("EDM", 2.0)
        assert compute_gap(d, target_level=4) == 2.0
        assert classify(d, target_level=4).tier == "Medium"

    @pytest.mark.parametrize(
        "current,tier",
        [(1.9999, "Critical"), (2.996, "High"), (2.9999, "High"), (3.9999, "Medium"), (4.004, "Low")],
    )
    def test_tier_uses_unrounded_gap(self, current, tier):
        assert classify(dom("EDM", current)).tier == tier

    def test_reported_gap_is_rounded(self):
        assert classify(dom("EDM", 2.996)).gap == 2.0
        assert compute_gap(dom("EDM", 2.996)) == 2.0

    def test_recommend_uses_unrounded_gap(self):
        recs = recommend([dom("EDM", 2.9999), dom("APO", 3.996)])
        assert recs[0].priority == "Tinggi"
        assert recs[0].description.startswith("Major improvement required in EDM")
        assert recs[1].priority == "Sedang"

    def test_gap_value(self):
        assert classify(dom("APO", 4.0)).gap == 1.0

    def test_priority_map_sorted_by_gap(self):
        rows = priority_map([dom("APO", 4.0), dom("EDM", 1.0), dom("BAI", 3.0), dom("DSS", 3.0)])
        assert [r["domain_id"] for r in rows] == ["EDM", "BAI", "DSS", "APO"]
        assert rows[0]["tier"] == "Critical"
        assert rows[0]["color"] == "Red"
        assert rows[-1]["color"] == "Green"


# =============================================================================
# Recommendation Generator
# =============================================================================

class TestRecommend:
    def test_sort_is_stable(self):
        domains = [dom("EDM", 1.0), dom("APO", 4.5), dom("BAI", 2.5)]
        recs = recommend(domains)
        assert [r.domain_id for r in recs] == ["EDM", "BAI", "APO"]
        assert [r.priority for r in recs] == ["Tinggi", "Tinggi", "Rendah"]

    def test_templates_per_branch(self):
        recs = {r.domain_id: r for r in recommend(
            [dom("EDM", 1.0), dom("APO", 2.5), dom("BAI", 3.5), dom("DSS", 4.5)]
        )}
        assert recs["EDM"].description.startswith("Critical improvement needed in EDM (EDM name)")
        assert recs["APO"].description.startswith("Major improvement required in APO")
        assert recs["BAI"].description.startswith("Moderate enhancement needed in BAI")
        assert recs["BAI"].priority == "Sedang"
        assert recs["DSS"].description.startswith("Minor refinement recommended for DSS")
        assert recs["EDM"].impact != recs["APO"].impact

    def test_empty(self):
        assert recommend([]) == []


# =============================================================================
# Trend Projector
# =============================================================================

class TestProject:
    def test_endpoints(self):
        for current in (0.0, 1.33, 2.5, 4.67, 5.0):
            d = dom("EDM", current)
            p = project(d)
            assert len(p) == 5
            assert p[0] == current
            assert p[4] == round2(current + (5 - current) * 0.9)

    def test_values(self):
        assert project(dom("EDM", 1.0)) == [1.0, 1.8, 2.6, 3.8, 4.6]

    def test_at_target_stays(self):
        assert project(dom("EDM", 5.0)) == [5.0] * 5

    def test_never_closes_gap(self):
        assert project(dom("EDM", 0.0))[-1] < 5

    def test_trend_table(self):
        df = trend_table([dom("EDM", 1.0), dom("APO", 4.0)])
        assert list(df["domain_id"]) == ["EDM", "APO"]
        assert df.shape == (2, 2 + len(TREND_FRACTIONS))


# =============================================================================
# Summary Synthesizer
# =============================================================================

class TestSummarize:
    def test_empty_sentinel(self):
        s = summarize([])
        assert s is EMPTY_SUMMARY
        assert s.is_empty
        assert s.best_domain is None
        assert "No maturity data available" in s.narrative_text

    def test_statistics(self):
        s = summarize([dom("EDM", 1.0), dom("APO", 4.0)])
        assert s.overall_average == 2.5
        assert s.average_gap == 2.5
        assert s.best_domain.domain_id == "APO"
        assert s.worst_domain.domain_id == "EDM"
        assert not s.is_empty

    def test_ties_first_wins(self):
        s = summarize([dom("EDM", 3.0), dom("APO", 3.0), dom("BAI", 1.0), dom("DSS", 1.0)])
        assert s.best_domain.domain_id == "EDM"
        assert s.worst_domain.domain_id == "BAI"

    def test_all_equal(self):
        s = summarize([dom("EDM", 2.0), dom("APO", 2.0)])
        assert s.best_domain.domain_id == "EDM"
        assert s.worst_domain.domain_id == "EDM"

    def test_narrative_bilingual(self):
        s = summarize([dom("EDM", 1.0), dom("APO", 4.0)])
        en = s.narrative("en")
        idn = s.narrative("id")
        for text in (en, idn):
            assert "2 " in text
            assert "2.50" in text
            assert "APO (APO name)" in text
            assert "EDM (EDM name)" in text
            assert "4.00" in text
            assert "1.00" in text
        assert en in s.narrative_text and idn in s.narrative_text
        assert en != idn

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            summarize([dom("EDM", 1.0)]).narrative("fr")

    def test_empty_summary_cannot_be_altered(self):
        s = summarize([])
        with pytest.raises(TypeError):
            s.narratives["en"] = "changed"
        with pytest.raises(AttributeError):
            s.narrative_text = "changed"
        assert summarize([]).narrative("en") == "No maturity data available for this audit."

    def test_summary_hashable(self):
        assert hash(summarize([])) == hash(EMPTY_SUMMARY)
        s = summarize([dom("EDM", 1.0), dom("APO", 4.0)])
        assert hash(s) == hash(summarize([dom("EDM", 1.0), dom("APO", 4.0)]))


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:
    def test_build_answer_records(self):
        questions = [
            {"id": "Q1", "domain_id": "EDM", "subdomain_id": "EDM01", "text": "Framework?"},
            {"id": "Q2", "domain_id": "XYZ", "subdomain_id": "XYZ01", "text": "Other?"},
        ]
        records = build_answer_records(
            [{"question_id": "Q1", "maturity_level": 3, "notes": ""},
             {"question_id": "Q2", "maturity_level": 1, "notes": "seen"}],
            questions,
        )
        assert records[0].domain_name == "Evaluate, Direct and Monitor"
        assert records[0].subdomain_name.startswith("Memastikan Kerangka")
        assert records[0].notes is None
        assert records[1].domain_name == "XYZ"
        assert records[1].notes == "seen"

    def test_build_answer_records_unknown_question(self):
        with pytest.raises(InvalidAnswerError):
            build_answer_records([{"question_id": "nope", "maturity_level": 1}], [])

    def test_group_detailed_results(self):
        records = [rec("EDM", 1, "EDM02"), rec("APO", 2), rec("EDM", 3, "EDM01"), rec("EDM", 4, "EDM02")]
        grouped = group_detailed_results(records)
        assert list(grouped) == ["EDM", "APO"]
        assert list(grouped["EDM"]) == ["EDM02", "EDM01"]
        assert [r.maturity_level for r in grouped["EDM"]["EDM02"]] == [1, 4]

    @pytest.mark.parametrize("answered,total,pct", [(0, 0, 0), (1, 8, 13), (1, 3, 33), (5, 10, 50), (10, 10, 100)])
    def test_audit_progress(self, answered, total, pct):
        assert audit_progress(answered, total) == pct


# =============================================================================
# Pipeline
# =============================================================================

def test_end_to_end(scenario_records):
    domains = aggregate(scenario_records)
    assert [(d.domain_id, d.current_level) for d in domains] == [("EDM", 1.0), ("APO", 4.0)]

    edm, apo = (classify(d) for d in domains)
    assert (edm.gap, edm.tier) == (4.0, "Critical")
    assert (apo.gap, apo.tier) == (1.0, "Low")
    assert recommendation_priority(edm.gap) == "Tinggi"
    assert recommendation_priority(apo.gap) == "Rendah"

    assert [r.domain_id for r in recommend(domains)] == ["EDM", "APO"]

    s = summarize(domains)
    assert s.overall_average == 2.5
    assert s.best_domain.domain_id == "APO"
    assert s.worst_domain.domain_id == "EDM"
    assert s.average_gap == 2.5


def test_repeat_calls_identical(scenario_records):
    first = aggregate(scenario_records)
    second = aggregate(scenario_records)
    assert first == second
    assert [classify(d) for d in first] == [classify(d) for d in second]
    assert recommend(first) == recommend(second)
    assert [project(d) for d in first] == [project(d) for d in second]
    assert summarize(first) == summarize(second)
