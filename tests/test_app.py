"""Tests for the Dash app's pure helpers, figures and callbacks."""

import dash
import pytest

import app
from config import QUESTIONS, TREND_CHECKPOINTS
from models import DomainMaturity
from scoring import priority_map


def test_collect_answers_skips_unanswered():
    qbank = QUESTIONS[:3]
    answers = app.collect_answers(qbank, [2, None, 5], ["evidence", "x", ""])
    assert [a["question_id"] for a in answers] == [qbank[0]["id"], qbank[2]["id"]]
    assert answers[0]["notes"] == "evidence"
    assert answers[1]["notes"] is None


def test_collect_answers_short_lists():
    assert app.collect_answers(QUESTIONS[:2], [3], None)[0]["maturity_level"] == 3
    assert app.collect_answers(None, None, None) == []


def test_submit_then_results_roundtrip():
    values = [1, 1, 4, 4, None, None, None, None, None, None]
    data = app.on_submit(1, app.FORM_QUESTIONS, "PT Contoh", "Annual", "2024-05-01", "", "Rina", values, [None] * 10)
    assert data["info"]["organization"] == "PT Contoh"
    assert len(data["records"]) == 4

    kpis, narrative, bar, trend, heat, actions = app.update_results(data, "light", "en")
    assert "EDM" in narrative and "APO" in narrative
    assert len(kpis) == 2 + 2
    assert list(bar.data[0].x) == ["EDM", "APO"]
    assert len(trend.data) == 2
    assert len(actions) == 2


def test_update_results_without_data():
    with pytest.raises(dash.exceptions.PreventUpdate):
        app.update_results(None, "light", "en")


def test_heatmap_orders_by_gap():
    rows = priority_map([DomainMaturity("APO", "Align", 4.0), DomainMaturity("EDM", "Evaluate", 1.0)])
    fig = app.heatmap_figure(rows)
    assert list(fig.data[0].x) == ["EDM", "APO"]


def test_heatmap_empty_state():
    fig = app.heatmap_figure([])
    assert fig.layout.annotations[0].text == "No answers yet"


def test_trend_figure_checkpoints():
    fig = app.trend_figure([DomainMaturity("EDM", "Evaluate", 1.0)])
    assert list(fig.data[0].x) == TREND_CHECKPOINTS
    assert list(fig.data[0].y) == [1.0, 1.8, 2.6, 3.8, 4.6]


def test_progress_text():
    assert app.update_progress([1, None, 3, None]) == f"Progress: 2/{len(QUESTIONS)} (20%)"


def test_apply_theme():
    assert app.apply_theme(True) == ("page theme-dark", "dark")


def _card_qids(cards):
    return [row.children[2].id["qid"] for card in cards for row in card.children[1:]]


def test_form_questions_grouped_by_domain():
    shuffled = list(reversed(QUESTIONS))
    ordered = app.form_questions(shuffled)
    assert [q["domain_id"] for q in ordered][:2] == ["EDM", "EDM"]
    assert [q["domain_id"] for q in ordered][-2:] == ["MEA", "MEA"]
    assert sorted(q["id"] for q in ordered) == sorted(q["id"] for q in QUESTIONS)


def test_card_order_matches_question_store():
    shuffled = list(reversed(QUESTIONS))
    assert _card_qids(app.build_question_cards(shuffled)) == [q["id"] for q in app.form_questions(shuffled)]
    assert _card_qids(app.build_question_cards()) == [q["id"] for q in app.FORM_QUESTIONS]


def test_submit_pairs_values_with_rendered_questions():
    shuffled = list(reversed(QUESTIONS))
    bank = app.form_questions(shuffled)
    values = [None] * len(bank)
    values[0] = 1
    values[-1] = 5
    data = app.on_submit(1, bank, "PT Contoh", "Annual", "2024-05-01", "", "Rina", values, [None] * len(bank))
    assert [r["domain_id"] for r in data["records"]] == ["EDM", "MEA"]
    assert [r["maturity_level"] for r in data["records"]] == [1, 5]
