"""Tests for scoring: priority tiers, per-domain aggregation and gap ranking."""

import pandas as pd
import pytest

from config import DOMAINS, QUESTIONS
from scoring import (
    EmptyDomainError,
    Priority,
    aggregate,
    items_with_priority,
    overall_summary,
    priority_counts,
    priority_of,
    score_ratings,
    top_gap_items,
)
from session import AssessmentSession


# ── priority_of ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "gap, current, expected",
    [
        (3, 1, Priority.CRITICAL),
        (4, 0, Priority.CRITICAL),
        (3, 0, Priority.CRITICAL),
        (2, 0, Priority.CRITICAL),
        (2, 1, Priority.CRITICAL),
        (2, 2, Priority.HIGH),
        (1, 0, Priority.MEDIUM),
        (1, 3, Priority.MEDIUM),
        (0, 4, Priority.LOW),
        (0, 0, Priority.LOW),
        (-1, 3, Priority.LOW),
        (-3, 4, Priority.LOW),
    ],
)
def test_priority_of_rules(gap, current, expected):
    assert priority_of(gap, current) is expected


def test_priority_of_examples_from_rules_table():
    """(gap=2, current=1) is Critical; (gap=2, current=2) is High."""
    assert priority_of(2, 1) == "Critical"
    assert priority_of(2, 2) == "High"


@pytest.mark.parametrize("gap, current", [(None, 2), (2, None), (float("nan"), 1)])
def test_priority_of_missing_input_is_low(gap, current, caplog):
    """Missing values fall back to Low and leave a warning behind."""
    with caplog.at_level("WARNING", logger="scoring"):
        assert priority_of(gap, current) is Priority.LOW
    assert "defaulting priority to Low" in caplog.text


def test_priority_is_total_over_valid_levels():
    """Every (current, target) pair in 0..4 gets exactly one of the four tiers."""
    tiers = {p.value for p in Priority}
    for current in range(5):
        for target in range(5):
            assert priority_of(target - current, current).value in tiers


# ── score_ratings ─────────────────────────────────────────────────────────────


def test_score_ratings_adds_gap_and_priority(small_ratings):
    scored = score_ratings(small_ratings)
    assert list(scored["gap"]) == [3, 2, 1, 0]
    assert list(scored["priority"]) == ["Critical", "High", "Medium", "Low"]
    assert "gap" not in small_ratings.columns


def test_score_ratings_maps_catalog_domains(session):
    scored = score_ratings(session.ratings_frame())
    first = scored.iloc[0]
    assert first["section"] == "GOV 1"
    assert first["domain"] == DOMAINS[0]["title"]


# ── aggregate ─────────────────────────────────────────────────────────────────


def test_aggregate_with_explicit_domains(small_ratings, small_domains):
    summary = aggregate(small_ratings, small_domains)
    assert list(summary["domain"]) == ["Alpha", "Beta"]

    alpha = summary.iloc[0]
    assert alpha["avg_current"] == pytest.approx(1.5)
    assert alpha["avg_target"] == pytest.approx(4.0)
    assert alpha["avg_gap"] == pytest.approx(2.5)
    assert alpha["questions"] == 2
    assert alpha["critical_high"] == 2

    beta = summary.iloc[1]
    assert beta["avg_gap"] == pytest.approx(0.5)
    assert beta["critical_high"] == 0


def test_aggregate_avg_gap_equals_target_minus_current(session):
    summary = aggregate(session.ratings_frame())
    diff = summary["avg_target"] - summary["avg_current"]
    assert (summary["avg_gap"] - diff).abs().max() < 1e-9


def test_aggregate_covers_every_catalog_domain_in_order(session):
    summary = aggregate(session.ratings_frame())
    assert list(summary["domain"]) == [d["title"] for d in DOMAINS]
    assert summary["questions"].sum() == len(QUESTIONS)


def test_aggregate_counts_urgent_items_per_domain(session):
    ratings = session.ratings_frame()
    scored = score_ratings(ratings)
    expected = scored["priority"].isin(["Critical", "High"]).groupby(scored["domain"]).sum()
    summary = aggregate(ratings).set_index("domain")
    for domain, count in expected.items():
        assert summary.loc[domain, "critical_high"] == count


def test_aggregate_empty_domain_raises(small_ratings, small_domains):
    """A domain with no rated questions must fail loudly, not report NaN."""
    ratings = small_ratings[small_ratings["code"].isin(["Q1", "Q2"])]
    with pytest.raises(EmptyDomainError, match="Beta"):
        aggregate(ratings, small_domains)


def test_aggregate_unmapped_code_raises(small_ratings):
    with pytest.raises(KeyError):
        aggregate(small_ratings, {"Q1": "Alpha", "Q2": "Alpha", "Q3": "Beta"})


# ── top_gap_items ─────────────────────────────────────────────────────────────


def test_top_gap_items_ordering(small_ratings):
    top = top_gap_items(small_ratings, 10)
    assert list(top["code"]) == ["Q1", "Q2", "Q3"]
    assert (top["gap"] > 0).all()


def test_top_gap_items_n_zero_is_empty(small_ratings):
    assert top_gap_items(small_ratings, 0).empty


def test_top_gap_items_limit(session):
    ratings = session.ratings_frame()
    open_gaps = int((ratings["target"] > ratings["current"]).sum())
    assert len(top_gap_items(ratings, 5)) == min(5, open_gaps)
    assert len(top_gap_items(ratings, 1000)) == open_gaps


def test_top_gap_items_ties_break_on_current_then_order():
    ratings = pd.DataFrame(
        {
            "code": ["A", "B", "C", "D"],
            "current": [2, 1, 2, 1],
            "target": [4, 3, 4, 3],
        }
    )
    top = top_gap_items(ratings, 4)
    assert list(top["code"]) == ["B", "D", "A", "C"]
    assert list(top_gap_items(ratings, 4)["code"]) == list(top["code"])


def test_top_gap_items_is_prefix_sorted(session):
    top = top_gap_items(session.ratings_frame(), 10)
    keys = list(zip(-top["gap"], top["current"]))
    assert keys == sorted(keys)


# ── summaries ─────────────────────────────────────────────────────────────────


def test_overall_summary(small_ratings):
    summary = overall_summary(small_ratings)
    assert summary["overall"] == pytest.approx(2.5)
    assert summary["target"] == pytest.approx(4.0)
    assert summary["progress_pct"] == pytest.approx(62.5)
    assert summary["critical_high"] == 2
    assert summary["questions"] == 4


def test_overall_summary_empty_raises(small_ratings):
    with pytest.raises(ValueError):
        overall_summary(small_ratings.iloc[0:0])


def test_priority_counts_lists_every_tier(small_ratings):
    counts = priority_counts(small_ratings.iloc[[0, 1]])
    assert list(counts["priority"]) == ["Critical", "High", "Medium", "Low"]
    assert list(counts["count"]) == [1, 1, 0, 0]


def test_items_with_priority(small_ratings):
    assert list(items_with_priority(small_ratings, "Medium")["code"]) == ["Q3"]
    assert list(items_with_priority(small_ratings, Priority.LOW)["code"]) == ["Q4"]
    with pytest.raises(ValueError):
        items_with_priority(small_ratings, "Urgent")


def test_edit_changes_only_its_own_priority_and_domain():
    """Raising one current level touches that row's priority and its domain's averages only."""
    session = AssessmentSession.new()
    before_scored = score_ratings(session.ratings_frame())
    before_summary = aggregate(session.ratings_frame()).set_index("domain")

    code = QUESTIONS[0]["code"]
    session.set_field(code, "current", 4)
    after_scored = score_ratings(session.ratings_frame())
    after_summary = aggregate(session.ratings_frame()).set_index("domain")

    changed = before_scored["priority"] != after_scored["priority"]
    assert set(after_scored.loc[changed, "code"]) <= {code}

    edited_domain = DOMAINS[0]["title"]
    others = after_summary.index != edited_domain
    pd.testing.assert_frame_equal(after_summary[others], before_summary[others])
    assert after_summary.loc[edited_domain, "avg_current"] > before_summary.loc[edited_domain, "avg_current"]


# ── worked scenarios ──────────────────────────────────────────────────────────


def test_aggregate_is_idempotent(session):
    ratings = session.ratings_frame()
    pd.testing.assert_frame_equal(aggregate(ratings), aggregate(ratings))


def test_aggregate_single_question_domain():
    ratings = pd.DataFrame({"code": ["X"], "current": [1], "target": [3]})
    row = aggregate(ratings, {"X": "Solo"}).iloc[0]

    assert row["domain"] == "Solo"
    assert row["avg_current"] == pytest.approx(1.0)
    assert row["avg_target"] == pytest.approx(3.0)
    assert row["avg_gap"] == pytest.approx(2.0)
    assert row["questions"] == 1
    assert row["critical_high"] == 1


def test_two_question_scenario():
    """A (1 -> 4) is the only open gap; B already meets its target."""
    ratings = pd.DataFrame({"code": ["A", "B"], "current": [1, 4], "target": [4, 4]})

    assert list(score_ratings(ratings)["priority"]) == ["Critical", "Low"]
    assert list(top_gap_items(ratings, 1)["code"]) == ["A"]
    assert list(top_gap_items(ratings, 5)["code"]) == ["A"]
