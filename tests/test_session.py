"""Tests for session: the per-user ratings store, cycles and catalog checks."""

from datetime import date, datetime

import pytest

from config import DEFAULT_BENEFIT, DEFAULT_EFFORT, DOMAINS, QUESTIONS
from session import AssessmentSession, HistoryRecord, validate_catalog


# ── catalog ───────────────────────────────────────────────────────────────────


def test_catalog_is_sound():
    assert validate_catalog() == []


def test_catalog_shape():
    assert len(QUESTIONS) == 28
    assert len(DOMAINS) == 8
    assert len({q["code"] for q in QUESTIONS}) == 28


def test_validate_catalog_reports_problems(caplog):
    questions = [
        {"code": "X1", "domain": "gov1", "default_current": 1, "default_target": 3},
        {"code": "X1", "domain": "nope", "default_current": 5, "default_target": 3},
    ]
    domains = [{"id": "gov1"}, {"id": "gov2"}]
    with caplog.at_level("WARNING", logger="session"):
        problems = validate_catalog(questions, domains)
    assert any("duplicate" in p for p in problems)
    assert any("unknown domain" in p for p in problems)
    assert any("default_current" in p for p in problems)
    assert any("gov2" in p for p in problems)
    assert "Question catalog problems" in caplog.text


# ── seeding & edits ───────────────────────────────────────────────────────────


def test_new_session_uses_catalog_defaults(session):
    assert session.codes == [q["code"] for q in QUESTIONS]
    for q in QUESTIONS:
        r = session.rating(q["code"])
        assert (r.current, r.target) == (q["default_current"], q["default_target"])
        assert r.action_items == ""
        assert (r.benefit, r.effort) == (DEFAULT_BENEFIT, DEFAULT_EFFORT)
    assert session.cycle_number == 1
    assert session.history == ()
    assert session.last_saved is None


def test_set_field_changes_one_field_only(session):
    code = QUESTIONS[3]["code"]
    before = session.ratings_frame()
    assert session.set_field(code, "target", 0) is True
    after = session.ratings_frame()

    diff = before.compare(after)
    assert list(diff.columns.get_level_values(0).unique()) == ["target"]
    assert list(after.loc[diff.index, "code"]) == [code]


@pytest.mark.parametrize(
    "field, value",
    [
        ("current", 5),
        ("current", -1),
        ("target", 2.5),
        ("target", "3"),
        ("current", None),
        ("current", True),
        ("benefit", 3),
        ("effort", -1),
        ("action_items", 12),
    ],
)
def test_set_field_ignores_out_of_range(session, field, value):
    code = QUESTIONS[0]["code"]
    before = session.get_field(code, field)
    assert session.set_field(code, field, value) is False
    assert session.get_field(code, field) == before


def test_set_field_accepts_integral_float(session):
    code = QUESTIONS[0]["code"]
    assert session.set_field(code, "current", 0.0) is True
    assert session.get_field(code, "current") == 0


def test_set_field_unchanged_value_returns_false(session):
    code = QUESTIONS[0]["code"]
    assert session.set_field(code, "current", session.get_field(code, "current")) is False


def test_set_field_unknown_field_or_code(session):
    with pytest.raises(KeyError):
        session.set_field(QUESTIONS[0]["code"], "gap", 1)
    with pytest.raises(KeyError):
        session.set_field("GOV 99.9", "current", 1)


def test_action_items_keep_text(session):
    code = QUESTIONS[0]["code"]
    session.set_field(code, "action_items", "Draft the AI policy\nNA")
    assert session.rating(code).action_items == "Draft the AI policy\nNA"


def test_ratings_frame_is_a_snapshot(session):
    code = QUESTIONS[0]["code"]
    frame = session.ratings_frame()
    session.set_field(code, "current", 0)
    assert frame.loc[0, "current"] == QUESTIONS[0]["default_current"]
    assert list(frame.columns) == [
        "code",
        "question",
        "description",
        "domain_id",
        "current",
        "target",
        "action_items",
        "benefit",
        "effort",
    ]


def test_sessions_are_isolated():
    a, b = AssessmentSession.new(), AssessmentSession.new()
    code = QUESTIONS[0]["code"]
    a.set_field(code, "current", 0)
    assert b.get_field(code, "current") == QUESTIONS[0]["default_current"]


# ── save & cycles ─────────────────────────────────────────────────────────────


def test_mark_saved(session):
    stamp = datetime(2026, 3, 4, 9, 30)
    assert session.mark_saved(stamp) == stamp
    assert session.last_saved == stamp


def test_start_new_cycle_appends_history(session):
    record = session.start_new_cycle(date(2026, 1, 15))
    assert isinstance(record, HistoryRecord)
    assert record.cycle == 1
    assert record.date == "2026-01-15"
    assert session.cycle_number == 2
    assert session.history == (record,)

    ratings = session.ratings_frame()
    assert record.overall_score == round(ratings["current"].mean(), 2)
    assert record.target_score == round(ratings["target"].mean(), 2)

    session.set_field(QUESTIONS[0]["code"], "current", 4)
    second = session.start_new_cycle(date(2026, 7, 1))
    assert session.history == (record, second)
    assert second.cycle == 2
    assert session.cycle_number == 3


def test_history_frame(session):
    assert session.history_frame().empty
    session.start_new_cycle(date(2026, 1, 15))
    frame = session.history_frame()
    assert list(frame.columns) == ["cycle", "date", "overall_score", "target_score", "critical_gaps"]
    assert frame.loc[0, "cycle"] == 1


def test_history_records_are_immutable(session):
    record = session.start_new_cycle(date(2026, 1, 15))
    with pytest.raises(AttributeError):
        record.overall_score = 4.0


# ── serialization ─────────────────────────────────────────────────────────────


def test_dict_round_trip(session):
    code = QUESTIONS[5]["code"]
    session.set_field(code, "action_items", "Assign an owner")
    session.set_field(code, "effort", 2)
    session.mark_saved(datetime(2026, 2, 1, 12, 0))
    session.start_new_cycle(date(2026, 2, 2))

    restored = AssessmentSession.from_dict(session.to_dict())
    assert restored.to_dict() == session.to_dict()
    assert restored.rating(code).action_items == "Assign an owner"
    assert restored.last_saved == datetime(2026, 2, 1, 12, 0)
    assert restored.cycle_number == 2


def test_from_empty_store_is_fresh_session():
    assert AssessmentSession.from_dict(None).to_dict() == AssessmentSession.new().to_dict()
    assert AssessmentSession.from_dict({}).cycle_number == 1
