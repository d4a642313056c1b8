# session.py

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

import pandas as pd

from config import (
    BENEFIT_LEVELS,
    DEFAULT_BENEFIT,
    DEFAULT_EFFORT,
    DOMAINS,
    EFFORT_LEVELS,
    MATURITY_LEVELS,
    QUESTIONS,
)
from scoring import overall_summary

logger = logging.getLogger(__name__)

LEVEL_VALUES = frozenset(level["value"] for level in MATURITY_LEVELS)

FIELD_CHOICES = {
    "current": LEVEL_VALUES,
    "target": LEVEL_VALUES,
    "benefit": frozenset(level["value"] for level in BENEFIT_LEVELS),
    "effort": frozenset(level["value"] for level in EFFORT_LEVELS),
}

EDITABLE_FIELDS = ("current", "target", "action_items", "benefit", "effort")
RATING_COLUMNS = ("code",) + EDITABLE_FIELDS


@dataclass
class Rating:
    code: str
    current: int
    target: int
    action_items: str = ""
    benefit: int = DEFAULT_BENEFIT
    effort: int = DEFAULT_EFFORT


@dataclass(frozen=True)
class HistoryRecord:
    """Summary of one finished assessment cycle. Never changed once appended."""

    cycle: int
    date: str
    overall_score: float
    target_score: float
    critical_gaps: int


def validate_catalog(questions=QUESTIONS, domains=DOMAINS):
    """
    Check the sanity of the question catalog.

    Logs a warning listing every problem found: duplicate codes, unknown
    domains, default levels outside 0-4 and domains without questions.

    :param questions: question dicts as found in `config.QUESTIONS`
    :param domains: domain dicts as found in `config.DOMAINS`
    :return: list of problem descriptions (empty when the catalog is sound)
    """
    problems = []
    domain_ids = [d["id"] for d in domains]

    seen = set()
    for q in questions:
        if q["code"] in seen:
            problems.append(f"duplicate question code {q['code']!r}")
        seen.add(q["code"])
        if q["domain"] not in domain_ids:
            problems.append(f"{q['code']}: unknown domain {q['domain']!r}")
        for key in ("default_current", "default_target"):
            if q.get(key) not in LEVEL_VALUES:
                problems.append(f"{q['code']}: {key} {q.get(key)!r} is not a maturity level")

    used = {q["domain"] for q in questions}
    problems.extend(f"domain {d!r} has no questions" for d in domain_ids if d not in used)

    if problems:
        logger.warning("Question catalog problems: %s", "; ".join(problems))
    return problems


def _coerce_choice(value, choices):
    # bool is an int subclass; a checkbox value is never a level
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    value = int(value)
    return value if value in choices else None


class AssessmentSession:
    """
    Ratings store for one user session.

    Holds one `Rating` per catalog question, the current cycle number, the
    append-only cycle history and the last "save progress" timestamp. The Dash
    app keeps it in a memory `dcc.Store` (via `to_dict`/`from_dict`), so it
    lives exactly as long as the browser session.
    """

    def __init__(self, ratings, cycle_number=1, history=None, last_saved=None, questions=QUESTIONS):
        self._questions = {q["code"]: q for q in questions}
        self._ratings = {r.code: r for r in ratings}
        self.cycle_number = cycle_number
        self._history = list(history or [])
        self.last_saved = last_saved

    @classmethod
    def new(cls, questions=QUESTIONS):
        """Start a session with every rating seeded from the catalog defaults."""
        ratings = [
            Rating(
                code=q["code"],
                current=q["default_current"],
                target=q["default_target"],
            )
            for q in questions
        ]
        return cls(ratings, questions=questions)

    @property
    def codes(self):
        return list(self._ratings)

    @property
    def history(self):
        return tuple(self._history)

    def rating(self, code) -> Rating:
        return self._ratings[code]

    def get_field(self, code, field):
        if field not in EDITABLE_FIELDS:
            raise KeyError(f"unknown rating field {field!r}")
        return getattr(self._ratings[code], field)

    def set_field(self, code, field, value) -> bool:
        """
        Apply a single-field edit to one rating.

        Values outside the field's enumeration (0-4 for levels, 0-2 for
        benefit/effort) and non-text action items are ignored.

        :param code: question code, e.g. "GOV 1.3"
        :param field: one of `EDITABLE_FIELDS`
        :param value: the new value
        :return: True if the rating changed, False if the edit was ignored
        """
        rating = self._ratings[code]
        if field == "action_items":
            if not isinstance(value, str):
                return False
            new = value
        elif field in FIELD_CHOICES:
            new = _coerce_choice(value, FIELD_CHOICES[field])
            if new is None:
                logger.debug("Ignoring %s=%r for %s", field, value, code)
                return False
        else:
            raise KeyError(f"unknown rating field {field!r}")

        if getattr(rating, field) == new:
            return False
        setattr(rating, field, new)
        return True

    def ratings_frame(self):
        """
        Snapshot the ratings as a dataframe, one row per question in catalog order.

        Columns: code, question, description, domain_id, current, target,
        action_items, benefit, effort. The frame is a copy: later edits to
        the session do not show up in it.
        """
        rows = []
        for code, r in self._ratings.items():
            q = self._questions.get(code, {})
            rows.append(
                {
                    "code": code,
                    "question": q.get("question", ""),
                    "description": q.get("description", ""),
                    "domain_id": q.get("domain", ""),
                    "current": r.current,
                    "target": r.target,
                    "action_items": r.action_items,
                    "benefit": r.benefit,
                    "effort": r.effort,
                }
            )
        return pd.DataFrame(rows)

    def mark_saved(self, now: Optional[datetime] = None):
        self.last_saved = now or datetime.now()
        return self.last_saved

    def start_new_cycle(self, today: Optional[date] = None) -> HistoryRecord:
        """
        Close the current cycle: snapshot its summary into history and bump the cycle number.

        Ratings are carried over unchanged so the next cycle starts from the
        last known state.
        """
        summary = overall_summary(self.ratings_frame())
        record = HistoryRecord(
            cycle=self.cycle_number,
            date=(today or date.today()).isoformat(),
            overall_score=round(summary["overall"], 2),
            target_score=round(summary["target"], 2),
            critical_gaps=summary["critical_high"],
        )
        self._history.append(record)
        self.cycle_number += 1
        logger.info("Started assessment cycle #%d", self.cycle_number)
        return record

    def history_frame(self):
        columns = ["cycle", "date", "overall_score", "target_score", "critical_gaps"]
        return pd.DataFrame([asdict(h) for h in self._history], columns=columns)

    def to_dict(self):
        return {
            "ratings": [asdict(r) for r in self._ratings.values()],
            "cycle_number": self.cycle_number,
            "history": [asdict(h) for h in self._history],
            "last_saved": self.last_saved.isoformat() if self.last_saved else None,
        }

    @classmethod
    def from_dict(cls, data, questions=QUESTIONS):
        """Rebuild a session from `to_dict` output; an empty store yields a fresh session."""
        if not data:
            return cls.new(questions)
        last_saved = data.get("last_saved")
        return cls(
            [Rating(**r) for r in data["ratings"]],
            cycle_number=data.get("cycle_number", 1),
            history=[HistoryRecord(**h) for h in data.get("history", [])],
            last_saved=datetime.fromisoformat(last_saved) if last_saved else None,
            questions=questions,
        )
