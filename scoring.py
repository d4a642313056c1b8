# scoring.py

import logging
from enum import Enum

import numpy as np
import pandas as pd

from config import DOMAINS

logger = logging.getLogger(__name__)

MAX_LEVEL = 4


class Priority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


PRIORITY_ORDER = [p.value for p in Priority]
URGENT_PRIORITIES = (Priority.CRITICAL.value, Priority.HIGH.value)


class EmptyDomainError(ValueError):
    """A domain has no questions, so its averages do not exist."""


def _missing(x):
    return x is None or bool(pd.isna(x))


def priority_of(gap, current_level) -> Priority:
    """
    Derive the urgency tier of a question from its gap and current level.

    Rules, first match wins:

    gap >= 3                      -> Critical
    gap >= 2 and current <= 1     -> Critical
    gap >= 2                      -> High
    gap >= 1                      -> Medium
    otherwise                     -> Low

    A missing gap or current level falls back to Low.
    """
    if _missing(gap) or _missing(current_level):
        logger.warning("Missing gap/current (%r, %r); defaulting priority to Low", gap, current_level)
        return Priority.LOW
    if gap >= 3 or (gap >= 2 and current_level <= 1):
        return Priority.CRITICAL
    if gap >= 2:
        return Priority.HIGH
    if gap >= 1:
        return Priority.MEDIUM
    return Priority.LOW


def score_ratings(ratings):
    """
    Add the derived columns to a ratings dataframe.

    Args:
        ratings (pd.DataFrame): one row per question with at least "current" and "target";
            a "domain_id" column adds "section" and "domain" (title) from the catalog.

    Returns:
        pd.DataFrame: a copy with "gap" and "priority" (tier name) columns added
    """
    df = ratings.copy()
    df["gap"] = df["target"] - df["current"]
    df["priority"] = [priority_of(g, c).value for g, c in zip(df["gap"], df["current"])]
    if "domain_id" in df.columns:
        df["section"] = df["domain_id"].map({d["id"]: d["section"] for d in DOMAINS})
        df["domain"] = df["domain_id"].map({d["id"]: d["title"] for d in DOMAINS})
    return df


def aggregate(ratings, domain_of=None):
    """
    Summarize ratings per domain.

    Args:
        ratings (pd.DataFrame): ratings with "code", "current" and "target" columns
            (plus "domain_id" when `domain_of` is not given).
        domain_of (Mapping, optional): question code -> domain name. Defaults to the
            catalog domains, keyed off the "domain_id" column.

    Returns:
        pd.DataFrame: one row per domain, in catalog order (or first-seen order of
            `domain_of` values), with columns domain, avg_current, avg_target,
            avg_gap, questions and critical_high.

    Raises:
        EmptyDomainError: if a domain has no rated questions.
        KeyError: if a rating's code has no domain in `domain_of`.
    """
    scored = score_ratings(ratings)
    if domain_of is None:
        order = [d["title"] for d in DOMAINS]
        keys = scored["domain_id"].map({d["id"]: d["title"] for d in DOMAINS})
    else:
        order = list(dict.fromkeys(domain_of.values()))
        keys = scored["code"].map(dict(domain_of))
    if keys.isna().any():
        raise KeyError(f"no domain for codes {list(scored.loc[keys.isna(), 'code'])}")

    rows = []
    for dom in order:
        g = scored[keys == dom]
        if g.empty:
            raise EmptyDomainError(f"domain {dom!r} has no questions to average")
        rows.append(
            {
                "domain": dom,
                "avg_current": float(g["current"].mean()),
                "avg_target": float(g["target"].mean()),
                "avg_gap": float(g["gap"].mean()),
                "questions": int(len(g)),
                "critical_high": int(g["priority"].isin(URGENT_PRIORITIES).sum()),
            }
        )
    return pd.DataFrame(rows)


def top_gap_items(ratings, n):
    """
    Return the `n` largest open gaps.

    Rows with gap > 0 are ordered by gap (largest first), then current level
    (lowest first), then their input order, so equal rows never swap
    between calls.
    """
    scored = score_ratings(ratings)
    scored["_order"] = np.arange(len(scored))
    open_gaps = scored[scored["gap"] > 0]
    ranked = open_gaps.sort_values(["gap", "current", "_order"], ascending=[False, True, True])
    return ranked.head(max(int(n), 0)).drop(columns="_order").reset_index(drop=True)


def items_with_priority(ratings, priority):
    """Rows in one priority tier, largest gap first."""
    scored = score_ratings(ratings)
    tier = Priority(priority).value
    items = scored[scored["priority"] == tier]
    return items.sort_values("gap", ascending=False, kind="stable").reset_index(drop=True)


def overall_summary(ratings):
    """
    Headline numbers for the dashboard cards and cycle history.

    Returns:
        dict: overall (mean current), target (mean target), progress_pct
            (overall as a share of level 4), critical_high and questions counts
    """
    if ratings.empty:
        raise ValueError("cannot summarize an empty ratings table")
    scored = score_ratings(ratings)
    overall = float(scored["current"].mean())
    return {
        "overall": overall,
        "target": float(scored["target"].mean()),
        "progress_pct": overall / MAX_LEVEL * 100,
        "critical_high": int(scored["priority"].isin(URGENT_PRIORITIES).sum()),
        "questions": int(len(scored)),
    }


def priority_counts(ratings):
    """Count of questions per priority tier, Critical to Low (zero counts included)."""
    scored = score_ratings(ratings)
    counts = scored["priority"].value_counts().reindex(PRIORITY_ORDER, fill_value=0)
    return pd.DataFrame({"priority": PRIORITY_ORDER, "count": counts.astype(int).to_list()})
