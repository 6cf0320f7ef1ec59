"""Rule-based urgency scoring for open loops."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from loops_ai.core.datetime_utils import as_utc, days_between
from loops_ai.core.models import Loop, LoopPriority, LoopStatus, ScoredLoop

# (score delta, reason); a reason of None adds to the score silently.
_PRIORITY_RULES: dict[LoopPriority, tuple[int, str | None]] = {
    LoopPriority.HIGH: (4, "High priority"),
    LoopPriority.MEDIUM: (2, None),
    LoopPriority.LOW: (0, None),
}
_STATUS_RULES: dict[LoopStatus, tuple[int, str | None]] = {
    LoopStatus.STALLED: (4, "Stalled and needs movement"),
    LoopStatus.ACT_ON: (3, "Flagged to act on"),
    LoopStatus.ACTIVE: (1, None),
    LoopStatus.NEW: (0, None),
}

OVERDUE_POINTS = 5
DUE_SOON_POINTS = 3
DUE_SOON_DAYS = 3
DUE_THIS_WEEK_POINTS = 1
DUE_THIS_WEEK_DAYS = 7
HARD_STALE_POINTS = 2
SOFT_STALE_POINTS = 1
STALE_AFTER_DAYS = 2
MISSING_NEXT_STEP_POINTS = 1


def score_loops(loops: Iterable[Loop], now: datetime) -> list[ScoredLoop]:
    """Score every loop that is not closed, preserving input order."""
    if loops is None:
        raise TypeError("loops must be an iterable of Loop records, not None")
    return [score_loop(loop, now) for loop in loops if not loop.is_closed]


def score_loop(loop: Loop, now: datetime) -> ScoredLoop:
    """Return the urgency score and ordered reasons for a single loop."""
    reference = as_utc(now)
    score = 0
    reasons: list[str] = []

    for delta, reason in (
        _PRIORITY_RULES.get(loop.priority, (0, None)),
        _STATUS_RULES.get(loop.status, (0, None)),
        _due_date_rule(loop.due_at, reference),
        _staleness_rule(loop.stale_at, loop.updated_at, reference),
        _next_step_rule(loop),
    ):
        score += delta
        if reason:
            reasons.append(reason)

    return ScoredLoop(loop_id=loop.id, score=score, reasons=tuple(reasons))


def _due_date_rule(due_at: datetime | None, now: datetime) -> tuple[int, str | None]:
    if due_at is None:
        return 0, None
    days_until_due = days_between(now, due_at)
    if days_until_due < 0:
        overdue_days = math.floor(abs(days_until_due))
        return OVERDUE_POINTS, f"Overdue by {overdue_days} days"
    if days_until_due <= DUE_SOON_DAYS:
        return DUE_SOON_POINTS, "Due within 3 days"
    if days_until_due <= DUE_THIS_WEEK_DAYS:
        return DUE_THIS_WEEK_POINTS, "Due within a week"
    return 0, None


def _staleness_rule(
    stale_at: datetime | None, updated_at: datetime | None, now: datetime
) -> tuple[int, str | None]:
    if stale_at is not None and days_between(stale_at, now) > STALE_AFTER_DAYS:
        return HARD_STALE_POINTS, "Stale for 48h+"
    if updated_at is not None and days_between(updated_at, now) > STALE_AFTER_DAYS:
        return SOFT_STALE_POINTS, "Not updated in 48h"
    return 0, None


def _next_step_rule(loop: Loop) -> tuple[int, str | None]:
    if loop.has_next_step:
        return 0, None
    return MISSING_NEXT_STEP_POINTS, "Needs next step defined"


__all__ = ["score_loop", "score_loops"]
