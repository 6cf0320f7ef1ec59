"""List filters and dashboard counters for loops."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from loops_ai.core.datetime_utils import as_utc
from loops_ai.core.models import Loop, LoopPriority, LoopStats, LoopStatus

STALE_WINDOW = timedelta(hours=48)
STALE_SOON_WINDOW = timedelta(hours=12)

# Filters backed by a fixed status set; "all", "act-on" and "due-soon" are
# evaluated dynamically.
_STATUS_FILTERS: dict[str, frozenset[LoopStatus]] = {
    "new": frozenset({LoopStatus.NEW}),
    "active": frozenset({LoopStatus.ACTIVE}),
    "stalled": frozenset({LoopStatus.STALLED}),
    "closed": frozenset({LoopStatus.CLOSED}),
}
FILTER_LABELS: dict[str, str] = {
    "all": "All",
    "act-on": "Act on",
    "new": "New",
    "active": "Active",
    "due-soon": "Due soon",
    "stalled": "Stalled",
    "closed": "Closed",
}
_PRIORITY_RANK = {
    LoopPriority.HIGH: 3,
    LoopPriority.MEDIUM: 2,
    LoopPriority.LOW: 1,
}


def is_stale(loop: Loop, now: datetime, *, window: timedelta = STALE_WINDOW) -> bool:
    """Return ``True`` when the loop is stalled or past its stale deadline.

    Loops without a stored ``stale_at`` go stale ``window`` after their last
    update.
    """
    if loop.status == LoopStatus.STALLED:
        return True
    if loop.stale_at is not None:
        return as_utc(loop.stale_at) < as_utc(now)
    if loop.updated_at is not None:
        return next_stale_at(loop.updated_at, window=window) < as_utc(now)
    return False


def is_stale_soon(
    loop: Loop, now: datetime, *, window: timedelta = STALE_SOON_WINDOW
) -> bool:
    """Return ``True`` when the stale deadline is less than ``window`` away."""
    if loop.stale_at is None:
        return False
    return as_utc(loop.stale_at) - as_utc(now) < window


def next_stale_at(
    touched_at: datetime, *, window: timedelta = STALE_WINDOW
) -> datetime:
    """Return the stale deadline for a loop last touched at ``touched_at``."""
    return as_utc(touched_at) + window


def matches_filter(
    loop: Loop,
    key: str,
    now: datetime,
    *,
    stale_soon_window: timedelta = STALE_SOON_WINDOW,
) -> bool:
    """Return whether ``loop`` belongs in the list selected by ``key``."""
    if key not in FILTER_LABELS:
        raise ValueError(f"Unknown loop filter '{key}'")
    if key == "all":
        return True
    if key == "act-on":
        return loop.status == LoopStatus.ACT_ON
    if key == "due-soon":
        return is_stale_soon(loop, now, window=stale_soon_window)
    return loop.status in _STATUS_FILTERS[key]


def filter_loops(
    loops: Iterable[Loop],
    keys: Sequence[str],
    now: datetime,
    *,
    stale_soon_window: timedelta = STALE_SOON_WINDOW,
) -> list[Loop]:
    """Return loops matching any of ``keys``; no keys means no filtering."""
    for key in keys:
        if key not in FILTER_LABELS:
            raise ValueError(f"Unknown loop filter '{key}'")
    if not keys:
        return list(loops)
    return [
        loop
        for loop in loops
        if any(
            matches_filter(loop, key, now, stale_soon_window=stale_soon_window)
            for key in keys
        )
    ]


def sort_by_priority(loops: Iterable[Loop]) -> list[Loop]:
    """Stable sort placing high priority loops first."""
    return sorted(
        loops, key=lambda loop: _PRIORITY_RANK.get(loop.priority, 0), reverse=True
    )


def compute_stats(
    loops: Sequence[Loop],
    now: datetime,
    *,
    stale_soon_window: timedelta = STALE_SOON_WINDOW,
) -> LoopStats:
    """Count loops per status plus open loops about to go stale."""
    by_status = Counter(loop.status for loop in loops)
    stale_soon = sum(
        1
        for loop in loops
        if not loop.is_closed
        and is_stale_soon(loop, now, window=stale_soon_window)
    )
    return LoopStats(
        total=len(loops),
        new=by_status[LoopStatus.NEW],
        active=by_status[LoopStatus.ACTIVE],
        stalled=by_status[LoopStatus.STALLED],
        closed=by_status[LoopStatus.CLOSED],
        act_on=by_status[LoopStatus.ACT_ON],
        stale_soon=stale_soon,
    )


__all__ = [
    "FILTER_LABELS",
    "compute_stats",
    "filter_loops",
    "is_stale",
    "is_stale_soon",
    "matches_filter",
    "next_stale_at",
    "sort_by_priority",
]
