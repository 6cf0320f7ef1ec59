"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class LoopStatus(StrEnum):
    """Lifecycle state of a loop."""

    NEW = "new"
    ACT_ON = "act_on"
    ACTIVE = "active"
    STALLED = "stalled"
    CLOSED = "closed"


class LoopPriority(StrEnum):
    """Owner-assigned importance of a loop."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True, frozen=True)
class Loop:
    """A tracked commitment as read from the loop store."""

    id: str
    title: str
    primary_objective: str
    immediate_next_step: str | None
    status: LoopStatus
    priority: LoopPriority
    due_at: datetime | None = None
    updated_at: datetime | None = None
    stale_at: datetime | None = None
    created_at: datetime | None = None
    owner_id: str | None = None

    @property
    def is_closed(self) -> bool:
        """Return ``True`` when the loop can no longer be acted on."""
        return self.status == LoopStatus.CLOSED

    @property
    def has_next_step(self) -> bool:
        """Return ``True`` when a non-blank next step is recorded."""
        return bool(self.immediate_next_step and self.immediate_next_step.strip())


@dataclass(slots=True, frozen=True)
class LoopUpdate:
    """Progress note attached to a loop."""

    id: str
    loop_id: str
    body: str
    created_at: datetime | None = None
    author_name: str | None = None


@dataclass(slots=True, frozen=True)
class ScoredLoop:
    """Urgency score and contributing reasons for one candidate loop."""

    loop_id: str
    score: int
    reasons: tuple[str, ...]

    @property
    def rationale(self) -> str:
        """Join reasons into the human readable rationale."""
        if not self.reasons:
            return ROUTINE_CHECK
        return ", ".join(self.reasons)


@dataclass(slots=True, frozen=True)
class Suggestion:
    """Ranked loop that should be followed up on."""

    loop_id: str
    rationale: str
    score: int

    def to_payload(self) -> dict[str, object]:
        """Return the wire representation used by the API and prompts."""
        return {
            "loopId": self.loop_id,
            "rationale": self.rationale,
            "score": self.score,
        }


@dataclass(slots=True, frozen=True)
class FollowUpResult:
    """Suggestions together with how they were produced."""

    suggestions: tuple[Suggestion, ...]
    provider: str
    used_fallback: bool


@dataclass(slots=True, frozen=True)
class FollowUpCard:
    """Suggestion joined with the loop it refers to."""

    loop: Loop
    rationale: str
    score: int


@dataclass(slots=True, frozen=True)
class LoopStats:
    """Counters shown on the loop dashboard."""

    total: int
    new: int
    active: int
    stalled: int
    closed: int
    act_on: int
    stale_soon: int


ROUTINE_CHECK = "Routine check"


__all__ = [
    "FollowUpCard",
    "FollowUpResult",
    "Loop",
    "LoopPriority",
    "LoopStats",
    "LoopStatus",
    "LoopUpdate",
    "ROUTINE_CHECK",
    "ScoredLoop",
    "Suggestion",
]
