"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from .models import FollowUpResult, Loop, LoopUpdate


class SuggestionError(RuntimeError):
    """Raised when follow-up suggestions cannot be produced."""


class LoopSource(Protocol):
    """Read-only access to the loops owned by the loop store."""

    def list_loops(self) -> list[Loop]:
        """Return every loop known to the store, in store order."""
        raise NotImplementedError


class FollowUpScorer(Protocol):
    """Ranks loops into a short list of follow-up suggestions."""

    @property
    def provider_id(self) -> str:
        """Identifier describing how suggestions were produced."""
        raise NotImplementedError

    def score(self, loops: Sequence[Loop], now: datetime) -> FollowUpResult:
        """Return at most five suggestions, highest score first."""
        raise NotImplementedError


class NextStepService(Protocol):
    """Proposes the immediate next step for a loop."""

    def suggest(self, objective: str, updates: Sequence[LoopUpdate]) -> str:
        """Return a short, actionable next step."""
        raise NotImplementedError


__all__ = [
    "FollowUpScorer",
    "LoopSource",
    "NextStepService",
    "SuggestionError",
]
