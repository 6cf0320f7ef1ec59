"""Select the highest scoring candidates as follow-up suggestions."""

from __future__ import annotations

from collections.abc import Iterable

from loops_ai.core.models import ScoredLoop, Suggestion

MAX_SUGGESTIONS = 5


def rank_candidates(
    candidates: Iterable[ScoredLoop], *, limit: int = MAX_SUGGESTIONS
) -> list[Suggestion]:
    """Return up to ``limit`` suggestions ordered by descending score.

    Candidates with a score of zero or less are dropped. Equal scores keep
    their input order because :func:`sorted` is stable, so repeated calls
    with the same loops never reshuffle ties. ``limit`` can narrow the
    result but never widen it past :data:`MAX_SUGGESTIONS`.
    """
    if candidates is None:
        raise TypeError("candidates must be an iterable, not None")
    if limit < 1:
        raise ValueError("limit must be at least 1")

    eligible = [candidate for candidate in candidates if candidate.score > 0]
    ranked = sorted(eligible, key=lambda candidate: candidate.score, reverse=True)
    return [
        Suggestion(
            loop_id=candidate.loop_id,
            rationale=candidate.rationale,
            score=candidate.score,
        )
        for candidate in ranked[: min(limit, MAX_SUGGESTIONS)]
    ]


__all__ = ["MAX_SUGGESTIONS", "rank_candidates"]
