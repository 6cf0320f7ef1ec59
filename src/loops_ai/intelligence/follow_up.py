"""Follow-up suggestion scorers and the stream that presents them."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from datetime import datetime

from loops_ai.core.config import FollowUpSettings
from loops_ai.core.datetime_utils import as_utc, serialize_datetime
from loops_ai.core.interfaces import FollowUpScorer, SuggestionError
from loops_ai.core.models import (
    ROUTINE_CHECK,
    FollowUpCard,
    FollowUpResult,
    Loop,
    Suggestion,
)

from .llm import LLMClient, LLMError
from .prompts import build_follow_up_prompt
from .ranking import MAX_SUGGESTIONS, rank_candidates
from .scoring import score_loops

LOGGER = logging.getLogger(__name__)

LOCAL_PROVIDER = "rules"


def suggest_follow_ups(
    loops: Sequence[Loop], now: datetime, *, limit: int = MAX_SUGGESTIONS
) -> list[Suggestion]:
    """Score open loops and return the ranked shortlist."""
    return rank_candidates(score_loops(loops, now), limit=limit)


class LocalFollowUpScorer(FollowUpScorer):
    """Deterministic rule-based scorer."""

    def __init__(self, *, limit: int = MAX_SUGGESTIONS) -> None:
        self._limit = limit

    @property
    def provider_id(self) -> str:
        return LOCAL_PROVIDER

    def score(self, loops: Sequence[Loop], now: datetime) -> FollowUpResult:
        suggestions = suggest_follow_ups(loops, now, limit=self._limit)
        return FollowUpResult(
            suggestions=tuple(suggestions),
            provider=self.provider_id,
            used_fallback=False,
        )


class RemoteFollowUpScorer(FollowUpScorer):
    """Delegate ranking to an LLM while holding it to the local output contract.

    Whatever the model returns is filtered to known, open loops, stripped of
    duplicates and non-positive scores, stably sorted and capped, so callers
    cannot tell the two scorers apart by shape. Transport or parsing failures
    fall back to the rule-based scorer when ``fallback_enabled`` is set.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        fallback_enabled: bool = True,
        limit: int = MAX_SUGGESTIONS,
    ) -> None:
        self._llm_client = llm_client
        self._fallback_enabled = fallback_enabled
        self._limit = min(limit, MAX_SUGGESTIONS)
        self._fallback = LocalFollowUpScorer(limit=limit)

    @property
    def provider_id(self) -> str:
        return self._llm_client.provider_id

    def score(self, loops: Sequence[Loop], now: datetime) -> FollowUpResult:
        if loops is None:
            raise TypeError("loops must be a sequence of Loop records, not None")
        open_loops = [loop for loop in loops if not loop.is_closed]
        if not open_loops:
            return FollowUpResult(
                suggestions=(), provider=self.provider_id, used_fallback=False
            )

        prompt = build_follow_up_prompt(
            open_loops, now_text=serialize_datetime(as_utc(now)) or ""
        )
        try:
            raw_output = self._llm_client.generate(prompt)
            suggestions = _parse_suggestions(raw_output, open_loops, limit=self._limit)
        except (LLMError, ValueError) as exc:
            if not self._fallback_enabled:
                raise SuggestionError("Remote follow-up scoring failed") from exc
            LOGGER.warning("LLM follow-up scoring failed, using rules: %s", exc)
            fallback = self._fallback.score(loops, now)
            return FollowUpResult(
                suggestions=fallback.suggestions,
                provider=fallback.provider,
                used_fallback=True,
            )

        return FollowUpResult(
            suggestions=tuple(suggestions),
            provider=self.provider_id,
            used_fallback=False,
        )


def _parse_suggestions(
    raw: str, open_loops: Sequence[Loop], *, limit: int
) -> list[Suggestion]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("LLM output was not valid JSON") from exc

    items = payload.get("suggestions") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValueError("LLM output 'suggestions' must be a list")

    known_ids = {loop.id for loop in open_loops}
    seen: set[str] = set()
    accepted: list[Suggestion] = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Each suggestion must be an object")
        loop_id = item.get("loopId", item.get("taskId"))
        if not isinstance(loop_id, str):
            raise ValueError("Suggestion missing 'loopId'")
        score = _coerce_score(item.get("score"))
        if loop_id not in known_ids or loop_id in seen:
            LOGGER.debug("Dropping unknown or repeated loop id %s", loop_id)
            continue
        seen.add(loop_id)
        if score <= 0:
            continue
        rationale = item.get("rationale")
        if not isinstance(rationale, str) or not rationale.strip():
            rationale = ROUTINE_CHECK
        accepted.append(
            Suggestion(loop_id=loop_id, rationale=rationale.strip(), score=score)
        )

    accepted.sort(key=lambda suggestion: suggestion.score, reverse=True)
    return accepted[:limit]


def _coerce_score(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Suggestion 'score' must be numeric")
    if not math.isfinite(value) or value < 0:
        raise ValueError("Suggestion 'score' must be a non-negative number")
    return round(value)


def build_follow_up_scorer(
    settings: FollowUpSettings,
    llm_client: LLMClient | None,
    *,
    fallback_enabled: bool = True,
) -> FollowUpScorer:
    """Return the scorer selected by configuration."""
    if settings.scorer == "remote":
        if llm_client is not None:
            return RemoteFollowUpScorer(
                llm_client,
                fallback_enabled=fallback_enabled,
                limit=settings.max_suggestions,
            )
        LOGGER.warning("Remote scorer requested without an LLM client; using rules")
    return LocalFollowUpScorer(limit=settings.max_suggestions)


class FollowUpStreamService:
    """Join ranked suggestions with the loops they point at."""

    def __init__(self, scorer: FollowUpScorer) -> None:
        self._scorer = scorer

    @property
    def scorer(self) -> FollowUpScorer:
        return self._scorer

    def build_stream(
        self, loops: Sequence[Loop], now: datetime
    ) -> tuple[FollowUpResult, tuple[FollowUpCard, ...]]:
        """Return the scorer result and the cards to render, in rank order."""
        result = self._scorer.score(loops, now)
        by_id = {loop.id: loop for loop in loops}
        cards: list[FollowUpCard] = []
        for suggestion in result.suggestions:
            loop = by_id.get(suggestion.loop_id)
            if loop is None:
                continue
            cards.append(
                FollowUpCard(
                    loop=loop, rationale=suggestion.rationale, score=suggestion.score
                )
            )
        return result, tuple(cards)


__all__ = [
    "FollowUpStreamService",
    "LOCAL_PROVIDER",
    "LocalFollowUpScorer",
    "RemoteFollowUpScorer",
    "build_follow_up_scorer",
    "suggest_follow_ups",
]
