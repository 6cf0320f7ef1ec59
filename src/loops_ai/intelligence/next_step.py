"""Suggest the immediate next step for a loop."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from loops_ai.core.interfaces import NextStepService
from loops_ai.core.models import LoopUpdate

from .llm import LLMClient, LLMError
from .prompts import build_next_step_prompt

LOGGER = logging.getLogger(__name__)

MAX_NEXT_STEP_LENGTH = 200
EMPTY_SUGGESTION = "Review recent updates and decide on the next action."
FAILED_SUGGESTION = "Could not generate suggestion. Please try again."


class NextStepSuggester(NextStepService):
    """Ask an LLM for a next step, falling back to canned guidance."""

    def __init__(self, llm_client: LLMClient | None) -> None:
        self._llm_client = llm_client

    def suggest(self, objective: str, updates: Sequence[LoopUpdate]) -> str:
        """Return a next step no longer than :data:`MAX_NEXT_STEP_LENGTH`."""
        if self._llm_client is None:
            return _deterministic_next_step(updates)

        prompt = build_next_step_prompt(objective.strip(), updates)
        try:
            raw_output = self._llm_client.generate(prompt)
            next_step = _parse_next_step(raw_output)
        except (LLMError, ValueError) as exc:
            LOGGER.warning("Next step generation failed: %s", exc)
            return FAILED_SUGGESTION

        if not next_step:
            return EMPTY_SUGGESTION
        return _truncate(next_step)


def _parse_next_step(raw: str) -> str | None:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Next step output was not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValueError("Next step output must be an object")

    value = payload.get("nextStep")
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Next step output 'nextStep' must be a string")
    return value.strip() or None


def _deterministic_next_step(updates: Sequence[LoopUpdate]) -> str:
    for update in updates:
        body = " ".join(update.body.split())
        if body:
            return _truncate(f"Follow up on: {body}")
    return EMPTY_SUGGESTION


def _truncate(text: str) -> str:
    if len(text) <= MAX_NEXT_STEP_LENGTH:
        return text
    return text[: MAX_NEXT_STEP_LENGTH - 3].rstrip() + "..."


__all__ = [
    "EMPTY_SUGGESTION",
    "FAILED_SUGGESTION",
    "MAX_NEXT_STEP_LENGTH",
    "NextStepSuggester",
]
