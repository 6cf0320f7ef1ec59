"""Tests for the next-step suggestion service."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from loops_ai.core.models import LoopUpdate
from loops_ai.intelligence.llm import LLMError
from loops_ai.intelligence.next_step import (
    EMPTY_SUGGESTION,
    FAILED_SUGGESTION,
    MAX_NEXT_STEP_LENGTH,
    NextStepSuggester,
)


class StubLLM:
    """LLM stub returning a predetermined response."""

    def __init__(self, response: str) -> None:
        self.response = response
        self.provider_id = "stub-llm"
        self.last_prompt: str | None = None

    def generate(self, prompt: str) -> str:
        self.last_prompt = prompt
        return self.response


class FailingLLM:
    """LLM stub that always raises an error."""

    provider_id = "failing-llm"

    def generate(self, prompt: str) -> str:
        del prompt
        raise LLMError("failure")


def _updates() -> list[LoopUpdate]:
    created = datetime(2025, 10, 26, 6, 0, tzinfo=timezone.utc)
    return [
        LoopUpdate(
            id="upd-1",
            loop_id="loop-1",
            body="Reviewed QA feedback and logged defects for step 4.",
            created_at=created,
        ),
        LoopUpdate(
            id="upd-2",
            loop_id="loop-1",
            body="Drafted the walkthrough copy.",
            created_at=created,
        ),
    ]


def test_llm_next_step_is_returned() -> None:
    llm = StubLLM(json.dumps({"nextStep": " Fix the step 4 CTA and re-run QA "}))

    result = NextStepSuggester(llm).suggest("Ship onboarding walkthrough", _updates())

    assert result == "Fix the step 4 CTA and re-run QA"
    assert llm.last_prompt is not None
    assert 'Primary Objective: "Ship onboarding walkthrough"' in llm.last_prompt
    first = llm.last_prompt.index("Reviewed QA feedback")
    second = llm.last_prompt.index("Drafted the walkthrough copy")
    assert first < second


def test_empty_model_answer_uses_review_hint() -> None:
    llm = StubLLM(json.dumps({"nextStep": "  "}))

    assert NextStepSuggester(llm).suggest("Objective", []) == EMPTY_SUGGESTION


def test_model_failure_returns_retry_message() -> None:
    assert NextStepSuggester(FailingLLM()).suggest("Objective", []) == FAILED_SUGGESTION


def test_invalid_json_returns_retry_message() -> None:
    assert NextStepSuggester(StubLLM("nope")).suggest("Objective", []) == (
        FAILED_SUGGESTION
    )


def test_long_answers_are_truncated() -> None:
    llm = StubLLM(json.dumps({"nextStep": "x" * 500}))

    result = NextStepSuggester(llm).suggest("Objective", [])

    assert len(result) == MAX_NEXT_STEP_LENGTH
    assert result.endswith("...")


def test_without_llm_the_latest_update_is_used() -> None:
    result = NextStepSuggester(None).suggest("Objective", _updates())

    assert result == (
        "Follow up on: Reviewed QA feedback and logged defects for step 4."
    )


def test_without_llm_or_updates_the_review_hint_is_used() -> None:
    assert NextStepSuggester(None).suggest("Objective", []) == EMPTY_SUGGESTION
