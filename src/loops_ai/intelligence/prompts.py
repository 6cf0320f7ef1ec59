"""Prompt templates for LLM-driven follow-up features."""

from __future__ import annotations

import json
from collections.abc import Sequence
from textwrap import dedent

from loops_ai.core.datetime_utils import serialize_datetime
from loops_ai.core.models import Loop, LoopUpdate

FOLLOW_UP_INSTRUCTIONS = dedent(
    """
    You are a follow-up copilot. Given a list of loops (tasks) return the 3-5 that need action first.

    Consider, in order:
    - Priority: high > medium > low.
    - Status: stalled or act_on are urgent; active is mid; new can wait; closed is never returned.
    - Due dates: overdue > due within 3 days > due within 7 days > later/none.
    - Staleness / last update: items untouched for 48h should be lifted.
    - Clarity of next step: if immediateNextStep is missing, call that out.

    Respond with a short rationale for each picked loop explaining why it bubbled up.
    """
).strip()

_FOLLOW_UP_SCHEMA = dedent(
    """
    Respond strictly with JSON using this schema:
    {
      "suggestions": [
        {"loopId": string, "rationale": string, "score": number}
      ]
    }
    Higher scores mean more urgent. Do not include any additional keys or prose.
    """
).strip()


def serialize_loop(loop: Loop) -> dict[str, object]:
    """Return the camelCase representation shared with the loop store."""
    return {
        "id": loop.id,
        "title": loop.title,
        "primaryObjective": loop.primary_objective,
        "immediateNextStep": loop.immediate_next_step,
        "status": loop.status.value,
        "priority": loop.priority.value,
        "dueAt": serialize_datetime(loop.due_at),
        "updatedAt": serialize_datetime(loop.updated_at),
        "staleAt": serialize_datetime(loop.stale_at),
    }


def build_follow_up_prompt(
    loops: Sequence[Loop], *, now_text: str, instructions: str = FOLLOW_UP_INSTRUCTIONS
) -> str:
    """Compose the ranking prompt for a list of open loops."""
    serialized = json.dumps([serialize_loop(loop) for loop in loops], indent=2)
    return "\n\n".join(
        [
            instructions.strip(),
            _FOLLOW_UP_SCHEMA,
            f"Current time: {now_text}",
            f"Here are the loops:\n{serialized}",
        ]
    )


_NEXT_STEP_TEMPLATE = dedent(
    """
    You are an expert project manager.
    Your goal is to suggest a concrete, actionable, immediate next step for a project loop.

    Primary Objective: "{objective}"

    Recent Updates (most recent first):
    {updates}

    Based on the objective and the recent updates, formulate a single, clear, immediate next step.
    The next step should be actionable and specific.
    Ideally include an owner and a due date if implied by context, otherwise keep it general but actionable.
    Keep it under 200 characters.

    Return ONLY JSON matching this schema:
    {{
      "nextStep": string
    }}
    """
).strip()


def build_next_step_prompt(objective: str, updates: Sequence[LoopUpdate]) -> str:
    """Compose a prompt asking for one immediate next step."""
    update_lines = "\n".join(f"- {update.body}" for update in updates) or "- none yet"
    return _NEXT_STEP_TEMPLATE.format(objective=objective, updates=update_lines)


__all__ = [
    "FOLLOW_UP_INSTRUCTIONS",
    "build_follow_up_prompt",
    "build_next_step_prompt",
    "serialize_loop",
]
