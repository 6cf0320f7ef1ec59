"""Follow-up prioritisation and LLM-assisted services."""

from loops_ai.core.interfaces import SuggestionError

from .filters import compute_stats, filter_loops, is_stale, sort_by_priority
from .follow_up import (
    FollowUpStreamService,
    LocalFollowUpScorer,
    RemoteFollowUpScorer,
    build_follow_up_scorer,
    suggest_follow_ups,
)
from .llm import LLMClient, LLMError, OllamaClient
from .next_step import NextStepSuggester
from .ranking import MAX_SUGGESTIONS, rank_candidates
from .scoring import score_loop, score_loops

__all__ = [
    "FollowUpStreamService",
    "LLMClient",
    "LLMError",
    "LocalFollowUpScorer",
    "MAX_SUGGESTIONS",
    "NextStepSuggester",
    "OllamaClient",
    "RemoteFollowUpScorer",
    "SuggestionError",
    "build_follow_up_scorer",
    "compute_stats",
    "filter_loops",
    "is_stale",
    "rank_candidates",
    "score_loop",
    "score_loops",
    "sort_by_priority",
    "suggest_follow_ups",
]
