"""FastAPI application exposing follow-up suggestions as JSON."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Request, status as http_status
from pydantic import BaseModel, ConfigDict, Field

from loops_ai.core import AppSettings, ServiceContainer, load_app_settings
from loops_ai.core.models import Loop
from loops_ai.ingestion import LoopParseError, LoopParser
from loops_ai.intelligence import (
    FollowUpStreamService,
    NextStepSuggester,
    OllamaClient,
    SuggestionError,
    build_follow_up_scorer,
    compute_stats,
    filter_loops,
    is_stale,
    sort_by_priority,
)
from loops_ai.intelligence.prompts import serialize_loop

LOGGER = logging.getLogger(__name__)

LLM_CLIENT = "llm_client"
FOLLOW_UP_STREAM = "follow_up_stream"
NEXT_STEP = "next_step"

UNPROCESSABLE = 422


class LoopsRequest(BaseModel):
    """Loops supplied by the caller plus an optional reference instant."""

    loops: list[dict[str, Any]] = Field(default_factory=list)
    now: datetime | None = None


class FilterRequest(LoopsRequest):
    """Loops to narrow down with dashboard filters."""

    model_config = ConfigDict(populate_by_name=True)

    filters: list[str] = Field(default_factory=list)
    sort_by: Literal["recent", "priority"] = Field(default="recent", alias="sortBy")


class NextStepRequest(BaseModel):
    """Objective and recent updates, most recent first."""

    objective: str = Field(min_length=1)
    updates: list[dict[str, Any]] = Field(default_factory=list)


def build_container(settings: AppSettings) -> ServiceContainer:
    """Register the services the API depends on."""
    container = ServiceContainer()
    needs_llm = settings.follow_up.scorer == "remote"
    container.register(
        LLM_CLIENT,
        lambda _: OllamaClient(settings.llm)
        if settings.llm.base_url and settings.llm.model
        else None,
    )
    container.register(
        FOLLOW_UP_STREAM,
        lambda c: FollowUpStreamService(
            build_follow_up_scorer(
                settings.follow_up,
                c.resolve(LLM_CLIENT) if needs_llm else None,
                fallback_enabled=settings.llm.fallback_enabled,
            )
        ),
    )
    container.register(NEXT_STEP, lambda c: NextStepSuggester(c.resolve(LLM_CLIENT)))
    return container


def create_app(
    settings: AppSettings | None = None,
    *,
    container: ServiceContainer | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings()
    services = container or build_container(app_settings)
    current_time = clock or (lambda: datetime.now(tz=UTC))
    parser = LoopParser()
    stale_soon_window = timedelta(hours=app_settings.follow_up.stale_soon_hours)
    stale_window = timedelta(hours=app_settings.follow_up.stale_window_hours)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        services.close()
        LOGGER.info("Service container closed")

    app = FastAPI(title="Loops AI", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.container = services

    def get_container(request: Request) -> ServiceContainer:
        return request.app.state.container

    def parse_loops(records: Sequence[Mapping[str, Any]]) -> list[Loop]:
        try:
            return parser.parse_many(records)
        except LoopParseError as exc:
            raise HTTPException(
                status_code=UNPROCESSABLE,
                detail=str(exc),
            ) from exc

    @app.get("/health")
    def health(
        container: ServiceContainer = Depends(get_container),  # noqa: B008
    ) -> dict[str, str]:
        stream: FollowUpStreamService = container.resolve(FOLLOW_UP_STREAM)
        return {"status": "ok", "scorer": stream.scorer.provider_id}

    @app.post("/api/follow-ups")
    def follow_ups(
        payload: LoopsRequest,
        container: ServiceContainer = Depends(get_container),  # noqa: B008
    ) -> dict[str, Any]:
        loops = parse_loops(payload.loops)
        now = payload.now or current_time()
        stream: FollowUpStreamService = container.resolve(FOLLOW_UP_STREAM)
        try:
            result, cards = stream.build_stream(loops, now)
        except SuggestionError as exc:
            LOGGER.error("Follow-up scoring failed: %s", exc)
            raise HTTPException(
                status_code=http_status.HTTP_502_BAD_GATEWAY,
                detail="Follow-up suggestions are unavailable",
            ) from exc
        return {
            "provider": result.provider,
            "usedFallback": result.used_fallback,
            "suggestions": [item.to_payload() for item in result.suggestions],
            "cards": [
                {**serialize_loop(card.loop), "rationale": card.rationale}
                for card in cards
            ],
        }

    @app.post("/api/loops/stats")
    def loop_stats(payload: LoopsRequest) -> dict[str, int]:
        loops = parse_loops(payload.loops)
        now = payload.now or current_time()
        stats = compute_stats(loops, now, stale_soon_window=stale_soon_window)
        return asdict(stats)

    @app.post("/api/loops/filter")
    def loop_filter(payload: FilterRequest) -> dict[str, Any]:
        loops = parse_loops(payload.loops)
        now = payload.now or current_time()
        try:
            selected = filter_loops(
                loops, payload.filters, now, stale_soon_window=stale_soon_window
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=UNPROCESSABLE,
                detail=str(exc),
            ) from exc
        if payload.sort_by == "priority":
            selected = sort_by_priority(selected)
        return {
            "loops": [
                {
                    **serialize_loop(loop),
                    "isStale": is_stale(loop, now, window=stale_window),
                }
                for loop in selected
            ]
        }

    @app.post("/api/next-step")
    def next_step(
        payload: NextStepRequest,
        container: ServiceContainer = Depends(get_container),  # noqa: B008
    ) -> dict[str, str]:
        try:
            updates = [parser.parse_update(record) for record in payload.updates]
        except LoopParseError as exc:
            raise HTTPException(
                status_code=UNPROCESSABLE,
                detail=str(exc),
            ) from exc
        suggester: NextStepSuggester = container.resolve(NEXT_STEP)
        return {"nextStep": suggester.suggest(payload.objective, updates)}

    return app


__all__ = ["build_container", "create_app"]
