"""Integration tests for the FastAPI web application."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from loops_ai.core.config import AppSettings, FollowUpSettings
from loops_ai.web import create_app
from loops_ai.web.app import LLM_CLIENT, build_container

NOW = "2025-10-26T12:00:00Z"


class StubLLM:
    """LLM stub returning a predetermined response."""

    def __init__(self, response: str) -> None:
        self.response = response
        self.provider_id = "stub-llm"
        self.closed = False

    def generate(self, prompt: str) -> str:
        del prompt
        return self.response

    def close(self) -> None:
        self.closed = True


def _loops() -> list[dict[str, object]]:
    return [
        {
            "id": "loop-high-stalled",
            "title": "Ship onboarding walkthrough",
            "primaryObjective": "Publish the interactive walkthrough",
            "immediateNextStep": "",
            "status": "stalled",
            "priority": "high",
            "dueAt": "2025-10-24T12:00:00Z",
            "staleAt": "2025-10-23T12:00:00Z",
        },
        {
            "id": "loop-medium-acton",
            "title": "Revamp billing emails",
            "primaryObjective": "Improve clarity of invoice emails",
            "immediateNextStep": "Draft new copy for renewal notice",
            "status": "act_on",
            "priority": "medium",
            "dueAt": "2025-11-01T12:00:00Z",
            "staleAt": "2025-10-26T18:00:00Z",
        },
        {
            "id": "loop-closed",
            "title": "Old launch",
            "primaryObjective": "Done",
            "immediateNextStep": None,
            "status": "closed",
            "priority": "high",
            "dueAt": "2025-09-01T12:00:00Z",
        },
        {
            "id": "loop-low-new",
            "title": "Someday idea",
            "primaryObjective": "Explore",
            "immediateNextStep": "Read the notes",
            "status": "new",
            "priority": "low",
        },
    ]


def _client(settings: AppSettings | None = None, llm: StubLLM | None = None):
    app_settings = settings or AppSettings()
    container = build_container(app_settings)
    if llm is not None:
        container.register(LLM_CLIENT, lambda _: llm)
    fixed_now = datetime(2025, 10, 26, 12, 0, tzinfo=timezone.utc)
    return TestClient(
        create_app(app_settings, container=container, clock=lambda: fixed_now)
    )


def test_follow_ups_endpoint_ranks_open_loops() -> None:
    with _client() as client:
        response = client.post("/api/follow-ups", json={"loops": _loops(), "now": NOW})

    assert response.status_code == 200
    payload = response.json()
    assert payload["provider"] == "rules"
    assert payload["usedFallback"] is False
    assert payload["suggestions"] == [
        {
            "loopId": "loop-high-stalled",
            "rationale": (
                "High priority, Stalled and needs movement, Overdue by 2 days, "
                "Stale for 48h+, Needs next step defined"
            ),
            "score": 16,
        },
        {
            "loopId": "loop-medium-acton",
            "rationale": "Flagged to act on, Due within a week",
            "score": 6,
        },
    ]
    assert [card["id"] for card in payload["cards"]] == [
        "loop-high-stalled",
        "loop-medium-acton",
    ]


def test_follow_ups_uses_clock_when_now_missing() -> None:
    with _client() as client:
        response = client.post("/api/follow-ups", json={"loops": _loops()})

    assert response.status_code == 200
    assert response.json()["suggestions"][0]["score"] == 16


def test_follow_ups_with_remote_scorer() -> None:
    llm = StubLLM(
        json.dumps(
            {
                "suggestions": [
                    {"loopId": "loop-closed", "rationale": "Closed", "score": 99},
                    {"loopId": "loop-low-new", "rationale": "Worth a look", "score": 2},
                ]
            }
        )
    )
    settings = AppSettings(follow_up=FollowUpSettings(scorer="remote"))

    with _client(settings, llm) as client:
        health = client.get("/health")
        response = client.post("/api/follow-ups", json={"loops": _loops(), "now": NOW})

    assert health.json() == {"status": "ok", "scorer": "stub-llm"}
    assert response.json()["suggestions"] == [
        {"loopId": "loop-low-new", "rationale": "Worth a look", "score": 2}
    ]
    assert llm.closed


def test_invalid_loop_records_return_422() -> None:
    broken = _loops()
    broken[0]["status"] = "archived"

    with _client() as client:
        response = client.post("/api/follow-ups", json={"loops": broken})

    assert response.status_code == 422


def test_stats_endpoint_counts_loops() -> None:
    with _client() as client:
        response = client.post("/api/loops/stats", json={"loops": _loops(), "now": NOW})

    assert response.json() == {
        "total": 4,
        "new": 1,
        "active": 0,
        "stalled": 1,
        "closed": 1,
        "act_on": 1,
        "stale_soon": 2,
    }


def test_filter_endpoint_combines_filters_and_sorts() -> None:
    body = {
        "loops": _loops(),
        "now": NOW,
        "filters": ["new", "act-on", "closed"],
        "sortBy": "priority",
    }

    with _client() as client:
        response = client.post("/api/loops/filter", json=body)
        rejected = client.post(
            "/api/loops/filter", json={"loops": _loops(), "filters": ["someday"]}
        )

    assert [loop["id"] for loop in response.json()["loops"]] == [
        "loop-closed",
        "loop-medium-acton",
        "loop-low-new",
    ]
    assert rejected.status_code == 422


def test_filter_endpoint_flags_stale_loops_with_configured_window() -> None:
    quiet = {
        "id": "loop-quiet",
        "title": "Quiet thread",
        "primaryObjective": "Keep in touch",
        "immediateNextStep": "Send a check-in",
        "status": "active",
        "priority": "low",
        "updatedAt": "2025-10-25T00:00:00Z",
    }
    body = {"loops": [*_loops(), quiet], "now": NOW}
    narrow = AppSettings(follow_up=FollowUpSettings(stale_window_hours=24))

    with _client() as client:
        default_flags = {
            loop["id"]: loop["isStale"]
            for loop in client.post("/api/loops/filter", json=body).json()["loops"]
        }
    with _client(narrow) as client:
        narrow_flags = {
            loop["id"]: loop["isStale"]
            for loop in client.post("/api/loops/filter", json=body).json()["loops"]
        }

    assert default_flags == {
        "loop-high-stalled": True,
        "loop-medium-acton": False,
        "loop-closed": False,
        "loop-low-new": False,
        "loop-quiet": False,
    }
    assert narrow_flags["loop-quiet"] is True



def test_next_step_endpoint_uses_llm() -> None:
    llm = StubLLM(json.dumps({"nextStep": "Re-run QA on step 4"}))
    body = {
        "objective": "Ship onboarding walkthrough",
        "updates": [
            {"id": "upd-1", "loopId": "loop-high-stalled", "body": "Logged defects."}
        ],
    }

    with _client(llm=llm) as client:
        response = client.post("/api/next-step", json=body)

    assert response.status_code == 200
    assert response.json() == {"nextStep": "Re-run QA on step 4"}
