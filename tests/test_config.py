"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from loops_ai.core.config import FollowUpSettings, load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.follow_up.scorer == "local"
    assert settings.follow_up.max_suggestions == 5
    assert settings.storage.loops_path == Path("./loops.json")
    assert settings.llm.fallback_enabled is True


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "LOOPS_AI_FOLLOW_UP__SCORER=remote\n"
        "LOOPS_AI_LLM__MODEL=llama3\n"
        "LOOPS_AI_LLM__FALLBACK_ENABLED=false\n"
        "OTHER_APP_SETTING=ignored\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.follow_up.scorer == "remote"
    assert settings.llm.model == "llama3"
    assert settings.llm.fallback_enabled is False


def test_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Process environment variables take precedence over the env file."""

    env_file = tmp_path / "test.env"
    env_file.write_text("LOOPS_AI_LOGGING__LEVEL=WARNING\n", encoding="utf-8")
    monkeypatch.setenv("LOOPS_AI_LOGGING__LEVEL", "DEBUG")

    settings = load_app_settings(env_file=env_file)
    assert settings.logging.level == "DEBUG"


def test_suggestion_cap_cannot_exceed_five() -> None:
    with pytest.raises(ValidationError):
        FollowUpSettings(max_suggestions=6)
