"""LLM client abstractions used by intelligence features."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urljoin

import httpx

from loops_ai.core.config import LlmSettings

LOGGER = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the LLM provider fails to respond as expected."""


class LLMClient(Protocol):
    """Protocol describing the minimal LLM client behaviour."""

    @property
    def provider_id(self) -> str:
        """Identifier describing the backing model/provider."""
        raise NotImplementedError

    def generate(self, prompt: str) -> str:
        """Return the raw text completion for ``prompt``."""
        raise NotImplementedError


@dataclass(slots=True)
class OllamaClient:
    """Synchronous client for the Ollama HTTP API.

    Every prompt in this project asks for a JSON document, so requests are
    sent with Ollama's ``format: json`` constraint. The underlying
    :class:`httpx.Client` is created with the instance and released by
    :meth:`close`.
    """

    settings: LlmSettings
    http_client: httpx.Client = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.http_client is None:
            self.http_client = httpx.Client(timeout=self.settings.timeout_seconds)

    def generate(self, prompt: str) -> str:
        """Send a completion request to the Ollama server."""
        endpoint = _resolve_endpoint(self.settings.base_url)
        options: dict[str, object] = {"temperature": self.settings.temperature}
        if self.settings.max_output_tokens is not None:
            options["num_predict"] = self.settings.max_output_tokens
        payload: dict[str, object] = {
            "model": self.settings.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": options,
        }

        attempts = self.settings.max_attempts
        data: dict[str, object] | None = None
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                response = self.http_client.post(
                    endpoint,
                    json=payload,
                    timeout=self.settings.timeout_seconds,
                )
                response.raise_for_status()
                data = response.json()
                break
            except httpx.HTTPError as exc:
                last_error = exc
                LOGGER.debug("LLM attempt %s/%s failed: %s", attempt, attempts, exc)
            except json.JSONDecodeError as exc:
                raise LLMError("LLM returned invalid JSON") from exc

            if attempt < attempts:
                delay = min(2**attempt, 8)
                time.sleep(delay)

        if data is None:
            raise LLMError("LLM request failed after retries") from last_error

        result = data.get("response")
        if not isinstance(result, str):
            raise LLMError("LLM response missing 'response' field")
        return result

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.http_client.close()

    @property
    def provider_id(self) -> str:
        """Return a human readable identifier for the configured model."""
        return f"ollama:{self.settings.model}"


def _resolve_endpoint(base_url: str) -> str:
    trimmed = base_url.rstrip("/") + "/"
    return urljoin(trimmed, "api/generate")


__all__ = ["LLMClient", "OllamaClient", "LLMError"]
