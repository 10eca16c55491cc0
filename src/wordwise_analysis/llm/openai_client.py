from __future__ import annotations

import importlib
import logging
import time
from typing import Any, Callable, Mapping, cast

from ..config import OpenAISettings

logger = logging.getLogger(__name__)

OpenAI: Callable[..., Any] | None = None

MAX_BACKOFF_SECONDS = 5


class OpenAIAnalysisClient:
    """JSON-mode chat completions against an OpenAI-compatible API, with retries."""

    def __init__(self, settings: OpenAISettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("An API key is required for the LLM analysis backend.")
        self._settings = settings
        self._api_key = api_key
        self._factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None
        self._max_attempts = max(1, settings.max_attempts)

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    def complete_json(self, *, system_prompt: str, user_prompt: str) -> str:
        """Return the raw JSON text the model produced for one analysis request."""
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._chat().chat.completions.create(
                    model=self._settings.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=self._settings.temperature,
                    max_tokens=self._settings.max_output_tokens,
                    response_format={"type": "json_object"},
                    timeout=self._settings.request_timeout,
                )
                content = self._extract_text(response)
            except Exception as exc:  # pragma: no cover - network-related
                last_error = exc
                logger.warning(
                    "LLM analysis attempt %s/%s failed: %s",
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt < self._max_attempts:
                    time.sleep(_backoff(attempt))
                continue
            logger.debug("LLM analysis returned %s chars on attempt %s", len(content), attempt)
            return content
        raise RuntimeError("LLM analysis failed after retries.") from last_error

    def _chat(self) -> Any:
        if self._client is None:
            self._client = self._factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = _field(response, "choices")
        if not choices:
            raise RuntimeError("LLM response is missing choices.")
        message = _field(choices[0], "message")
        if message is None:
            raise RuntimeError("LLM response choice has no message.")
        content = _field(message, "content")
        if not content:
            raise RuntimeError("LLM response message has no content.")
        return str(content)


def _field(item: Any, name: str) -> Any:
    """Read ``name`` from SDK objects and plain dict payloads alike."""
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _backoff(attempt: int) -> float:
    return min(2 ** (attempt - 1), MAX_BACKOFF_SECONDS)


def _load_openai_factory() -> Callable[..., Any]:
    """Import the OpenAI SDK on first use so it stays an optional extra."""
    global OpenAI
    if OpenAI is not None:
        return OpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[llm-openai]'."
        ) from exc
    factory = getattr(module, "OpenAI", None)
    if factory is None:  # pragma: no cover
        raise RuntimeError("openai.OpenAI client class is unavailable in this environment.")
    OpenAI = cast(Callable[..., Any], factory)
    return OpenAI
