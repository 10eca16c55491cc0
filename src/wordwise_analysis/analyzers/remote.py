from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, List, Mapping

import requests

from ..config import RemoteSettings
from ..llm.openai_client import OpenAIAnalysisClient
from ..models import (
    FINDING_KINDS,
    SEVERITIES,
    AnalysisResult,
    AnalysisStatus,
    Finding,
    Scores,
    Span,
    new_finding_id,
)
from ..styles import WritingStyle
from ..textutils import build_metadata
from .fallback import FallbackAnalyzer

logger = logging.getLogger(__name__)

DEFAULT_SCORES = {"correctness": 90, "clarity": 85, "engagement": 80, "delivery": 85}

SYSTEM_PROMPT = (
    "You are an expert writing and grammar assistant. Your primary focus is "
    "correctness: grammar, spelling and punctuation errors. Secondary focus is "
    "clarity, style, engagement and delivery.\n"
    "Return ONLY valid JSON with this structure:\n"
    '{"findings": [{"kind": "spelling|grammar|punctuation|style|clarity|engagement|delivery", '
    '"category": "short label", "severity": "low|medium|high", '
    '"message": "concise description (max 80 chars)", '
    '"explanation": "why the suggestion is better", '
    '"originalText": "exact text copied from the input", '
    '"suggestedText": "replacement text", '
    '"startIndex": 0, "endIndex": 0, "confidence": 0.95}], '
    '"scores": {"correctness": 0, "clarity": 0, "engagement": 0, "delivery": 0}}\n'
    "Rules:\n"
    "- originalText must appear verbatim in the input.\n"
    "- Only report issues you are at least 90% confident about.\n"
    "- Scores are integers from 0 to 100.\n"
    "- Be conservative; do not over-correct stylistic choices."
)

USER_PROMPT_TEMPLATE = "Analyze this text:\n-----\n{text}\n-----"


class RemoteAnalysisError(RuntimeError):
    """The remote analyzer could not produce a usable answer."""


class AnalysisTransport(ABC):
    """Blocking call that returns the remote analyzer's decoded JSON payload."""

    @abstractmethod
    def fetch(self, text: str) -> Mapping[str, Any]:
        raise NotImplementedError


class HTTPEndpointTransport(AnalysisTransport):
    """POSTs ``{"text": ...}`` to an analysis endpoint."""

    def __init__(self, settings: RemoteSettings) -> None:
        if not settings.endpoint:
            raise ValueError("remote.endpoint is required for the http transport.")
        self._settings = settings

    def fetch(self, text: str) -> Mapping[str, Any]:
        try:
            response = requests.post(
                self._settings.endpoint,
                json={"text": text},
                headers=self._settings.headers or None,
                timeout=self._settings.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteAnalysisError(f"Analysis endpoint unreachable: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise RemoteAnalysisError(
                f"Analysis endpoint returned HTTP {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteAnalysisError("Analysis endpoint returned malformed JSON") from exc
        if not isinstance(payload, Mapping):
            raise RemoteAnalysisError("Analysis endpoint returned a non-object payload")
        return payload


class OpenAIChatTransport(AnalysisTransport):
    """Asks an OpenAI-compatible chat model for the endpoint's JSON shape directly."""

    def __init__(
        self,
        client: OpenAIAnalysisClient,
        *,
        style: WritingStyle | None = None,
        system_prompt: str = SYSTEM_PROMPT,
        user_prompt_template: str = USER_PROMPT_TEMPLATE,
    ) -> None:
        self._client = client
        self._system_prompt = system_prompt
        if style is not None:
            self._system_prompt += "\n\n" + style.prompt_modifications()
        self._user_prompt_template = user_prompt_template

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def fetch(self, text: str) -> Mapping[str, Any]:
        raw = self._client.complete_json(
            system_prompt=self._system_prompt,
            user_prompt=self._user_prompt_template.format(text=text),
        )
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise RemoteAnalysisError("LLM returned malformed JSON") from exc
        if not isinstance(payload, Mapping):
            raise RemoteAnalysisError("LLM returned a non-object payload")
        return payload


def parse_remote_payload(payload: Mapping[str, Any], text: str) -> AnalysisResult:
    """
    Normalize a remote payload into a strict AnalysisResult.

    Malformed entries are dropped. Offsets are kept only as hints; entries whose
    original text does not occur in ``text`` are discarded, and a payload whose
    every entry is of that kind is rejected outright.
    """
    raw_findings = payload.get("findings", payload.get("issues"))
    raw_scores = payload.get("scores")
    if raw_findings is None and raw_scores is None:
        raise RemoteAnalysisError("Payload has neither findings nor scores")
    if raw_findings is None:
        raw_findings = []
    if not isinstance(raw_findings, list):
        raise RemoteAnalysisError("Payload findings must be a list")

    findings: List[Finding] = []
    well_formed = 0
    for entry in raw_findings:
        finding = _parse_entry(entry, text)
        if finding is _MALFORMED:
            continue
        well_formed += 1
        if finding is not None:
            findings.append(finding)
    if well_formed and not findings:
        raise RemoteAnalysisError(
            "Every remote finding referenced text absent from the document"
        )
    if len(findings) < well_formed:
        logger.info(
            "Dropped %s remote findings with text absent from the document",
            well_formed - len(findings),
        )

    return AnalysisResult(
        findings=findings,
        scores=_parse_scores(raw_scores),
        metadata=build_metadata(text),
        status=AnalysisStatus.OK,
    )


_MALFORMED: Any = object()


def _parse_entry(entry: Any, text: str) -> Finding | None:
    if not isinstance(entry, Mapping):
        return _MALFORMED
    kind = entry.get("kind", entry.get("type"))
    original = entry.get("originalText")
    if not isinstance(kind, str) or kind.lower().strip() not in FINDING_KINDS:
        return _MALFORMED
    if not isinstance(original, str) or not original:
        return _MALFORMED

    position = text.find(original)
    if position < 0:
        return None

    suggested = entry.get("suggestedText")
    severity = entry.get("severity")
    if not isinstance(severity, str) or severity.lower() not in SEVERITIES:
        severity = "medium"
    return Finding(
        id=new_finding_id("remote"),
        kind=kind.lower().strip(),
        severity=severity.lower(),
        span=_hinted_span(entry, original, position, text),
        original_text=original,
        suggested_text=suggested if isinstance(suggested, str) else original,
        message=_as_text(entry.get("message")),
        explanation=_as_text(entry.get("explanation")),
        confidence=_as_confidence(entry.get("confidence")),
        category=_as_text(entry.get("category")),
        source="remote",
    )


def _hinted_span(entry: Mapping[str, Any], original: str, position: int, text: str) -> Span:
    start, end = entry.get("startIndex"), entry.get("endIndex")
    if (
        isinstance(start, int)
        and isinstance(end, int)
        and not isinstance(start, bool)
        and 0 <= start < end <= len(text)
    ):
        return Span(start, end)
    return Span(position, position + len(original))


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.8
    if not math.isfinite(value):
        return 0.8
    return float(min(1.0, max(0.0, value)))


def _parse_scores(raw: Any) -> Scores:
    source = raw if isinstance(raw, Mapping) else {}
    values = {}
    for name, default in DEFAULT_SCORES.items():
        value = source.get(name)
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            value = default
        values[name] = value
    return Scores.from_components(**values)


class RemoteAnalyzerClient:
    """
    Calls the remote analyzer and never raises: every failure mode degrades to
    the local fallback analyzer with ``status=degraded``.
    """

    source = "remote"

    def __init__(
        self,
        transport: AnalysisTransport,
        *,
        fallback: FallbackAnalyzer | None = None,
        max_chars: int = 4000,
    ) -> None:
        self._transport = transport
        self._fallback = fallback or FallbackAnalyzer()
        self._max_chars = max_chars

    async def analyze(self, text: str) -> AnalysisResult:
        started = time.perf_counter()
        request_text = text[: self._max_chars] if self._max_chars > 0 else text
        try:
            payload = await asyncio.to_thread(self._transport.fetch, request_text)
            result = parse_remote_payload(payload, text)
        except Exception as exc:
            logger.warning("Remote analysis unavailable, using local fallback: %s", exc)
            return self._fallback.analyze(text)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        result.metadata = build_metadata(text, elapsed_ms)
        logger.info(
            "Remote analysis returned %s findings in %sms", len(result.findings), elapsed_ms
        )
        return result
