from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Mapping, Sequence

from wordwise_analysis.analyzers.base import Analyzer
from wordwise_analysis.analyzers.remote import AnalysisTransport
from wordwise_analysis.models import Finding, Span, new_finding_id


def make_finding(
    text: str,
    original: str,
    *,
    kind: str = "grammar",
    severity: str = "medium",
    suggestion: str = "fixed",
    source: str = "rules",
    confidence: float = 0.8,
    start: int | None = None,
) -> Finding:
    """Build a finding whose span points at ``original`` inside ``text``."""
    index = text.find(original) if start is None else start
    return Finding(
        id=new_finding_id("test"),
        kind=kind,
        severity=severity,
        span=Span(index, index + len(original)),
        original_text=original,
        suggested_text=suggestion,
        confidence=confidence,
        source=source,
    )


class StaticAnalyzer(Analyzer):
    """Records every call and answers through ``respond(text)``."""

    def __init__(
        self,
        respond: Callable[[str], Sequence[Finding]] | None = None,
        *,
        delay: Callable[[str], float] | None = None,
    ) -> None:
        self.calls: List[str] = []
        self._respond = respond
        self._delay = delay

    async def analyze(self, text: str) -> List[Finding]:
        self.calls.append(text)
        if self._delay is not None:
            await asyncio.sleep(self._delay(text))
        if self._respond is None:
            return []
        return list(self._respond(text))


class FailingAnalyzer(Analyzer):
    async def analyze(self, text: str) -> List[Finding]:
        raise RuntimeError("analyzer exploded")


class StaticTransport(AnalysisTransport):
    def __init__(
        self, payload: Mapping[str, Any] | None = None, error: Exception | None = None
    ) -> None:
        self.calls: List[str] = []
        self._payload = payload or {}
        self._error = error

    def fetch(self, text: str) -> Mapping[str, Any]:
        self.calls.append(text)
        if self._error is not None:
            raise self._error
        return self._payload
