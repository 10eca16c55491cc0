"""
Coordinates the analyzers for one editing session.

The orchestrator owns the live findings list. It caches results by content
hash, shares in-flight work between callers asking about the same text,
merges analyzer output by position, hides findings the user already accepted
or dismissed, and decides when a text change deserves a new analysis cycle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Sequence, Set, Tuple

from .analyzers.base import Analyzer
from .analyzers.remote import RemoteAnalyzerClient
from .analyzers.rules import RuleEngine
from .analyzers.spelling import SpellingChecker
from .config import AnalysisConfig
from .decisions import DecisionLedger
from .models import (
    AnalysisMetadata,
    AnalysisResult,
    AnalysisStatus,
    DecisionOutcome,
    Finding,
    Highlight,
    Scores,
)
from .positions import project_highlights, remap_findings
from .scoring import merge_scores
from .textutils import build_metadata, content_hash, count_words, ends_with_sentence

logger = logging.getLogger(__name__)

CommitCallback = Callable[[AnalysisResult, List[Highlight]], None]

# Lower value wins when two findings land on the same span.
SOURCE_PRECEDENCE = {"remote": 0, "fallback": 1, "rules": 2, "spelling": 3}


class OrchestratorState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    SUPPRESSED = "suppressed"


def empty_result() -> AnalysisResult:
    return AnalysisResult(
        findings=[],
        scores=Scores(),
        metadata=AnalysisMetadata(),
        status=AnalysisStatus.EMPTY,
    )


def merge_findings(text: str, findings: Iterable[Finding]) -> List[Finding]:
    """
    Union of analyzer findings with one survivor per span.

    Spans are recomputed against ``text`` first. On a span collision the
    higher-precedence source wins; within one source the earlier finding wins.
    """
    ordered = sorted(
        findings, key=lambda f: SOURCE_PRECEDENCE.get(f.source, len(SOURCE_PRECEDENCE))
    )
    merged: List[Finding] = []
    taken = set()
    for finding in remap_findings(text, ordered):
        if finding.span in taken:
            continue
        taken.add(finding.span)
        merged.append(finding)
    merged.sort(key=lambda f: (f.span.start, f.span.end))
    return merged


class AnalysisOrchestrator:
    """One instance per editing session; call ``dispose()`` when the editor unmounts."""

    def __init__(
        self,
        rule_engine: Analyzer | None = None,
        spelling_checker: Analyzer | None = None,
        remote: RemoteAnalyzerClient | None = None,
        config: AnalysisConfig | None = None,
        *,
        on_commit: CommitCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or AnalysisConfig()
        self._rules = rule_engine or RuleEngine()
        self._spelling = spelling_checker or SpellingChecker()
        self._remote = remote
        self._on_commit = on_commit
        self._clock = clock

        self._ledger = DecisionLedger()
        self._cache: Dict[str, AnalysisResult] = {}
        self._cache_epoch = 0
        self._filtered: Dict[str, Tuple[int, AnalysisResult]] = {}
        self._in_flight: Dict[str, asyncio.Task[AnalysisResult]] = {}

        self._timer: asyncio.TimerHandle | None = None
        self._tasks: Set[asyncio.Task[Any]] = set()
        self._state = OrchestratorState.IDLE
        self._generation = 0
        self._cycle_count = 0
        self._latest_text: str | None = None
        self._latest_key: str | None = None
        self._last_analyzed_text: str | None = None
        self._last_analysis_at: float | None = None

        self._live_text = ""
        self._result = empty_result()
        self._findings: List[Finding] = []
        self._highlights: List[Highlight] = []
        self._disposed = False

    # -- read side -----------------------------------------------------------

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def ledger(self) -> DecisionLedger:
        return self._ledger

    @property
    def cycle_count(self) -> int:
        """Number of analysis cycles started by text changes or explicit requests."""
        return self._cycle_count

    @property
    def result(self) -> AnalysisResult:
        return self._result

    @property
    def findings(self) -> List[Finding]:
        return list(self._findings)

    @property
    def highlights(self) -> List[Highlight]:
        return list(self._highlights)

    @property
    def live_text(self) -> str:
        return self._live_text

    def set_commit_callback(self, callback: CommitCallback | None) -> None:
        self._on_commit = callback

    def find(self, finding_id: str) -> Finding | None:
        for finding in self._findings:
            if finding.id == finding_id:
                return finding
        return None

    # -- one-shot analysis ---------------------------------------------------

    async def analyze(self, text: str) -> AnalysisResult:
        """Analyze ``text`` through the cache; never raises for analyzer failures."""
        if not text.strip():
            return empty_result()
        key = content_hash(text)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Analysis cache hit for %s", key[:12])
            return self._with_decisions(key, cached)

        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._run_analyzers(text, key))
            self._in_flight[key] = pending
            pending.add_done_callback(lambda _task, key=key: self._in_flight.pop(key, None))
        else:
            logger.debug("Joining in-flight analysis for %s", key[:12])
        raw = await asyncio.shield(pending)
        return self._with_decisions(key, raw)

    async def _run_analyzers(self, text: str, key: str) -> AnalysisResult:
        started = self._clock()
        epoch = self._cache_epoch
        jobs = [self._rules.analyze(text), self._spelling.analyze(text)]
        if self._remote is not None:
            jobs.append(self._remote.analyze(text))
        outcomes = await asyncio.gather(*jobs, return_exceptions=True)

        rule_findings = _findings_or_empty(outcomes[0], "rule engine")
        spelling_findings = _findings_or_empty(outcomes[1], "spelling checker")
        local = rule_findings + spelling_findings

        base_scores = Scores()
        remote_findings: List[Finding] = []
        status = AnalysisStatus.OK
        if self._remote is not None:
            remote_outcome = outcomes[2]
            if isinstance(remote_outcome, BaseException):
                logger.warning("Remote analyzer failed: %s", remote_outcome)
                status = AnalysisStatus.DEGRADED
            else:
                remote_findings = list(remote_outcome.findings)
                base_scores = remote_outcome.scores
                status = remote_outcome.status

        merged = merge_findings(text, remote_findings + local)
        elapsed_ms = int((self._clock() - started) * 1000)
        result = AnalysisResult(
            findings=merged,
            scores=merge_scores(base_scores, local, count_words(text)),
            metadata=build_metadata(text, elapsed_ms),
            status=status,
        )
        if epoch == self._cache_epoch:
            self._cache[key] = result
        logger.info(
            "Analysis finished: %s findings (%s remote, %s rules, %s spelling) in %sms",
            len(merged),
            len(remote_findings),
            len(rule_findings),
            len(spelling_findings),
            elapsed_ms,
        )
        return result

    def _with_decisions(self, key: str, raw: AnalysisResult) -> AnalysisResult:
        version = self._ledger.version
        memo = self._filtered.get(key)
        if memo is not None and memo[0] == version:
            return memo[1]
        visible = self._ledger.filter(raw.findings)
        if len(visible) == len(raw.findings):
            filtered = raw
        else:
            filtered = AnalysisResult(
                findings=visible,
                scores=raw.scores,
                metadata=raw.metadata,
                status=raw.status,
            )
        self._filtered[key] = (version, filtered)
        return filtered

    # -- editing-session state machine ---------------------------------------

    def should_analyze_immediately(self, text: str) -> bool:
        """Skip the debounce window for big edits, finished sentences, or long gaps."""
        cfg = self._config
        if not text.strip():
            return True
        if len(text) < cfg.min_immediate_chars:
            return False
        previous = self._last_analyzed_text or ""
        if abs(len(text) - len(previous)) >= cfg.immediate_char_delta:
            return True
        if ends_with_sentence(text):
            return True
        if (
            self._last_analysis_at is not None
            and self._clock() - self._last_analysis_at >= cfg.immediate_after_seconds
        ):
            return True
        return False

    def on_text_changed(self, text: str) -> None:
        """Editor notification; schedules at most one cycle for the latest text."""
        if self._disposed:
            logger.debug("Ignoring text change on a disposed orchestrator")
            return
        self._cancel_timer()
        self._generation += 1
        self._latest_text = text
        self._latest_key = content_hash(text)
        self._follow_edit(text)

        if text == self._last_analyzed_text:
            self._state = OrchestratorState.SUPPRESSED
            logger.debug("Text unchanged since last analysis; nothing to do")
            return
        if self.should_analyze_immediately(text):
            self._start_cycle(text)
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._config.debounce_seconds, self._on_timer)
        self._state = OrchestratorState.DEBOUNCING

    def request_analysis(self, text: str) -> asyncio.Task[None] | None:
        """Start a cycle right away, bypassing the debounce window."""
        if self._disposed:
            return None
        self._cancel_timer()
        self._generation += 1
        self._latest_text = text
        self._latest_key = content_hash(text)
        self._follow_edit(text)
        return self._start_cycle(text)

    async def drain(self) -> None:
        """Wait for every cycle that is already running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_timer(self) -> None:
        self._timer = None
        if self._latest_text is not None and not self._disposed:
            self._start_cycle(self._latest_text)

    def _start_cycle(self, text: str) -> asyncio.Task[None]:
        self._generation += 1
        self._cycle_count += 1
        self._last_analysis_at = self._clock()
        self._state = OrchestratorState.IN_FLIGHT
        task = asyncio.get_running_loop().create_task(
            self._run_cycle(text, content_hash(text), self._generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_cycle(self, text: str, key: str, generation: int) -> None:
        try:
            result = await self.analyze(text)
        except Exception:
            logger.exception("Analysis cycle %s failed", generation)
            if generation == self._generation:
                self._state = OrchestratorState.IDLE
            return
        if generation != self._generation or key != self._latest_key:
            logger.debug("Discarding stale analysis from cycle %s", generation)
            return
        self._commit(text, result)

    def _commit(self, text: str, result: AnalysisResult) -> None:
        findings = list(result.findings)
        if self._config.carry_over_findings and self._findings:
            findings = self._carry_over(text, findings)
        self._live_text = text
        self._last_analyzed_text = text
        self._result = result
        self._findings = findings
        self._highlights = project_highlights(
            text, findings, self._config.min_display_confidence
        )
        self._state = OrchestratorState.IDLE
        logger.info(
            "Committed %s findings as %s highlights", len(findings), len(self._highlights)
        )
        if self._on_commit is not None:
            try:
                self._on_commit(result, list(self._highlights))
            except Exception:
                logger.exception("Highlight callback raised")

    def _carry_over(self, text: str, fresh: Sequence[Finding]) -> List[Finding]:
        survivors = [
            previous
            for previous in remap_findings(text, self._ledger.filter(self._findings))
            if not any(previous.span.overlaps(new.span) for new in fresh)
        ]
        if survivors:
            logger.debug("Carried over %s findings from the previous cycle", len(survivors))
        return sorted([*fresh, *survivors], key=lambda f: (f.span.start, f.span.end))

    def _follow_edit(self, text: str) -> None:
        # Findings whose original text vanished from the edit are dropped here.
        if not self._findings:
            self._live_text = text
            return
        self._set_live(text, remap_findings(text, self._findings))

    def _set_live(self, text: str, findings: Sequence[Finding]) -> None:
        self._live_text = text
        self._findings = list(findings)
        self._result = replace(self._result, findings=list(self._findings))
        self._highlights = project_highlights(
            text, self._findings, self._config.min_display_confidence
        )

    # -- user decisions ------------------------------------------------------

    def resolve(self, finding_id: str, outcome: DecisionOutcome) -> Finding | None:
        """Record a decision and drop the finding from the live set."""
        finding = self.find(finding_id)
        if finding is None:
            return None
        self._ledger.record(finding, outcome)
        self._set_live(self._live_text, self._ledger.filter(self._findings))
        return finding

    def clear_analysis(self) -> None:
        """Forget cached results, live findings and every decision record."""
        self._cancel_timer()
        self._generation += 1
        self._cache_epoch += 1
        self._cache.clear()
        self._filtered.clear()
        self._ledger.clear()
        self._findings = []
        self._highlights = []
        self._result = empty_result()
        self._last_analyzed_text = None
        self._state = OrchestratorState.IDLE
        logger.debug("Cleared analysis state")

    def dispose(self) -> None:
        """Cancel pending work; the orchestrator ignores further text changes."""
        self._disposed = True
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
        for task in list(self._in_flight.values()):
            task.cancel()
        self._on_commit = None
        self._state = OrchestratorState.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def _findings_or_empty(outcome: Any, label: str) -> List[Finding]:
    if isinstance(outcome, BaseException):
        logger.warning("The %s failed; continuing without its findings: %s", label, outcome)
        return []
    return list(outcome)
