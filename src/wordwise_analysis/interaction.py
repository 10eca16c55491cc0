from __future__ import annotations

import asyncio
import logging
from typing import List

from .models import KIND_PRIORITY, DecisionOutcome, Finding, Replacement
from .orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


class SuggestionInteractionHandler:
    """
    Resolves clicks on highlighted text and turns accept/dismiss actions into
    decision records. The handler never edits the document itself; the caller
    applies a returned Replacement and reports back via ``replacement_applied``.
    """

    def __init__(self, orchestrator: AnalysisOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._selected_id: str | None = None

    @property
    def selected(self) -> Finding | None:
        if self._selected_id is None:
            return None
        finding = self._orchestrator.find(self._selected_id)
        if finding is None:
            self._selected_id = None
        return finding

    def findings_at(self, position: int) -> List[Finding]:
        hits = [f for f in self._orchestrator.findings if f.span.contains(position)]
        hits.sort(
            key=lambda f: (KIND_PRIORITY.get(f.kind, len(KIND_PRIORITY)), f.span.start)
        )
        return hits

    def resolve_click(self, position: int) -> Finding | None:
        """Highest-priority finding covering ``position``, or None when the click misses."""
        hits = self.findings_at(position)
        return hits[0] if hits else None

    def select(self, finding_id: str | None) -> Finding | None:
        if finding_id is None:
            self._selected_id = None
            return None
        finding = self._orchestrator.find(finding_id)
        self._selected_id = finding.id if finding is not None else None
        return finding

    def click(self, position: int) -> Finding | None:
        finding = self.resolve_click(position)
        return self.select(finding.id if finding is not None else None)

    def accept(self, finding_id: str) -> Replacement | None:
        finding = self._orchestrator.resolve(finding_id, DecisionOutcome.ACCEPTED)
        if finding is None:
            logger.debug("Accept ignored; finding %s is no longer live", finding_id)
            return None
        self._clear_selection(finding_id)
        return Replacement(
            original_text=finding.original_text,
            suggested_text=finding.suggested_text,
            finding_id=finding.id,
        )

    def reject(self, finding_id: str) -> bool:
        finding = self._orchestrator.resolve(finding_id, DecisionOutcome.REJECTED)
        if finding is None:
            return False
        self._clear_selection(finding_id)
        return True

    def replacement_applied(self, new_text: str) -> asyncio.Task[None] | None:
        """The editor confirmed a replacement; re-analyze without waiting for the debounce."""
        return self._orchestrator.request_analysis(new_text)

    def _clear_selection(self, finding_id: str) -> None:
        if self._selected_id == finding_id:
            self._selected_id = None
