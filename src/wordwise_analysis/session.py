"""
Bridge between an editing surface and the analysis core.

The editor itself stays outside this package; it only has to implement
``EditorSurface``. ``PlainTextSurface`` is an in-memory stand-in used by the
CLI and by tests.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from .analyzers import build_remote_client, build_rule_engine, build_spelling_checker
from .config import AnalysisConfig
from .interaction import SuggestionInteractionHandler
from .models import AnalysisResult, Finding, Highlight, Replacement
from .orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


class EditorSurface(ABC):
    """What the analysis core needs from a rich-text editor."""

    @abstractmethod
    def get_text(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def apply_replacement(self, original_text: str, suggested_text: str) -> bool:
        """Replace the first occurrence of ``original_text``; False when it is gone."""
        raise NotImplementedError

    @abstractmethod
    def render_highlights(self, highlights: Sequence[Highlight]) -> None:
        raise NotImplementedError


class PlainTextSurface(EditorSurface):
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.rendered: List[Highlight] = []
        self.render_count = 0

    def get_text(self) -> str:
        return self.text

    def apply_replacement(self, original_text: str, suggested_text: str) -> bool:
        index = self.text.find(original_text) if original_text else -1
        if index < 0:
            return False
        self.text = (
            self.text[:index] + suggested_text + self.text[index + len(original_text) :]
        )
        return True

    def render_highlights(self, highlights: Sequence[Highlight]) -> None:
        self.rendered = list(highlights)
        self.render_count += 1


class EditingSession:
    """Wires one editor surface to one orchestrator for the lifetime of a document."""

    def __init__(self, surface: EditorSurface, orchestrator: AnalysisOrchestrator) -> None:
        self.surface = surface
        self.orchestrator = orchestrator
        self.interaction = SuggestionInteractionHandler(orchestrator)
        self._closed = False
        orchestrator.set_commit_callback(self.handle_commit)

    @property
    def findings(self) -> List[Finding]:
        return self.orchestrator.findings

    def handle_commit(self, result: AnalysisResult, highlights: List[Highlight]) -> None:
        if self._closed:
            return
        self.surface.render_highlights(highlights)

    def text_changed(self) -> None:
        self.orchestrator.on_text_changed(self.surface.get_text())
        if not self._closed:
            self.surface.render_highlights(self.orchestrator.highlights)

    def click(self, position: int) -> Finding | None:
        return self.interaction.click(position)

    def accept(self, finding_id: str) -> asyncio.Task[None] | None:
        """
        Accept a suggestion and write it into the document.

        Returns the re-analysis task started for the edited text, or None when
        nothing was applied. A replacement whose original text has meanwhile
        disappeared is not applied and does not trigger re-analysis.
        """
        replacement = self.interaction.accept(finding_id)
        if replacement is None:
            return None
        task = self._apply(replacement)
        self.surface.render_highlights(self.orchestrator.highlights)
        return task

    def reject(self, finding_id: str) -> bool:
        rejected = self.interaction.reject(finding_id)
        if rejected:
            self.surface.render_highlights(self.orchestrator.highlights)
        return rejected

    def _apply(self, replacement: Replacement) -> asyncio.Task[None] | None:
        applied = self.surface.apply_replacement(
            replacement.original_text, replacement.suggested_text
        )
        if not applied:
            logger.info(
                "Replacement for %r skipped; text no longer in the document",
                replacement.original_text,
            )
            return None
        return self.interaction.replacement_applied(self.surface.get_text())

    def close(self) -> None:
        self._closed = True
        self.orchestrator.dispose()


def build_orchestrator(config: AnalysisConfig) -> AnalysisOrchestrator:
    """Orchestrator with the analyzers described by ``config``."""
    return AnalysisOrchestrator(
        build_rule_engine(config),
        build_spelling_checker(config),
        build_remote_client(config),
        config,
    )


def build_session(config: AnalysisConfig, surface: EditorSurface) -> EditingSession:
    return EditingSession(surface, build_orchestrator(config))
