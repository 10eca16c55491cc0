"""
wordwise_analysis package exports the pieces an editor host needs to run
grammar, spelling and style analysis for one editing session.
"""

from __future__ import annotations

from .config import AnalysisConfig, config_from_dict, config_from_yaml, load_config
from .interaction import SuggestionInteractionHandler
from .models import (
    AnalysisResult,
    AnalysisStatus,
    Finding,
    Highlight,
    Replacement,
    Scores,
    Span,
)
from .orchestrator import AnalysisOrchestrator, OrchestratorState
from .session import (
    EditingSession,
    EditorSurface,
    PlainTextSurface,
    build_orchestrator,
    build_session,
)

__all__ = [
    "AnalysisConfig",
    "AnalysisOrchestrator",
    "AnalysisResult",
    "AnalysisStatus",
    "EditingSession",
    "EditorSurface",
    "Finding",
    "Highlight",
    "OrchestratorState",
    "PlainTextSurface",
    "Replacement",
    "Scores",
    "Span",
    "SuggestionInteractionHandler",
    "build_orchestrator",
    "build_session",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
]

__version__ = "0.1.0"
