from __future__ import annotations

import os
from typing import TYPE_CHECKING

from ..llm.openai_client import OpenAIAnalysisClient
from ..styles import get_style
from .base import Analyzer
from .fallback import FallbackAnalyzer
from .oracles import (
    DictionaryOracle,
    NullOracle,
    PySpellCheckerOracle,
    SpellingOracle,
    create_oracle,
)
from .remote import (
    AnalysisTransport,
    HTTPEndpointTransport,
    OpenAIChatTransport,
    RemoteAnalysisError,
    RemoteAnalyzerClient,
    parse_remote_payload,
)
from .rules import DEFAULT_RULES, GrammarRule, RuleEngine
from .spelling import SpellingChecker

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from ..config import AnalysisConfig, OpenAISettings

__all__ = [
    "Analyzer",
    "AnalysisTransport",
    "DEFAULT_RULES",
    "DictionaryOracle",
    "FallbackAnalyzer",
    "GrammarRule",
    "HTTPEndpointTransport",
    "NullOracle",
    "OpenAIChatTransport",
    "PySpellCheckerOracle",
    "RemoteAnalysisError",
    "RemoteAnalyzerClient",
    "RuleEngine",
    "SpellingChecker",
    "SpellingOracle",
    "build_remote_client",
    "build_rule_engine",
    "build_spelling_checker",
    "create_oracle",
    "parse_remote_payload",
    "resolve_api_key",
]


def build_rule_engine(config: "AnalysisConfig") -> RuleEngine:
    """Rule engine with the rules the configured writing style allows disabled."""
    style = get_style(config.writing_style)
    return RuleEngine(disabled_rules=style.disabled_rules)


def build_spelling_checker(config: "AnalysisConfig") -> SpellingChecker:
    """Spelling checker wired to the configured oracle."""
    settings = config.spelling
    oracle = create_oracle(
        settings.oracle,
        dictionary_path=settings.dictionary_path,
        language=settings.language,
    )
    return SpellingChecker(oracle)


def build_remote_client(config: "AnalysisConfig") -> RemoteAnalyzerClient | None:
    """Remote analyzer for the configured transport, or None when disabled."""
    settings = config.remote
    if not settings.enabled:
        return None
    transport_name = settings.transport.lower().strip()
    transport: AnalysisTransport
    if transport_name == "http":
        transport = HTTPEndpointTransport(settings)
    elif transport_name == "openai":
        client = OpenAIAnalysisClient(config.openai, api_key=resolve_api_key(config.openai))
        transport = OpenAIChatTransport(client, style=get_style(config.writing_style))
    else:
        raise ValueError(f"Unknown remote transport '{settings.transport}'.")
    return RemoteAnalyzerClient(transport, max_chars=settings.max_chars)


def resolve_api_key(settings: "OpenAISettings") -> str:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env
    if env_name and os.environ.get(env_name):
        return os.environ[env_name]
    raise ValueError(
        "LLM API key not provided. Set openai.api_key or the configured environment variable."
    )
