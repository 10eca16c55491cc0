from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for the OpenAI-compatible chat analysis backend."""

    model: str = "llama-3.1-8b-instant"
    api_key: str | None = None
    api_key_env: str = "GROQ_API_KEY"
    base_url: str | None = "https://api.groq.com/openai/v1"
    organization: str | None = None
    temperature: float = 0.3
    max_output_tokens: int = 2048
    request_timeout: float = 30.0
    max_attempts: int = 2


@dataclass(slots=True)
class RemoteSettings:
    """Where and how the remote analyzer is reached."""

    enabled: bool = False
    transport: str = "http"
    endpoint: str | None = None
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = 15.0
    max_chars: int = 4000


@dataclass(slots=True)
class SpellingSettings:
    """Spelling oracle selection."""

    oracle: str = "none"
    dictionary_path: str | None = None
    language: str = "en"


@dataclass(slots=True)
class AnalysisConfig:
    """Configuration options for one analysis session."""

    debounce_seconds: float = 1.5
    immediate_char_delta: int = 20
    immediate_after_seconds: float = 30.0
    min_immediate_chars: int = 10
    carry_over_findings: bool = False
    min_display_confidence: float = 0.0
    writing_style: str = "business"
    spelling: SpellingSettings = field(default_factory=SpellingSettings)
    remote: RemoteSettings = field(default_factory=RemoteSettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


_NESTED_BLOCKS: dict[str, type] = {
    "spelling": SpellingSettings,
    "remote": RemoteSettings,
    "openai": OpenAISettings,
}


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {item.name for item in fields(AnalysisConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    for name, block_cls in _NESTED_BLOCKS.items():
        if name not in data:
            continue
        value = data[name]
        if isinstance(value, block_cls):
            kwargs[name] = value
        elif isinstance(value, Mapping):
            kwargs[name] = _build_block(block_cls, value)
        elif value is None:
            kwargs.pop(name, None)
        else:
            raise ValueError(f"Configuration block '{name}' must be a mapping.")
    return kwargs


def _build_block(block_cls: type, data: Mapping[str, Any]) -> Any:
    block_allowed = {item.name for item in fields(block_cls)}
    filtered = {key: data[key] for key in data if key in block_allowed}
    return block_cls(**filtered)


def config_from_dict(data: Mapping[str, Any] | None) -> AnalysisConfig:
    """Build an AnalysisConfig from a dictionary-like input."""
    if data is None:
        return AnalysisConfig()
    return AnalysisConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> AnalysisConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> AnalysisConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return AnalysisConfig()
    return config_from_yaml(path)
