"""
Spelling oracles answer "is this word misspelled?" for words the static
misspelling map does not know about.

Every oracle is a best-effort signal, not ground truth. The dictionary oracle
is pure and deterministic; the pyspellchecker oracle reflects whatever word
frequency list ships with the installed distribution.
"""

from __future__ import annotations

import difflib
import importlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Iterable, cast

logger = logging.getLogger(__name__)

SpellChecker: Callable[..., Any] | None = None


class SpellingOracle(ABC):
    """Capability interface for an environment spelling signal."""

    @abstractmethod
    async def is_misspelled(self, word: str) -> bool:
        """Return True when the environment considers the word misspelled."""
        raise NotImplementedError

    def suggest(self, word: str) -> str | None:
        """Return the best replacement candidate, or None when unknown."""
        return None


class NullOracle(SpellingOracle):
    """Never flags anything."""

    async def is_misspelled(self, word: str) -> bool:
        return False


class DictionaryOracle(SpellingOracle):
    """Flags words missing from an injected word list."""

    def __init__(self, words: Iterable[str]) -> None:
        self._words = {word.strip().lower() for word in words if word.strip()}
        self._sorted = sorted(self._words)

    @classmethod
    def from_file(cls, path: str | Path) -> "DictionaryOracle":
        """Load a dictionary with one word per line."""
        contents = Path(path).read_text(encoding="utf-8")
        return cls(contents.splitlines())

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._words

    async def is_misspelled(self, word: str) -> bool:
        return word.lower() not in self._words

    def suggest(self, word: str) -> str | None:
        matches = difflib.get_close_matches(word.lower(), self._sorted, n=1, cutoff=0.75)
        return matches[0] if matches else None


class PySpellCheckerOracle(SpellingOracle):
    """Oracle backed by the optional pyspellchecker distribution."""

    def __init__(self, language: str = "en", extra_words: Iterable[str] = ()) -> None:
        factory = _load_spellchecker_factory()
        self._checker: Any = factory(language=language)
        extra = [word.lower() for word in extra_words]
        if extra:
            self._checker.word_frequency.load_words(extra)

    async def is_misspelled(self, word: str) -> bool:
        return bool(self._checker.unknown([word.lower()]))

    def suggest(self, word: str) -> str | None:
        candidate = self._checker.correction(word.lower())
        if not candidate or candidate == word.lower():
            return None
        return str(candidate)


def create_oracle(name: str, **kwargs: Any) -> SpellingOracle:
    """Factory for building spelling oracles by name."""
    normalized = name.lower().strip()
    if normalized in {"none", "null", ""}:
        return NullOracle()
    if normalized == "dictionary":
        path = kwargs.get("dictionary_path")
        if path:
            return DictionaryOracle.from_file(path)
        return DictionaryOracle(kwargs.get("words", ()))
    if normalized == "pyspellchecker":
        return PySpellCheckerOracle(language=kwargs.get("language", "en"))
    raise ValueError(f"Unknown spelling oracle '{name}'.")


def _load_spellchecker_factory() -> Callable[..., Any]:
    """Import pyspellchecker lazily so it stays an optional extra."""
    global SpellChecker
    if SpellChecker is not None:
        return SpellChecker
    try:  # pragma: no cover - import guard
        module = importlib.import_module("spellchecker")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "pyspellchecker is not installed. Install extras via 'pip install .[spelling]'."
        ) from exc
    checker_cls = getattr(module, "SpellChecker", None)
    if checker_cls is None:  # pragma: no cover
        raise RuntimeError("spellchecker.SpellChecker is unavailable in this environment.")
    SpellChecker = cast(Callable[..., Any], checker_cls)
    logger.debug("Loaded pyspellchecker oracle")
    return SpellChecker
