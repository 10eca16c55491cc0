from __future__ import annotations

from pathlib import Path

import pytest

from wordwise_analysis.analyzers import build_spelling_checker
from wordwise_analysis.analyzers import oracles
from wordwise_analysis.analyzers.oracles import (
    DictionaryOracle,
    NullOracle,
    PySpellCheckerOracle,
    SpellingOracle,
    create_oracle,
)
from wordwise_analysis.analyzers.spelling import SpellingChecker
from wordwise_analysis.config import AnalysisConfig, SpellingSettings


class CountingOracle(SpellingOracle):
    def __init__(self, flagged: set[str]) -> None:
        self.flagged = flagged
        self.probes: list[str] = []

    async def is_misspelled(self, word: str) -> bool:
        self.probes.append(word)
        return word in self.flagged


class BrokenOracle(SpellingOracle):
    async def is_misspelled(self, word: str) -> bool:
        raise OSError("dictionary service offline")


@pytest.mark.asyncio
async def test_common_misspellings_are_reported_with_offsets():
    """'I recieve teh package.' yields two high-severity spelling findings."""
    text = "I recieve teh package."
    findings = await SpellingChecker().analyze(text)

    assert [(f.original_text, f.suggested_text) for f in findings] == [
        ("recieve", "receive"),
        ("teh", "the"),
    ]
    assert [(f.span.start, f.span.end) for f in findings] == [(2, 9), (10, 13)]
    for finding in findings:
        assert finding.kind == "spelling"
        assert finding.severity == "high"
        assert finding.confidence == pytest.approx(0.95)
        assert finding.category == "Spelling Error"
        assert text[finding.span.start : finding.span.end] == finding.original_text


@pytest.mark.asyncio
async def test_leading_capital_is_preserved():
    findings = await SpellingChecker().analyze("Teh end.")
    assert findings[0].suggested_text == "The"


@pytest.mark.asyncio
async def test_short_numeric_and_stoplist_tokens_are_skipped():
    oracle = CountingOracle(flagged={"zz", "1234", "the"})
    findings = await SpellingChecker(oracle).analyze("zz 1234 the")

    assert findings == []
    assert oracle.probes == []


@pytest.mark.asyncio
async def test_oracle_probes_each_distinct_word_once():
    oracle = CountingOracle(flagged={"blorp"})
    text = "blorp and blorp again blorp"
    findings = await SpellingChecker(oracle).analyze(text)

    assert [f.span.start for f in findings] == [0, 10, 22]
    assert all(f.severity == "medium" for f in findings)
    assert all(f.confidence == pytest.approx(0.6) for f in findings)
    assert oracle.probes.count("blorp") == 1


@pytest.mark.asyncio
async def test_capitalized_words_are_not_sent_to_the_oracle():
    oracle = CountingOracle(flagged={"zanzibar"})
    findings = await SpellingChecker(oracle).analyze("Zanzibar is lovely")

    assert findings == []
    assert "zanzibar" not in oracle.probes


@pytest.mark.asyncio
async def test_oracle_failures_are_contained():
    findings = await SpellingChecker(BrokenOracle()).analyze("a sentence with words")
    assert findings == []


@pytest.mark.asyncio
async def test_dictionary_oracle_suggests_close_match():
    oracle = DictionaryOracle(["quick", "package", "brown"])
    findings = await SpellingChecker(oracle).analyze("the quikc brown package")

    assert len(findings) == 1
    assert findings[0].original_text == "quikc"
    assert findings[0].suggested_text == "quick"
    assert "quick" in oracle


@pytest.mark.asyncio
async def test_flag_without_suggestion_keeps_original_word():
    oracle = DictionaryOracle(["alpha"])
    findings = await SpellingChecker(oracle).analyze("xyzzy")

    assert findings[0].suggested_text == "xyzzy"
    assert findings[0].explanation == "Check spelling"


@pytest.mark.asyncio
async def test_null_oracle_never_flags():
    assert await NullOracle().is_misspelled("qwrtp") is False
    assert NullOracle().suggest("qwrtp") is None


def test_create_oracle_factory(tmp_path: Path):
    words = tmp_path / "words.txt"
    words.write_text("receive\npackage\n", encoding="utf-8")

    assert isinstance(create_oracle("none"), NullOracle)
    dictionary = create_oracle("dictionary", dictionary_path=str(words))
    assert isinstance(dictionary, DictionaryOracle)
    assert "package" in dictionary
    with pytest.raises(ValueError):
        create_oracle("hunspell")


@pytest.mark.asyncio
async def test_pyspellchecker_oracle_uses_lazy_factory(monkeypatch):
    loaded: list[list[str]] = []

    class DummyFrequency:
        def load_words(self, words):
            loaded.append(list(words))

    class DummySpellChecker:
        def __init__(self, language: str = "en") -> None:
            self.language = language
            self.word_frequency = DummyFrequency()

        def unknown(self, words):
            return {word for word in words if word == "speling"}

        def correction(self, word):
            return "spelling" if word == "speling" else word

    monkeypatch.setattr(oracles, "SpellChecker", DummySpellChecker)
    oracle = PySpellCheckerOracle(language="en", extra_words=["Wordwise"])

    assert loaded == [["wordwise"]]
    assert await oracle.is_misspelled("speling")
    assert not await oracle.is_misspelled("spelling")
    assert oracle.suggest("speling") == "spelling"
    assert oracle.suggest("spelling") is None


def test_build_spelling_checker_from_config(tmp_path: Path):
    words = tmp_path / "words.txt"
    words.write_text("hello\n", encoding="utf-8")
    config = AnalysisConfig(
        spelling=SpellingSettings(oracle="dictionary", dictionary_path=str(words))
    )

    checker = build_spelling_checker(config)
    assert isinstance(checker.oracle, DictionaryOracle)
