from __future__ import annotations

import pytest

from wordwise_analysis.analyzers import build_rule_engine
from wordwise_analysis.analyzers.rules import DEFAULT_RULES, RuleEngine
from wordwise_analysis.config import AnalysisConfig


def _by_rule(findings, prefix: str):
    return [f for f in findings if f.id.startswith(prefix)]


def test_its_without_apostrophe_is_flagged():
    """'Its a good day.' yields one grammar finding on 'Its' suggesting "It's"."""
    text = "Its a good day."
    findings = RuleEngine().check(text)

    assert len(findings) == 1
    finding = findings[0]
    assert finding.kind == "grammar"
    assert finding.severity == "medium"
    assert finding.original_text == "Its"
    assert finding.suggested_text == "It's"
    assert (finding.span.start, finding.span.end) == (0, 3)
    assert finding.source == "rules"
    assert finding.confidence == pytest.approx(0.8)


def test_possessive_its_is_left_alone():
    assert RuleEngine().check("The dog wagged its tail.") == []


def test_subject_verb_disagreement():
    text = "She are happy today."
    findings = _by_rule(RuleEngine().check(text), "subject_verb_disagreement")

    assert len(findings) == 1
    assert findings[0].original_text == "She are"
    assert findings[0].suggested_text == "She is"
    assert findings[0].severity == "high"


def test_subjunctive_after_if_is_not_flagged():
    findings = RuleEngine().check("I would go if it were sunny.")
    assert _by_rule(findings, "subject_verb_disagreement") == []


def test_double_negative_and_pronoun_case():
    engine = RuleEngine()
    negative = _by_rule(engine.check("That won't never happen."), "double_negative")
    pronoun = _by_rule(engine.check("Keep it between you and I."), "you_and_i")

    assert negative[0].original_text == "won't never"
    assert negative[0].suggested_text == "won't ever"
    assert pronoun[0].suggested_text == "between you and me"
    assert pronoun[0].category == "Pronoun Case"


def test_style_rules_suggest_concise_wording():
    text = "We met in order to plan. The food was very good."
    findings = RuleEngine().check(text)

    wordy = _by_rule(findings, "wordy_phrases")
    very = _by_rule(findings, "very_adjective")
    assert wordy[0].suggested_text == "to"
    assert wordy[0].kind == "style"
    assert very[0].original_text == "very good"
    assert very[0].suggested_text == "excellent"


def test_passive_voice_and_repeated_word():
    text = "The report was reviewed by the the committee."
    findings = RuleEngine().check(text)

    passive = _by_rule(findings, "passive_voice")
    repeated = _by_rule(findings, "repeated_word")
    assert passive[0].original_text == "was reviewed by"
    assert passive[0].severity == "low"
    assert repeated[0].original_text == "the the"
    assert repeated[0].suggested_text == "the"


def test_homophone_before_verb():
    findings = RuleEngine().check("Their going to the park.")
    assert [f.original_text for f in findings] == ["Their"]
    assert findings[0].suggested_text == "They're"


def test_disabled_rules_are_skipped():
    engine = RuleEngine(disabled_rules=["passive_voice", "wordy_phrases"])
    ids = [rule.rule_id for rule in engine.rules]

    assert "passive_voice" not in ids
    assert "wordy_phrases" not in ids
    assert len(ids) == len(DEFAULT_RULES) - 2
    assert engine.check("It was approved by the board in order to ship.") == []


def test_build_rule_engine_follows_writing_style():
    business = build_rule_engine(AnalysisConfig(writing_style="business"))
    academic = build_rule_engine(AnalysisConfig(writing_style="academic"))

    assert "passive_voice" in [rule.rule_id for rule in business.rules]
    assert "passive_voice" not in [rule.rule_id for rule in academic.rules]


@pytest.mark.asyncio
async def test_analyze_wraps_check():
    findings = await RuleEngine().analyze("Its a good day.")
    assert [f.original_text for f in findings] == ["Its"]
