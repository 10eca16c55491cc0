from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence

from ..models import Finding, Span, new_finding_id
from ..textutils import match_case
from .base import Analyzer

logger = logging.getLogger(__name__)

TextFn = Callable[[str], str]


@dataclass(slots=True, frozen=True)
class GrammarRule:
    """One regex-driven grammar or style check."""

    rule_id: str
    name: str
    pattern: re.Pattern[str]
    kind: str
    category: str
    severity: str
    message: TextFn
    suggestion: TextFn
    explanation: TextFn


def _const(value: str) -> TextFn:
    return lambda _match: value


def _swap_words(mapping: Dict[str, str]) -> TextFn:
    """Replace any mapped word inside the match, keeping leading capitals."""
    pattern = re.compile(
        r"\b(" + "|".join(re.escape(key) for key in mapping) + r")\b", re.IGNORECASE
    )

    def apply(match: str) -> str:
        return pattern.sub(
            lambda m: match_case(m.group(0), mapping[m.group(0).lower()]), match
        )

    return apply


def _lookup(mapping: Dict[str, str]) -> TextFn:
    def apply(match: str) -> str:
        key = re.sub(r"\s+", " ", match.lower())
        replacement = mapping.get(key)
        return match_case(match, replacement) if replacement else match

    return apply


def _first_word(match: str) -> str:
    return match.split()[0]


WORDY_PHRASES = {
    "in order to": "to",
    "due to the fact that": "because",
    "for the reason that": "because",
    "in spite of the fact that": "although",
    "at this point in time": "now",
    "in the event that": "if",
}

VERY_ADJECTIVES = {
    "very good": "excellent",
    "very bad": "terrible",
    "very big": "enormous",
    "very small": "tiny",
    "very nice": "wonderful",
    "very pretty": "beautiful",
    "very happy": "delighted",
    "very tired": "exhausted",
}

_IGNORE = re.IGNORECASE

DEFAULT_RULES: tuple[GrammarRule, ...] = (
    GrammarRule(
        rule_id="its_vs_its",
        name="It's vs Its",
        pattern=re.compile(
            r"\bits\b(?=\s+(?:(?:a|an|the|my|your|his|her|their|our)\s+\w+"
            r"|going|coming|getting|raining|snowing|been|not|too|really|just|already)\b)",
            _IGNORE,
        ),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=_const(
            'Consider if you meant "it\'s" (it is) instead of "its" (possessive)'
        ),
        suggestion=_swap_words({"its": "it's"}),
        explanation=_const('Use "it\'s" for "it is" and "its" for possession'),
    ),
    GrammarRule(
        rule_id="your_vs_youre",
        name="Your vs You're",
        pattern=re.compile(
            r"\byour\b(?=\s+(?:going|coming|doing|being|getting|having|making"
            r"|saying|thinking|feeling|welcome)\b)",
            _IGNORE,
        ),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=_const('Did you mean "you\'re" (you are) instead of "your" (possessive)?'),
        suggestion=_swap_words({"your": "you're"}),
        explanation=_const('Use "you\'re" for "you are" and "your" for possession'),
    ),
    GrammarRule(
        rule_id="there_their_theyre",
        name="There/Their/They're",
        pattern=re.compile(
            r"\b(?:there|their)\b(?=\s+(?:going|coming|doing|being|getting)\b)", _IGNORE
        ),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=_const('Consider "they\'re" (they are) for actions'),
        suggestion=_swap_words({"there": "they're", "their": "they're"}),
        explanation=_const('"They\'re" is short for "they are"'),
    ),
    GrammarRule(
        rule_id="their_possessive",
        name="Their (possessive)",
        pattern=re.compile(
            r"\b(?:there|they're)\b(?=\s+(?:house|car|dog|cat|family|own|friends)\b)",
            _IGNORE,
        ),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=_const('Consider "their" (possessive) for ownership'),
        suggestion=_swap_words({"there": "their", "they're": "their"}),
        explanation=_const('"Their" shows that something belongs to them'),
    ),
    GrammarRule(
        rule_id="subject_verb_disagreement",
        name="Subject-Verb Agreement",
        pattern=re.compile(
            r"(?<!\bif\s)\b(?:he|she|it)\s+(?:are|were|have|don't)\b", _IGNORE
        ),
        kind="grammar",
        category="Grammar",
        severity="high",
        message=_const("Subject and verb don't agree"),
        suggestion=_swap_words(
            {"are": "is", "were": "was", "have": "has", "don't": "doesn't"}
        ),
        explanation=_const(
            "Singular subjects (he/she/it) need singular verbs (is/was/has)"
        ),
    ),
    GrammarRule(
        rule_id="double_negative",
        name="Double Negative",
        pattern=re.compile(
            r"\b(?:don't|won't|can't|didn't|doesn't|shouldn't|wouldn't|couldn't)"
            r"\s+(?:no|nothing|nobody|nowhere|never)\b",
            _IGNORE,
        ),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=_const("Avoid double negatives"),
        suggestion=_swap_words(
            {
                "no": "any",
                "nothing": "anything",
                "nobody": "anybody",
                "nowhere": "anywhere",
                "never": "ever",
            }
        ),
        explanation=_const("Two negatives make a positive. Use one negative word."),
    ),
    GrammarRule(
        rule_id="you_and_i",
        name="Pronoun Case",
        pattern=re.compile(r"\b(?:between|with|for|to)\s+you\s+and\s+I\b", _IGNORE),
        kind="grammar",
        category="Pronoun Case",
        severity="medium",
        message=_const('Use "me" after a preposition'),
        suggestion=lambda match: re.sub(r"\bI$", "me", match, flags=_IGNORE),
        explanation=_const(
            'Pronouns after a preposition take the object case: "between you and me"'
        ),
    ),
    GrammarRule(
        rule_id="passive_voice",
        name="Passive Voice",
        pattern=re.compile(r"\b(?:was|were|is|are|been|being)\s+\w+ed\s+by\b", _IGNORE),
        kind="style",
        category="Style",
        severity="low",
        message=_const("Consider using active voice for stronger writing"),
        suggestion=lambda match: match,
        explanation=_const("Active voice makes writing more direct and engaging"),
    ),
    GrammarRule(
        rule_id="wordy_phrases",
        name="Wordy Phrases",
        pattern=re.compile(
            r"\b(?:" + "|".join(p.replace(" ", r"\s+") for p in WORDY_PHRASES) + r")\b",
            _IGNORE,
        ),
        kind="style",
        category="Style",
        severity="low",
        message=_const("Consider a more concise alternative"),
        suggestion=_lookup(WORDY_PHRASES),
        explanation=_const("Concise writing is often more effective"),
    ),
    GrammarRule(
        rule_id="very_adjective",
        name="Weak Intensifier",
        pattern=re.compile(
            r"\b(?:" + "|".join(p.replace(" ", r"\s+") for p in VERY_ADJECTIVES) + r")\b",
            _IGNORE,
        ),
        kind="style",
        category="Vocabulary",
        severity="low",
        message=_const("Consider a more precise word choice"),
        suggestion=_lookup(VERY_ADJECTIVES),
        explanation=_const(
            'Consider a more specific adjective instead of "very + basic adjective"'
        ),
    ),
    GrammarRule(
        rule_id="repeated_word",
        name="Repeated Word",
        pattern=re.compile(r"\b(\w+)\s+\1\b", _IGNORE),
        kind="grammar",
        category="Grammar",
        severity="medium",
        message=lambda match: f'"{_first_word(match)}" is repeated',
        suggestion=_first_word,
        explanation=_const("The same word appears twice in a row"),
    ),
)


class RuleEngine(Analyzer):
    """Runs the ordered rule table over a text. Overlapping matches are all kept."""

    source = "rules"

    def __init__(
        self,
        rules: Sequence[GrammarRule] = DEFAULT_RULES,
        disabled_rules: Iterable[str] = (),
    ) -> None:
        disabled = set(disabled_rules)
        self._rules = tuple(rule for rule in rules if rule.rule_id not in disabled)

    @property
    def rules(self) -> tuple[GrammarRule, ...]:
        return self._rules

    def check(self, text: str) -> List[Finding]:
        """Emit one finding per regex match, in table order."""
        findings: List[Finding] = []
        for rule in self._rules:
            for match in rule.pattern.finditer(text):
                matched = match.group(0)
                findings.append(
                    Finding(
                        id=new_finding_id(rule.rule_id),
                        kind=rule.kind,
                        severity=rule.severity,
                        span=Span(match.start(), match.end()),
                        original_text=matched,
                        suggested_text=rule.suggestion(matched),
                        message=rule.message(matched),
                        explanation=rule.explanation(matched),
                        confidence=0.8,
                        category=rule.category,
                        source=self.source,
                    )
                )
        logger.debug("Rule engine produced %s findings", len(findings))
        return findings

    async def analyze(self, text: str) -> List[Finding]:
        return self.check(text)
