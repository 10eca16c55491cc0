from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Tuple

from ..models import Finding, Span, Token, new_finding_id
from ..textutils import match_case
from ..tokenization import is_capitalized, is_numeric_token, tokenize_words
from .base import Analyzer
from .oracles import NullOracle, SpellingOracle

logger = logging.getLogger(__name__)

COMMON_MISSPELLINGS: Dict[str, str] = {
    "teh": "the",
    "hte": "the",
    "adn": "and",
    "tehm": "them",
    "recieve": "receive",
    "seperate": "separate",
    "definately": "definitely",
    "occurence": "occurrence",
    "occured": "occurred",
    "accomodate": "accommodate",
    "beleive": "believe",
    "acheive": "achieve",
    "neccessary": "necessary",
    "maintainance": "maintenance",
    "independant": "independent",
    "goverment": "government",
    "enviroment": "environment",
    "recomend": "recommend",
    "begining": "beginning",
    "untill": "until",
    "sucessful": "successful",
    "wich": "which",
    "thier": "their",
    "freind": "friend",
    "wierd": "weird",
    "embarass": "embarrass",
    "tommorrow": "tomorrow",
    "febuary": "February",
    "wendesday": "Wednesday",
    "existance": "existence",
    "consistant": "consistent",
    "differant": "different",
    "priviledge": "privilege",
    "alot": "a lot",
    "allright": "all right",
    "dont": "don't",
    "wont": "won't",
    "cant": "can't",
    "youre": "you're",
    "theyre": "they're",
    "wouldnt": "wouldn't",
    "shouldnt": "shouldn't",
    "couldnt": "couldn't",
    "isnt": "isn't",
    "arent": "aren't",
    "wasnt": "wasn't",
    "werent": "weren't",
    "hasnt": "hasn't",
    "havent": "haven't",
    "hadnt": "hadn't",
}

COMMON_WORDS = frozenset(
    """
    the and is are was were have has had will would could should to of in on at
    for with by from about as be or but if so up do can may must shall that this
    these those there where when why how what who which whose you he she it we
    they me him her us them my your his its our their not all any one out get
    got just like make made more most some than then very also into over only
    """.split()
)


class SpellingChecker(Analyzer):
    """
    Dictionary lookup for well-known misspellings, then an oracle probe for
    unknown lowercase words.

    Each distinct word is probed once per call; every occurrence of a flagged
    word is reported.
    """

    source = "spelling"

    def __init__(
        self,
        oracle: SpellingOracle | None = None,
        misspellings: Mapping[str, str] = COMMON_MISSPELLINGS,
        stoplist: Iterable[str] = COMMON_WORDS,
    ) -> None:
        self._oracle = oracle or NullOracle()
        self._misspellings = {key.lower(): value for key, value in misspellings.items()}
        self._stoplist = frozenset(word.lower() for word in stoplist)

    @property
    def oracle(self) -> SpellingOracle:
        return self._oracle

    async def analyze(self, text: str) -> List[Finding]:
        findings: List[Finding] = []
        verdicts: Dict[str, Tuple[bool, str | None]] = {}
        for token in tokenize_words(text):
            word = token.text
            lower = word.lower()
            if len(word) < 3 or is_numeric_token(word) or lower in self._stoplist:
                continue

            correction = self._misspellings.get(lower)
            if correction is not None:
                suggestion = match_case(word, correction)
                findings.append(
                    self._finding(
                        token,
                        suggestion,
                        severity="high",
                        confidence=0.95,
                        message=f'"{word}" appears to be misspelled',
                        explanation=f'Did you mean "{suggestion}"?',
                    )
                )
                continue

            if is_capitalized(word) or not word.isalpha():
                continue
            if lower not in verdicts:
                verdicts[lower] = await self._probe(lower)
            flagged, candidate = verdicts[lower]
            if not flagged:
                continue
            suggestion = match_case(word, candidate) if candidate else word
            findings.append(
                self._finding(
                    token,
                    suggestion,
                    severity="medium",
                    confidence=0.6,
                    message=f'"{word}" may be misspelled',
                    explanation=(
                        f'Consider "{suggestion}" instead of "{word}"'
                        if candidate
                        else "Check spelling"
                    ),
                )
            )
        logger.debug(
            "Spelling check flagged %s tokens (%s distinct words probed)",
            len(findings),
            len(verdicts),
        )
        return findings

    async def _probe(self, word: str) -> Tuple[bool, str | None]:
        try:
            flagged = await self._oracle.is_misspelled(word)
            return flagged, self._oracle.suggest(word) if flagged else None
        except Exception as exc:
            logger.warning("Spelling oracle failed for %r: %s", word, exc)
            return False, None

    def _finding(
        self,
        token: Token,
        suggestion: str,
        *,
        severity: str,
        confidence: float,
        message: str,
        explanation: str,
    ) -> Finding:
        return Finding(
            id=new_finding_id(self.source),
            kind="spelling",
            severity=severity,
            span=Span(token.start_char, token.end_char),
            original_text=token.text,
            suggested_text=suggestion,
            message=message,
            explanation=explanation,
            confidence=confidence,
            category="Spelling Error",
            source=self.source,
        )
