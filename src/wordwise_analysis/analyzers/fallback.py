from __future__ import annotations

import logging
import re
from typing import List

from ..models import AnalysisResult, AnalysisStatus, Finding, Scores, Span, new_finding_id
from ..textutils import build_metadata, match_case
from ..tokenization import tokenize_words
from .spelling import COMMON_MISSPELLINGS

logger = logging.getLogger(__name__)

# (pattern, replacement, label)
FALLBACK_PATTERNS = (
    (re.compile(r"\bi\s+am\s+went\b", re.IGNORECASE), "I went", "Verb tense error"),
    (re.compile(r"\byou\s+was\b", re.IGNORECASE), "you were", "Subject-verb disagreement"),
    (re.compile(r"\btheir\s+going\b", re.IGNORECASE), "they're going", "Homophone confusion"),
    (re.compile(r"\bits\s+raining\b", re.IGNORECASE), "it's raining", "Contraction error"),
    (
        re.compile(r"\beffect\s+the\s+change\b", re.IGNORECASE),
        "affect the change",
        "Effect/affect confusion",
    ),
)
EXTRA_SPACES_RE = re.compile(r"(?<=\S) {2,}(?=\S)")


class FallbackAnalyzer:
    """Local pattern table used whenever the remote analyzer cannot answer."""

    source = "fallback"

    def analyze(self, text: str) -> AnalysisResult:
        findings = self.check(text)
        correctness = 75 if findings else 95
        logger.info("Fallback analysis produced %s findings", len(findings))
        return AnalysisResult(
            findings=findings,
            scores=Scores.from_components(correctness, 90, 85, 90),
            metadata=build_metadata(text),
            status=AnalysisStatus.DEGRADED,
        )

    def check(self, text: str) -> List[Finding]:
        findings: List[Finding] = []
        for token in tokenize_words(text):
            correction = COMMON_MISSPELLINGS.get(token.text.lower())
            if correction is None:
                continue
            suggestion = match_case(token.text, correction)
            findings.append(
                self._finding(
                    kind="spelling",
                    span=Span(token.start_char, token.end_char),
                    original=token.text,
                    suggestion=suggestion,
                    category="Spelling Error",
                    message=f'"{token.text}" appears to be misspelled',
                    explanation=f'"{token.text}" should be "{suggestion}"',
                    confidence=0.9,
                )
            )

        for pattern, replacement, label in FALLBACK_PATTERNS:
            for match in pattern.finditer(text):
                findings.append(
                    self._finding(
                        kind="grammar",
                        span=Span(match.start(), match.end()),
                        original=match.group(0),
                        suggestion=match_case(match.group(0), replacement),
                        category="Grammar Error",
                        message=label,
                        explanation=f'Use "{replacement}" instead.',
                        confidence=0.85,
                    )
                )

        for match in EXTRA_SPACES_RE.finditer(text):
            findings.append(
                self._finding(
                    kind="style",
                    span=Span(match.start(), match.end()),
                    original=match.group(0),
                    suggestion=" ",
                    category="Formatting",
                    message="Remove extra spaces",
                    explanation="Multiple consecutive spaces should be a single space.",
                    confidence=0.9,
                    severity="low",
                )
            )
        return findings

    def _finding(
        self,
        *,
        kind: str,
        span: Span,
        original: str,
        suggestion: str,
        category: str,
        message: str,
        explanation: str,
        confidence: float,
        severity: str = "high",
    ) -> Finding:
        return Finding(
            id=new_finding_id(self.source),
            kind=kind,
            severity=severity,
            span=span,
            original_text=original,
            suggested_text=suggestion,
            message=message,
            explanation=explanation,
            confidence=confidence,
            category=category,
            source=self.source,
        )
