from __future__ import annotations

from typing import Iterable

from .models import Finding, Scores

SEVERITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
CORRECTNESS_KINDS = frozenset({"spelling", "grammar", "punctuation"})


def local_correctness(findings: Iterable[Finding], word_count: int) -> int:
    """
    Severity-weighted correctness score from local findings.

    Every weighted error per hundred words costs ten points.
    """
    if word_count <= 0:
        return 100
    weight = sum(
        SEVERITY_WEIGHTS.get(f.severity, 1) for f in findings if f.kind in CORRECTNESS_KINDS
    )
    errors_per_hundred = weight / word_count * 100
    return int(max(0, round(100 - errors_per_hundred * 10)))


def merge_scores(base: Scores, local_findings: Iterable[Finding], word_count: int) -> Scores:
    """Cap the remote correctness score by what the local analyzers found."""
    correctness = min(base.correctness, local_correctness(local_findings, word_count))
    return Scores.from_components(correctness, base.clarity, base.engagement, base.delivery)
