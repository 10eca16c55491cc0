from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Set, Tuple

from .models import KIND_PRIORITY, Finding, Highlight, Span

logger = logging.getLogger(__name__)


def locate(text: str, finding: Finding) -> Span | None:
    """
    Return the authoritative span of ``finding.original_text`` in ``text``.

    A claimed span is only confirmed when it bounds the original text verbatim;
    otherwise the first occurrence wins. None means the text no longer exists.
    """
    original = finding.original_text
    if not original:
        return None
    claimed = finding.span
    if (
        claimed is not None
        and 0 <= claimed.start < claimed.end <= len(text)
        and text[claimed.start : claimed.end] == original
    ):
        return claimed
    index = text.find(original)
    if index < 0:
        return None
    return Span(index, index + len(original))


def remap_findings(text: str, findings: Iterable[Finding]) -> List[Finding]:
    """Copies of the findings with recomputed spans; unlocatable and duplicate ones are dropped."""
    remapped: List[Finding] = []
    seen: Set[Tuple[int, int, str]] = set()
    dropped = 0
    for finding in findings:
        span = locate(text, finding)
        if span is None:
            dropped += 1
            continue
        key = (span.start, span.end, finding.kind)
        if key in seen:
            continue
        seen.add(key)
        remapped.append(finding if span == finding.span else replace(finding, span=span))
    if dropped:
        logger.debug("Dropped %s findings whose text is no longer in the document", dropped)
    return remapped


def highlight_class(kind: str, severity: str) -> str:
    return f"grammar-issue grammar-issue-{kind} grammar-issue-{severity}"


def display_order(finding: Finding) -> Tuple[int, int, int]:
    return (
        KIND_PRIORITY.get(finding.kind, len(KIND_PRIORITY)),
        finding.span.start,
        -finding.span.length,
    )


def project_highlights(
    text: str, findings: Iterable[Finding], min_confidence: float = 0.0
) -> List[Highlight]:
    """Non-overlapping highlight descriptors, ordered by position."""
    kept: List[Finding] = []
    for finding in sorted(remap_findings(text, findings), key=display_order):
        if finding.confidence < min_confidence:
            continue
        if any(finding.span.overlaps(other.span) for other in kept):
            continue
        kept.append(finding)
    kept.sort(key=lambda f: f.span.start)
    return [
        Highlight(
            start=f.span.start,
            end=f.span.end,
            css_class=highlight_class(f.kind, f.severity),
            finding_id=f.id,
            kind=f.kind,
            severity=f.severity,
        )
        for f in kept
    ]
