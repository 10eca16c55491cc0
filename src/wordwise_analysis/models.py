from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

FINDING_KINDS = (
    "spelling",
    "grammar",
    "punctuation",
    "style",
    "clarity",
    "engagement",
    "delivery",
)
SEVERITIES = ("low", "medium", "high")

# Lower value wins when several findings compete for the same position.
CLICK_ORDER = (
    "spelling",
    "grammar",
    "punctuation",
    "clarity",
    "style",
    "engagement",
    "delivery",
)
KIND_PRIORITY = {kind: rank for rank, kind in enumerate(CLICK_ORDER)}


def new_finding_id(prefix: str) -> str:
    """Return an identifier unique within one analysis cycle."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass(slots=True, frozen=True)
class Token:
    """Represents a token and its inclusive-exclusive character offsets."""

    text: str
    start_char: int
    end_char: int


@dataclass(slots=True, frozen=True)
class Span:
    """Half-open character range into the plain-text document."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(slots=True)
class Finding:
    """One detected issue with the text it refers to and a suggested fix."""

    id: str
    kind: str
    severity: str
    span: Span
    original_text: str
    suggested_text: str
    message: str = ""
    explanation: str = ""
    confidence: float = 0.8
    category: str = ""
    source: str = "rules"

    @property
    def decision_key(self) -> Tuple[str, str]:
        return (self.kind, self.original_text)


@dataclass(slots=True, frozen=True)
class Scores:
    """Integer quality scores in [0, 100]."""

    correctness: int = 100
    clarity: int = 100
    engagement: int = 100
    delivery: int = 100
    overall: int = 100

    @classmethod
    def from_components(
        cls,
        correctness: float,
        clarity: float,
        engagement: float,
        delivery: float,
    ) -> "Scores":
        """Clamp the four components and derive overall as their rounded mean."""
        values = [_clamp_score(v) for v in (correctness, clarity, engagement, delivery)]
        return cls(*values, overall=_clamp_score(sum(values) / len(values)))

    def as_dict(self) -> dict[str, int]:
        return {
            "correctness": self.correctness,
            "clarity": self.clarity,
            "engagement": self.engagement,
            "delivery": self.delivery,
            "overall": self.overall,
        }


def _clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))


@dataclass(slots=True, frozen=True)
class AnalysisMetadata:
    word_count: int = 0
    sentence_count: int = 0
    reading_time_minutes: int = 0
    analysis_time_ms: int = 0


class AnalysisStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    EMPTY = "empty"


@dataclass(slots=True)
class AnalysisResult:
    """Findings plus scores for one analysis cycle."""

    findings: list[Finding] = field(default_factory=list)
    scores: Scores = field(default_factory=Scores)
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)
    status: AnalysisStatus = AnalysisStatus.OK

    @property
    def remote_available(self) -> bool:
        return self.status is not AnalysisStatus.DEGRADED


class DecisionOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Decision:
    """Accept/reject outcome keyed by kind and original text."""

    kind: str
    original_text: str
    outcome: DecisionOutcome


@dataclass(slots=True, frozen=True)
class Replacement:
    """Literal text swap handed back to the editor surface."""

    original_text: str
    suggested_text: str
    finding_id: str


@dataclass(slots=True, frozen=True)
class Highlight:
    """Decorated span the editor surface renders."""

    start: int
    end: int
    css_class: str
    finding_id: str
    kind: str
    severity: str
