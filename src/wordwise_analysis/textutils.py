from __future__ import annotations

import hashlib
import math
import re

from .models import AnalysisMetadata

WORD_RE = re.compile(r"\S+")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
SENTENCE_END_RE = re.compile(r"[.!?]\s*$")
WORDS_PER_MINUTE = 200


def content_hash(text: str) -> str:
    """Cache key for a full document text."""
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()


def count_words(text: str) -> int:
    return len(WORD_RE.findall(text))


def count_sentences(text: str) -> int:
    return sum(1 for part in SENTENCE_SPLIT_RE.split(text) if part.strip())


def ends_with_sentence(text: str) -> bool:
    return bool(SENTENCE_END_RE.search(text.strip()))


def build_metadata(text: str, analysis_time_ms: int = 0) -> AnalysisMetadata:
    """Word, sentence and reading-time figures for a text."""
    words = count_words(text)
    return AnalysisMetadata(
        word_count=words,
        sentence_count=count_sentences(text),
        reading_time_minutes=math.ceil(words / WORDS_PER_MINUTE),
        analysis_time_ms=analysis_time_ms,
    )


def match_case(original: str, suggestion: str) -> str:
    """Carry a leading capital from the original word onto the suggestion."""
    if original[:1].isupper() and suggestion:
        return suggestion[0].upper() + suggestion[1:]
    return suggestion
