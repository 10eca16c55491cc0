from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..models import Finding


class Analyzer(ABC):
    """Abstract analyzer that turns document text into findings."""

    source: str = "analyzer"

    @abstractmethod
    async def analyze(self, text: str) -> List[Finding]:
        """Return the findings detected in the input text."""
        raise NotImplementedError
