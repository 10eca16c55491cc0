from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .models import Decision, DecisionOutcome, Finding

logger = logging.getLogger(__name__)

DecisionKey = Tuple[str, str]


class DecisionLedger:
    """
    Accepted and dismissed suggestions, keyed by ``(kind, original_text)``.

    Finding ids do not survive re-analysis, so the key is the only thing that
    lets a later cycle recognize a finding the user already handled.
    """

    def __init__(self) -> None:
        self._decisions: Dict[DecisionKey, Decision] = {}
        self._version = 0

    @property
    def version(self) -> int:
        """Bumped on every change so filtered views can be memoized."""
        return self._version

    def __len__(self) -> int:
        return len(self._decisions)

    def __contains__(self, key: object) -> bool:
        return key in self._decisions

    def record(self, finding: Finding, outcome: DecisionOutcome) -> Decision:
        decision = Decision(finding.kind, finding.original_text, outcome)
        self._decisions[finding.decision_key] = decision
        self._version += 1
        logger.debug("Recorded %s decision for %s %r", outcome.value, *finding.decision_key)
        return decision

    def is_resolved(self, finding: Finding) -> bool:
        return finding.decision_key in self._decisions

    def filter(self, findings: Iterable[Finding]) -> List[Finding]:
        return [f for f in findings if f.decision_key not in self._decisions]

    def decisions(self) -> List[Decision]:
        return list(self._decisions.values())

    def clear(self) -> None:
        self._decisions.clear()
        self._version += 1
