"""
Confidence gate between the heuristic scorer and the external classifier.

A heuristic decision at or above the threshold is final; anything below it,
or an uncertain result, is escalated. Additive results never escalate.
"""

import logging
from typing import Dict, Optional

from .heuristics import STRATEGY_ADDITIVE
from .models import HeuristicResult

logger = logging.getLogger(__name__)


class ConfidenceGate:
    """
    Decide whether a heuristic result needs an external classifier.

    Usage:
        gate = ConfidenceGate({"threshold": 90})

        if gate.should_escalate(heuristic):
            external = classifier.classify(message)
    """

    DEFAULT_THRESHOLD = 90

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: Configuration with:
                - threshold: Integer confidence (0-100) a baseline decision
                  needs to be final (default: 90)

        Raises:
            ValueError: if the threshold is not an integer in [0, 100]
        """
        config = config or {}
        threshold = config.get("threshold", self.DEFAULT_THRESHOLD)

        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ValueError(f"Escalation threshold must be an integer, got {threshold!r}")
        if not 0 <= threshold <= 100:
            raise ValueError(f"Escalation threshold must be within 0-100, got {threshold}")

        self.threshold = threshold

    def is_authoritative(self, result: HeuristicResult) -> bool:
        """True when the heuristic decision can be returned as-is."""
        if result.is_uncertain:
            return False
        if result.strategy == STRATEGY_ADDITIVE:
            return True
        return result.confidence is not None and result.confidence >= self.threshold

    def should_escalate(self, result: HeuristicResult) -> bool:
        escalate = not self.is_authoritative(result)
        if escalate:
            logger.debug(
                f"Escalating: confidence {result.confidence} below threshold "
                f"{self.threshold} ({result.reasoning})"
            )
        return escalate
