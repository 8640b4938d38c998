"""
Merge a heuristic result and an optional external result into one
ClassificationResult. Always returns a well-formed result.
"""

from typing import Optional

from .confidence import ConfidenceGate
from .models import ClassificationResult, HeuristicResult, Provenance, Tier
from ..providers.base import ProviderResponse

FALLBACK_TIER = Tier.MEDIUM
FALLBACK_CONFIDENCE = 50
FALLBACK_REASONING = "unable to analyze"


def fallback_result() -> ClassificationResult:
    return ClassificationResult(
        tier=FALLBACK_TIER,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING,
        provenance=Provenance.FALLBACK,
    )


def _from_heuristic(heuristic: HeuristicResult) -> ClassificationResult:
    return ClassificationResult(
        tier=heuristic.tier,
        confidence=heuristic.confidence,
        reasoning=heuristic.reasoning,
        provenance=Provenance.BASELINE,
    )


def merge(
    heuristic: HeuristicResult,
    external: Optional[ProviderResponse],
    gate: Optional[ConfidenceGate] = None,
) -> ClassificationResult:
    """
    Priority of sources:
    1. Authoritative heuristic decision -> BASELINE
    2. External classifier answer -> AI, unchanged
    3. Non-uncertain heuristic guess -> BASELINE
    4. MEDIUM / 50 / "unable to analyze" -> FALLBACK
    """
    gate = gate or ConfidenceGate()

    if gate.is_authoritative(heuristic):
        return _from_heuristic(heuristic)

    if external is not None:
        return ClassificationResult(
            tier=external.tier,
            confidence=external.confidence,
            reasoning=external.reasoning,
            provenance=Provenance.AI,
            model=external.model,
        )

    if not heuristic.is_uncertain:
        return _from_heuristic(heuristic)

    return fallback_result()
