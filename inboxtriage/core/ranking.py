"""
Presentation ordering for classified messages.

HIGH before MEDIUM before LOW; inside a tier the most recent message first.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import ClassificationResult, NormalizedMessage, Tier

ALL = "ALL"


@dataclass(frozen=True)
class ClassifiedMessage:
    """A message paired with its classification."""
    message: NormalizedMessage
    result: ClassificationResult

    @property
    def tier(self) -> Tier:
        return self.result.tier

    def to_dict(self) -> Dict[str, Any]:
        """Original message fields plus the decision, as the dashboard reads them."""
        data = self.message.to_dict()
        data["priority"] = self.result.tier.value
        data["aiPriority"] = self.result.to_dict()
        return data


def _sort_key(item: ClassifiedMessage):
    # Negated epoch seconds give newest-first inside a tier
    return (item.tier.rank, -item.message.timestamp.timestamp())


def rank(items: Iterable[ClassifiedMessage]) -> List[ClassifiedMessage]:
    """Stable total order: tier, then timestamp descending."""
    return sorted(items, key=_sort_key)


def filter_by_tier(
    ranked: Iterable[ClassifiedMessage], tier: Optional[Union[Tier, str]] = None
) -> List[ClassifiedMessage]:
    """Keep one tier without reordering. None or "ALL" keeps everything."""
    if tier is None or (isinstance(tier, str) and tier.upper() == ALL):
        return list(ranked)
    wanted = Tier.parse(tier)
    return [item for item in ranked if item.tier is wanted]


def tier_counts(items: Iterable[ClassifiedMessage]) -> Dict[str, int]:
    counts = {t.value: 0 for t in Tier}
    for item in items:
        counts[item.tier.value] += 1
    return counts
