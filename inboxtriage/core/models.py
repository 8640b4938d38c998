"""
Data model shared by the triage pipeline.

NormalizedMessage is produced by the mail-fetching collaborator and never
mutated here. ClassificationResult is what every message leaves with.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..utils.sanitize import sanitize_body, sanitize_sender, sanitize_subject

MAX_REASONING_LENGTH = 200
NO_SUBJECT = "(No Subject)"


class Tier(Enum):
    """Priority tier, declared in presentation order."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "Tier":
        """Case-insensitive lookup; raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Tier must be a string, got {type(value).__name__}")
        return cls(value.strip().upper())


_TIER_RANK = {Tier.HIGH: 0, Tier.MEDIUM: 1, Tier.LOW: 2}


class Provenance(Enum):
    """Where a final classification decision came from."""
    BASELINE = "baseline"  # Heuristic only
    AI = "ai"              # External classifier
    FALLBACK = "fallback"  # Default guess


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a collaborator timestamp into an aware UTC datetime.

    Accepts datetime objects, epoch milliseconds, ISO-8601 strings and
    RFC 2822 date headers. Raises ValueError when nothing matches.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, bool):
        raise ValueError("Boolean is not a timestamp")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
        try:
            return to_utc(parsedate_to_datetime(text))
        except (TypeError, ValueError, IndexError):
            pass
    raise ValueError(f"Invalid timestamp: {value!r}")


@dataclass(frozen=True)
class NormalizedMessage:
    """
    Provider-agnostic inbound message.

    Attributes:
        id: Identifier, unique within a session
        sender: Raw From header / address
        subject: Plain-text subject
        body: Plain-text body excerpt (bounded length)
        timestamp: Received instant, UTC
        is_read: Read flag
    """
    id: str
    sender: str
    subject: str
    body: str
    timestamp: datetime
    is_read: bool = False

    def __post_init__(self):
        object.__setattr__(self, "timestamp", to_utc(self.timestamp))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizedMessage":
        """
        Build a message from the collaborator's wire shape:
        {id, from, subject, body, timestamp, isRead}.
        """
        if not isinstance(data, dict):
            raise ValueError("Message must be a JSON object")
        if data.get("id") in (None, ""):
            raise ValueError("Message is missing an id")

        return cls(
            id=str(data["id"]),
            sender=sanitize_sender(data.get("from", "")),
            subject=sanitize_subject(data.get("subject", "")) or NO_SUBJECT,
            body=sanitize_body(data.get("body", "")),
            timestamp=parse_timestamp(data.get("timestamp")),
            is_read=bool(data.get("isRead", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from": self.sender,
            "subject": self.subject,
            "body": self.body,
            "timestamp": self.timestamp.isoformat(),
            "isRead": self.is_read,
        }


@dataclass(frozen=True)
class ScoredSignal:
    """A named heuristic contribution (keyword, sender class, recency, shape)."""
    name: str
    weight: float


@dataclass(frozen=True)
class HeuristicResult:
    """
    Output of a heuristic scorer.

    tier is None when the scorer is uncertain; confidence is then None too.
    """
    tier: Optional[Tier]
    confidence: Optional[int]
    reasoning: str
    strategy: str
    score: Optional[float] = None
    signals: Tuple[ScoredSignal, ...] = field(default_factory=tuple)

    @property
    def is_uncertain(self) -> bool:
        return self.tier is None


def _clamp_confidence(value: Any) -> int:
    return max(0, min(100, int(round(float(value)))))


def _bound_reasoning(text: Optional[str]) -> str:
    text = " ".join((text or "").split())
    if not text:
        return "no reasoning provided"
    if len(text) > MAX_REASONING_LENGTH:
        text = text[: MAX_REASONING_LENGTH - 3].rstrip() + "..."
    return text


@dataclass(frozen=True)
class ClassificationResult:
    """
    Final, explainable classification of one message.

    Confidence is clamped to [0, 100] and reasoning is never empty.
    """
    tier: Tier
    confidence: int
    reasoning: str
    provenance: Provenance
    model: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "tier", Tier.parse(self.tier))
        object.__setattr__(self, "confidence", _clamp_confidence(self.confidence))
        object.__setattr__(self, "reasoning", _bound_reasoning(self.reasoning))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "priority": self.tier.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "source": self.provenance.value,
        }
        if self.model:
            data["model"] = self.model
        return data
