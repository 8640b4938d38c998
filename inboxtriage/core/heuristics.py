"""
Heuristic priority scoring.

Two strategies produce compatible HeuristicResults:
- BaselineScorer: ordered short-circuit rules for authoritative server-side
  triage. Returns an uncertain result when no rule fires.
- AdditiveScorer: weighted signal sum for standalone best-effort ranking.
  Always yields a tier.

Keyword matching is case-insensitive substring matching with no word
boundaries ("deadlines" matches "deadline").
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import HeuristicResult, NormalizedMessage, ScoredSignal, Tier, to_utc

logger = logging.getLogger(__name__)

STRATEGY_BASELINE = "baseline"
STRATEGY_ADDITIVE = "additive"

# Baseline indicator sets, evaluated in this order
SPAM_INDICATORS = (
    "unsubscribe", "newsletter", "marketing", "promotional",
    "noreply", "no-reply", "donotreply",
)
URGENT_INDICATORS = ("urgent", "asap", "emergency", "critical", "immediate")
VIP_SENDER_INDICATORS = ("ceo", "board", "investor")

# Additive keyword families
URGENCY_KEYWORDS: Dict[str, int] = {
    "urgent": 25, "asap": 25, "immediate": 25, "emergency": 30,
    "deadline": 20, "eod": 20, "end of day": 20, "today": 15,
    "action required": 20, "please respond": 15, "time sensitive": 20,
    "important": 10, "critical": 25, "priority": 15,
}
BUSINESS_KEYWORDS: Dict[str, int] = {
    "board": 30, "ceo": 25, "cto": 25, "executive": 20,
    "meeting": 15, "proposal": 15, "contract": 25, "budget": 20,
    "revenue": 20, "client": 15, "customer": 15, "deal": 20,
    "partnership": 15, "investor": 25, "funding": 25,
}
LOW_PRIORITY_KEYWORDS: Dict[str, int] = {
    "newsletter": -20, "unsubscribe": -25, "notification": -15,
    "noreply": -20, "automated": -15, "marketing": -15,
    "promotional": -20, "spam": -30, "advertisement": -25,
    "sale": -10, "offer": -10, "deal of the day": -20,
    "team building": -5, "social event": -5,
}
KEYWORD_FAMILIES = (
    ("urgency", URGENCY_KEYWORDS),
    ("business", BUSINESS_KEYWORDS),
    ("low", LOW_PRIORITY_KEYWORDS),
)
SUBJECT_BONUS = 0.5

PERSONAL_DOMAINS = ("@gmail.com", "@hotmail.com", "@yahoo.com")
AUTOMATED_SENDERS = ("noreply", "no-reply", "donotreply")
VIP_SENDER_HINTS = (
    "board", "ceo", "cto", "cfo", "vp", "director", "partner",
    "client", "customer", "investor",
)

NEUTRAL_SCORE = 50
HIGH_CUTOFF = 75
LOW_CUTOFF = 25

BUSINESS_DAY_START = 7
BUSINESS_DAY_END = 19


class HeuristicScorer(ABC):
    """A cheap, deterministic priority estimator."""

    name: str = ""

    @abstractmethod
    def score(
        self, message: NormalizedMessage, now: Optional[datetime] = None
    ) -> HeuristicResult:
        """Score one message. `now` only matters to time-based signals."""


def _first_match(text: str, indicators: Tuple[str, ...]) -> Optional[str]:
    for indicator in indicators:
        if indicator in text:
            return indicator
    return None


class BaselineScorer(HeuristicScorer):
    """
    Deterministic short-circuit rules:
    spam/automation -> LOW 95, urgency -> HIGH 90, VIP sender -> HIGH 85,
    otherwise uncertain.
    """

    name = STRATEGY_BASELINE

    def score(
        self, message: NormalizedMessage, now: Optional[datetime] = None
    ) -> HeuristicResult:
        sender = message.sender.lower()
        subject = message.subject.lower()
        body = message.body.lower()

        hit = _first_match(sender, SPAM_INDICATORS) or _first_match(
            subject, SPAM_INDICATORS
        )
        if hit:
            return self._decide(Tier.LOW, 95, "Newsletter/automated content", hit)

        hit = _first_match(subject, URGENT_INDICATORS) or _first_match(
            body, URGENT_INDICATORS
        )
        if hit:
            return self._decide(Tier.HIGH, 90, "Contains urgency keywords", hit)

        hit = _first_match(sender, VIP_SENDER_INDICATORS)
        if hit:
            return self._decide(Tier.HIGH, 85, "VIP sender", hit)

        return HeuristicResult(
            tier=None,
            confidence=None,
            reasoning="No baseline rule matched",
            strategy=self.name,
        )

    def _decide(
        self, tier: Tier, confidence: int, reasoning: str, indicator: str
    ) -> HeuristicResult:
        logger.debug(f"Baseline rule matched '{indicator}' -> {tier.value}")
        return HeuristicResult(
            tier=tier,
            confidence=confidence,
            reasoning=reasoning,
            strategy=self.name,
            signals=(ScoredSignal(f"indicator:{indicator}", 0),),
        )


class AdditiveScorer(HeuristicScorer):
    """
    Neutral score of 50 adjusted by keyword, sender, recency and subject
    signals; >=75 is HIGH, <=25 is LOW, anything between is MEDIUM.
    """

    name = STRATEGY_ADDITIVE

    def __init__(self, tz: str = "UTC"):
        if tz.upper() == "UTC":
            self.tz = timezone.utc
            return
        try:
            self.tz = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{tz}'") from e

    def score(
        self, message: NormalizedMessage, now: Optional[datetime] = None
    ) -> HeuristicResult:
        now = to_utc(now) if now else datetime.now(timezone.utc)
        signals = (
            self.keyword_signals(message)
            + self.sender_signals(message.sender)
            + self.time_signals(message.timestamp, now)
            + self.subject_signals(message.subject)
        )

        total = NEUTRAL_SCORE + sum(s.weight for s in signals)
        tier = self.tier_for(total)
        confidence = min(100, int(round(NEUTRAL_SCORE + abs(total - NEUTRAL_SCORE))))

        return HeuristicResult(
            tier=tier,
            confidence=confidence,
            reasoning=self._explain(total, signals),
            strategy=self.name,
            score=total,
            signals=tuple(signals),
        )

    @staticmethod
    def tier_for(total: float) -> Tier:
        if total >= HIGH_CUTOFF:
            return Tier.HIGH
        if total <= LOW_CUTOFF:
            return Tier.LOW
        return Tier.MEDIUM

    def keyword_signals(self, message: NormalizedMessage) -> List[ScoredSignal]:
        subject = message.subject.lower()
        body = message.body.lower()
        signals = []

        for family, keywords in KEYWORD_FAMILIES:
            for keyword, points in keywords.items():
                in_subject = keyword in subject
                if not (in_subject or keyword in body):
                    continue
                weight = points + (points * SUBJECT_BONUS if in_subject else 0)
                signals.append(ScoredSignal(f"{family}:{keyword}", weight))

        return signals

    def sender_signals(self, sender: str) -> List[ScoredSignal]:
        sender = sender.lower()
        if any(domain in sender for domain in PERSONAL_DOMAINS):
            return [ScoredSignal("sender:personal", -5)]
        if any(hint in sender for hint in AUTOMATED_SENDERS):
            return [ScoredSignal("sender:automated", -15)]
        if any(hint in sender for hint in VIP_SENDER_HINTS):
            return [ScoredSignal("sender:vip", 15)]
        return [ScoredSignal("sender:corporate", 5)]

    def time_signals(self, timestamp: datetime, now: datetime) -> List[ScoredSignal]:
        timestamp, now = to_utc(timestamp), to_utc(now)
        hours = (now - timestamp).total_seconds() / 3600

        # Recency wins over hour-of-day
        if hours < 1:
            return [ScoredSignal("recency:last_hour", 10)]
        if hours < 4:
            return [ScoredSignal("recency:last_4_hours", 5)]
        if hours > 48:
            return [ScoredSignal("recency:stale", -10)]

        local = timestamp.astimezone(self.tz)
        if local.weekday() >= 5:
            return [ScoredSignal("time:weekend", 5)]
        if local.hour < BUSINESS_DAY_START or local.hour > BUSINESS_DAY_END:
            return [ScoredSignal("time:after_hours", 5)]
        return []

    def subject_signals(self, subject: str) -> List[ScoredSignal]:
        lowered = subject.lower()
        signals = []

        if "?" in subject:
            signals.append(ScoredSignal("subject:question", 5))
        if len(subject) > 5 and subject == subject.upper():
            signals.append(ScoredSignal("subject:all_caps", 10))
        exclamations = subject.count("!")
        if exclamations:
            signals.append(ScoredSignal("subject:exclamation", min(exclamations * 3, 10)))
        if lowered.startswith("re:") or lowered.startswith("fwd:"):
            signals.append(ScoredSignal("subject:thread", 5))
        if len(subject) < 20:
            signals.append(ScoredSignal("subject:short", 3))
        if len(subject) > 100:
            signals.append(ScoredSignal("subject:long", -10))

        return signals

    @staticmethod
    def _explain(total: float, signals: List[ScoredSignal]) -> str:
        top = sorted(signals, key=lambda s: abs(s.weight), reverse=True)[:4]
        parts = ", ".join(f"{s.name} {s.weight:+g}" for s in top)
        return f"Score {total:g}" + (f" ({parts})" if parts else "")


def get_scorer(strategy: str = STRATEGY_BASELINE, tz: str = "UTC") -> HeuristicScorer:
    """
    Build the scorer for a deployment context.

    Raises:
        ValueError: for an unknown strategy or timezone
    """
    if strategy == STRATEGY_BASELINE:
        return BaselineScorer()
    if strategy == STRATEGY_ADDITIVE:
        return AdditiveScorer(tz)
    raise ValueError(
        f"Unknown heuristic strategy: '{strategy}'. "
        f"Available: {[STRATEGY_BASELINE, STRATEGY_ADDITIVE]}"
    )
