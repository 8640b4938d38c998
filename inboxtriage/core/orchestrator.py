"""
Orchestrator module - hybrid priority classification pipeline.

Flow per message: Heuristic -> Confidence gate -> (External providers) -> Merge.
Batches fan out through the BatchProcessor and are ranked for presentation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .batch_processor import BatchProcessor
from .confidence import ConfidenceGate
from .heuristics import get_scorer
from .merger import merge
from .models import ClassificationResult, NormalizedMessage
from .ranking import ClassifiedMessage, filter_by_tier, rank, tier_counts
from ..providers.base import PriorityProvider
from ..providers.chain import FallbackClassifier
from ..providers.factory import ProviderFactory
from ..utils.config import load_config, merge_defaults, validate_config
from ..utils.logger import logger, set_level


class Orchestrator:
    """
    Coordinates heuristic scoring, escalation and merging.

    `classify` never raises for classification problems: every message
    leaves with a ClassificationResult. Only invalid configuration fails,
    at construction.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        providers: Optional[Sequence[PriorityProvider]] = None,
    ):
        """
        Args:
            config: Configuration dict (validated and merged over defaults);
                loaded from disk when omitted
            providers: Explicit provider chain, overriding `providers` in config
        """
        if config is None:
            self.config = load_config()
        else:
            validate_config(config)
            self.config = merge_defaults(config)

        set_level(self.config["log_level"])

        heuristics = self.config["heuristics"]
        self.scorer = get_scorer(heuristics["strategy"], heuristics.get("timezone", "UTC"))
        self.gate = ConfidenceGate(self.config["escalation"])
        self.batch_processor = BatchProcessor(self.config["batch"])

        if providers is None:
            providers = ProviderFactory.build_chain(
                self.config["providers"],
                self.config["provider_settings"],
                timeout=self.config["timeout"],
            )
        self.classifier = FallbackClassifier(providers)

        logger.info(
            f"Orchestrator ready: strategy={self.scorer.name}, "
            f"threshold={self.gate.threshold}, providers={self.classifier.provider_names}"
        )

    def classify(
        self, message: NormalizedMessage, now: Optional[datetime] = None
    ) -> ClassificationResult:
        """Classify one message."""
        heuristic = self.scorer.score(message, now=now)

        external = None
        if self.gate.should_escalate(heuristic) and self.classifier:
            external = self.classifier.classify(message)

        result = merge(heuristic, external, self.gate)
        logger.info(
            f"Decision for {message.id}: {result.tier.value} "
            f"({result.confidence}, {result.provenance.value})"
        )
        return result

    def classify_batch(
        self, messages: Sequence[NormalizedMessage], now: Optional[datetime] = None
    ) -> List[ClassifiedMessage]:
        """Classify concurrently; returns completed messages in input order."""
        job = self.batch_processor.run(messages, lambda m: self.classify(m, now=now))
        # Finished jobs are not retained across requests
        self.batch_processor.discard(job.job_id)
        return [
            ClassifiedMessage(m, job.results[m.id]) for m in messages if m.id in job.results
        ]

    def triage(
        self,
        messages: Sequence[NormalizedMessage],
        tier: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[ClassifiedMessage]:
        """Classify, rank and optionally filter a batch."""
        return filter_by_tier(rank(self.classify_batch(messages, now=now)), tier)

    def handle_message(self, request: dict) -> dict:
        """
        Dispatch one JSON request:
        ping, classify {message}, triage {messages, filter}, health.
        """
        if not isinstance(request, dict):
            return {"status": "error", "error": "Request must be a JSON object"}

        msg_type = request.get("type")
        payload = request.get("payload") or {}
        if not isinstance(payload, dict):
            return {"status": "error", "error": "Payload must be a JSON object"}

        if msg_type == "ping":
            return {"type": "pong", "status": "ok"}

        try:
            if msg_type == "classify":
                return self._handle_classify(payload)
            if msg_type == "triage":
                return self._handle_triage(payload)
        except ValueError as e:
            logger.warning(f"Rejected {msg_type} request: {e}")
            return {"status": "error", "error": str(e)}

        if msg_type == "health":
            return self._handle_health()

        return {"status": "error", "error": f"Unknown message type: {msg_type}"}

    def _handle_classify(self, payload: dict) -> dict:
        message = NormalizedMessage.from_dict(payload.get("message", payload))
        result = self.classify(message)
        return {"status": "ok", "id": message.id, "result": result.to_dict()}

    def _handle_triage(self, payload: dict) -> dict:
        raw = payload.get("messages")
        if not isinstance(raw, list):
            raise ValueError("'messages' must be a list")

        messages = [NormalizedMessage.from_dict(m) for m in raw]
        ranked = rank(self.classify_batch(messages))
        shown = filter_by_tier(ranked, payload.get("filter"))

        return {
            "status": "ok",
            "messages": [item.to_dict() for item in shown],
            "counts": tier_counts(ranked),
        }

    def _handle_health(self) -> dict:
        providers = self.classifier.health()
        healthy = not providers or any(providers.values())
        return {
            "status": "ok" if healthy else "degraded",
            "strategy": self.scorer.name,
            "escalation_threshold": self.gate.threshold,
            "providers": providers,
        }
