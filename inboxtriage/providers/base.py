"""
Base provider interface for external priority classification.

Every variant builds the same prompt, sends it to its service and hands the
raw completion text to `parse_provider_payload`, which enforces the
three-field contract {priority, confidence, reasoning}.
"""

import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..core.models import NormalizedMessage, Tier
from ..utils.logger import logger
from ..utils.sanitize import neutralize_injection

REQUIRED_FIELDS = frozenset({"priority", "confidence", "reasoning"})

DEFAULT_TIMEOUT = 10
DEFAULT_MAX_TOKENS = 200
DEFAULT_TEMPERATURE = 0.1

SYSTEM_PROMPT = (
    "You are an AI assistant that analyzes emails for priority ranking for "
    "busy executives. Respond with ONLY a JSON object containing priority "
    "(HIGH, MEDIUM, LOW), confidence (0-100), and reasoning."
)

PROMPT_TEMPLATE = """Analyze this email for priority ranking:

FROM: {sender}
SUBJECT: {subject}
DATE: {timestamp}
BODY: {body}

Consider:
- Urgency indicators (deadlines, time constraints)
- Sender importance (executive, client, partner)
- Action requirements
- Business impact
- Personal importance cues

Respond with JSON only, using exactly these fields:
{{
  "priority": "HIGH|MEDIUM|LOW",
  "confidence": 85,
  "reasoning": "Brief explanation"
}}"""


class ProviderError(Exception):
    """A provider could not produce a classification."""


class ProviderUnavailable(ProviderError):
    """The provider is not configured (e.g. no API key)."""


class ProviderCallFailed(ProviderError):
    """Transport error, timeout or non-success HTTP status."""


class MalformedResponse(ProviderError):
    """The completion is not a valid three-field priority object."""


@dataclass(frozen=True)
class ProviderResponse:
    """
    Normalized answer of an external classifier.

    Attributes:
        tier: Suggested priority tier
        confidence: 0-100 self-assessed confidence
        reasoning: Short explanation
        model: Identifier of the provider/model that answered
        latency_ms: Response time in milliseconds
    """
    tier: Tier
    confidence: int
    reasoning: str
    model: Optional[str] = None
    latency_ms: int = 0


def build_prompt(message: NormalizedMessage) -> str:
    """Embed sender, subject, UTC timestamp and body excerpt in the fixed prompt."""
    return PROMPT_TEMPLATE.format(
        sender=neutralize_injection(message.sender),
        subject=neutralize_injection(message.subject),
        timestamp=message.timestamp.isoformat(),
        body=neutralize_injection(message.body) or "(no body)",
    )


def _load_json_object(content: str) -> Dict[str, Any]:
    text = content.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in prose or a code fence
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise MalformedResponse(f"No JSON object in response: {text[:200]!r}")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise MalformedResponse(f"Unparseable JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
    return data


def parse_provider_payload(
    content: str, model: Optional[str] = None, latency_ms: int = 0
) -> ProviderResponse:
    """
    Validate a completion against the three-field contract.

    Raises:
        MalformedResponse: on any deviation (missing or extra fields, tier
            outside HIGH/MEDIUM/LOW, confidence outside [0, 100], empty
            reasoning)
    """
    if not isinstance(content, str):
        raise MalformedResponse("Completion text is missing")
    data = _load_json_object(content)

    keys = set(data)
    if keys != REQUIRED_FIELDS:
        missing = sorted(REQUIRED_FIELDS - keys)
        extra = sorted(keys - REQUIRED_FIELDS)
        raise MalformedResponse(f"Field mismatch (missing={missing}, extra={extra})")

    try:
        tier = Tier.parse(data["priority"])
    except ValueError as e:
        raise MalformedResponse(f"Invalid priority {data['priority']!r}") from e

    confidence = data["confidence"]
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise MalformedResponse(f"Confidence must be a number, got {confidence!r}")
    if not 0 <= confidence <= 100:
        raise MalformedResponse(f"Confidence out of range: {confidence}")

    reasoning = data["reasoning"]
    if not isinstance(reasoning, str) or not reasoning.strip():
        raise MalformedResponse("Reasoning must be a non-empty string")

    return ProviderResponse(
        tier=tier,
        confidence=int(round(confidence)),
        reasoning=reasoning.strip(),
        model=model,
        latency_ms=latency_ms,
    )


class PriorityProvider(ABC):
    """
    Abstract base class for external priority classifiers.

    Subclasses implement `complete()` (one network exchange returning the
    raw completion text); `classify()` wraps it with timing, transport
    error mapping and strict response parsing.
    """

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        self.timeout = config.get("timeout", DEFAULT_TIMEOUT)
        self.max_tokens = config.get("max_tokens", DEFAULT_MAX_TOKENS)
        self.temperature = config.get("temperature", DEFAULT_TEMPERATURE)

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the completion text.

        Raises:
            ProviderCallFailed: on non-success responses
            MalformedResponse: when the envelope lacks completion text
            requests.RequestException: on transport errors
        """

    @abstractmethod
    def get_name(self) -> str:
        """Return provider identifier for logging and provenance."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the provider service is reachable."""

    @property
    @abstractmethod
    def is_local(self) -> bool:
        """Whether provider runs locally (no cloud costs)."""

    @property
    def model_id(self) -> str:
        return f"{self.get_name()}:{getattr(self, 'model', 'unknown')}"

    def classify(self, message: NormalizedMessage) -> ProviderResponse:
        """
        Classify one message.

        Raises:
            ProviderCallFailed: on transport or HTTP failure
            MalformedResponse: when the answer breaks the contract
        """
        start_time = time.time()
        prompt = build_prompt(message)

        try:
            content = self.complete(prompt)
        except requests.exceptions.Timeout as e:
            raise ProviderCallFailed(f"{self.get_name()} request timed out") from e
        except requests.exceptions.RequestException as e:
            raise ProviderCallFailed(f"{self.get_name()} request failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        result = parse_provider_payload(content, self.model_id, latency_ms)
        logger.debug(
            f"{self.get_name()} classified {message.id} as {result.tier.value} "
            f"({result.confidence}) in {latency_ms}ms"
        )
        return result

    def _probe(self, url: str, headers: Optional[Dict[str, str]] = None) -> bool:
        """GET a cheap endpoint; a rate-limited answer still counts as reachable."""
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{self.get_name()} health check failed: {e}")
            return False

        if response.status_code in (401, 403):
            logger.error(f"{self.get_name()} rejected the API key")
            return False
        if response.status_code == 429:
            logger.warning(f"{self.get_name()} rate limited during health check")
            return True
        return response.status_code == 200

    @staticmethod
    def _check_status(name: str, response: requests.Response) -> None:
        if response.status_code == 429:
            raise ProviderCallFailed(f"{name} rate limit exceeded")
        if response.status_code >= 400:
            raise ProviderCallFailed(f"{name} HTTP {response.status_code}")
