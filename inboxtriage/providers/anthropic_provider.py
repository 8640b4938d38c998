"""
Anthropic provider for Claude priority classification.

First in the default preference order. Uses the Messages API with a low
temperature and a small max_tokens to bound latency and cost.
"""

from typing import Dict, Optional

import requests

from .base import (
    SYSTEM_PROMPT,
    MalformedResponse,
    PriorityProvider,
    ProviderUnavailable,
)
from ..utils.secrets import get_api_key

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(PriorityProvider):
    """
    Anthropic provider for cloud priority classification.

    Cost Optimization:
    - Uses claude-3-haiku by default (cheapest Claude model)
    - Low max_tokens (200) and temperature (0.1)
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Anthropic provider.

        Args:
            config: Provider configuration with:
                - model: Model name (default: claude-3-haiku-20240307)
                - api_key: API key (or ANTHROPIC_API_KEY / keyring)
                - base_url: API base URL
                - timeout: Request timeout in seconds
                - max_tokens: Maximum response tokens
                - temperature: Sampling temperature

        Raises:
            ProviderUnavailable: if no API key can be found
        """
        super().__init__(config)
        config = config or {}
        self.model = config.get("model", "claude-3-haiku-20240307")
        self.api_key = config.get("api_key") or get_api_key("anthropic")
        self.base_url = config.get("base_url", "https://api.anthropic.com/v1")

        if not self.api_key:
            raise ProviderUnavailable(
                "Anthropic API key not configured. Set ANTHROPIC_API_KEY or "
                "store it with inboxtriage.utils.secrets.set_api_key('anthropic', ...)"
            )

    def get_name(self) -> str:
        return "anthropic"

    @property
    def is_local(self) -> bool:
        return False

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def health_check(self) -> bool:
        # No dedicated health endpoint; listing models is the cheapest call
        return self._probe(f"{self.base_url}/models", self._headers())

    def complete(self, prompt: str) -> str:
        response = requests.post(
            f"{self.base_url}/messages",
            headers=self._headers(),
            json={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
            },
            timeout=self.timeout,
        )
        self._check_status("Anthropic", response)

        try:
            data = response.json()
            return data["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponse(f"Unexpected Anthropic envelope: {e}") from e
