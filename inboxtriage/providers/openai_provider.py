"""
OpenAI provider for cloud priority classification.

Second in the default preference order. Uses Chat Completions in JSON mode
so the answer is a bare object.
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


class OpenAIProvider(PriorityProvider):
    """
    OpenAI provider for cloud priority classification.

    Cost Optimization:
    - Uses gpt-4o-mini by default
    - Low max_tokens (200) and temperature (0.1)
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize OpenAI provider.

        Args:
            config: Provider configuration with:
                - model: Model name (default: gpt-4o-mini)
                - api_key: API key (or OPENAI_API_KEY / keyring)
                - base_url: API base URL (for Azure/proxies)
                - timeout: Request timeout in seconds
                - max_tokens: Maximum response tokens
                - temperature: Sampling temperature

        Raises:
            ProviderUnavailable: if no API key can be found
        """
        super().__init__(config)
        config = config or {}
        self.model = config.get("model", "gpt-4o-mini")
        self.api_key = config.get("api_key") or get_api_key("openai")
        self.base_url = config.get("base_url", "https://api.openai.com/v1")

        if not self.api_key:
            raise ProviderUnavailable(
                "OpenAI API key not configured. Set OPENAI_API_KEY or "
                "store it with inboxtriage.utils.secrets.set_api_key('openai', ...)"
            )

    def get_name(self) -> str:
        return "openai"

    @property
    def is_local(self) -> bool:
        return False

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def health_check(self) -> bool:
        return self._probe(f"{self.base_url}/models", self._headers())

    def complete(self, prompt: str) -> str:
        response = requests.post(
            f"{self.base_url}/chat/completions",
            headers=self._headers(),
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "response_format": {"type": "json_object"},
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
            timeout=self.timeout,
        )
        self._check_status("OpenAI", response)

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponse(f"Unexpected OpenAI envelope: {e}") from e
