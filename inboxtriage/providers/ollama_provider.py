"""
Ollama provider for local priority classification.

Opt-in (not in the default preference order): free, private, and slower.
Needs no credential, so it is always constructible.
"""

from typing import Dict, Optional

import requests

from .base import SYSTEM_PROMPT, MalformedResponse, PriorityProvider
from ..utils.logger import logger


class OllamaProvider(PriorityProvider):
    """
    Ollama provider for local LLM inference.

    Features:
    - Zero cloud cost (runs locally)
    - Any pulled model (llama3, mistral, gemma, etc.)
    - Ollama JSON mode for a bare object answer
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: Provider configuration dict with:
                - base_url: Ollama API URL (default: http://localhost:11434)
                - model: Model name (default: llama3)
                - timeout: Request timeout in seconds
        """
        super().__init__(config)
        config = config or {}
        self.base_url = config.get("base_url", "http://localhost:11434")
        self.model = config.get("model", "llama3")
        self.api_endpoint = f"{self.base_url}/api/generate"

    def get_name(self) -> str:
        return "ollama"

    @property
    def is_local(self) -> bool:
        return True

    def health_check(self) -> bool:
        """
        Check that Ollama is running, via /api/tags.
        A missing model only logs a warning.
        """
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            if response.status_code != 200:
                logger.warning(f"Ollama health check returned status {response.status_code}")
                return False
            names = [m.get("name", "") for m in response.json().get("models", [])]
        except requests.exceptions.ConnectionError:
            logger.warning("Could not connect to Ollama - is it running?")
            return False
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Ollama health check failed: {e}")
            return False

        if not any(n.split(":")[0] == self.model for n in names):
            logger.warning(f"Model '{self.model}' not found in Ollama. Available: {names}")
        return True

    def complete(self, prompt: str) -> str:
        response = requests.post(
            self.api_endpoint,
            json={
                "model": self.model,
                "system": SYSTEM_PROMPT,
                "prompt": prompt,
                "stream": False,
                "format": "json",
                "options": {
                    "temperature": self.temperature,
                    "num_predict": self.max_tokens,
                },
            },
            timeout=self.timeout,
        )
        self._check_status("Ollama", response)

        try:
            return response.json()["response"]
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedResponse(f"Unexpected Ollama envelope: {e}") from e
