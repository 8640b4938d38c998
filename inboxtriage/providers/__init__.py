"""
External classifier providers for Inbox Triage.

- Anthropic: Claude models (cloud), preferred by default
- OpenAI: GPT models (cloud)
- Ollama: local models, opt-in

Build an ordered chain from configuration:
    from inboxtriage.providers import FallbackClassifier, ProviderFactory
    classifier = FallbackClassifier(ProviderFactory.build_chain(["anthropic", "openai"]))
"""

from .anthropic_provider import AnthropicProvider
from .base import (
    MalformedResponse,
    PriorityProvider,
    ProviderCallFailed,
    ProviderError,
    ProviderResponse,
    ProviderUnavailable,
    build_prompt,
    parse_provider_payload,
)
from .chain import FallbackClassifier
from .factory import ProviderFactory
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "FallbackClassifier",
    "MalformedResponse",
    "OllamaProvider",
    "OpenAIProvider",
    "PriorityProvider",
    "ProviderCallFailed",
    "ProviderError",
    "ProviderFactory",
    "ProviderResponse",
    "ProviderUnavailable",
    "build_prompt",
    "parse_provider_payload",
]
