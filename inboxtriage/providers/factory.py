"""
Provider factory: name -> PriorityProvider class registry, plus assembly of
the ordered provider chain from configuration.
"""

import logging
from typing import Dict, Iterable, List, Optional, Type

from .anthropic_provider import AnthropicProvider
from .base import PriorityProvider, ProviderUnavailable
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


class ProviderFactory:
    """
    Registry of provider classes.

    The set of variants is closed at import time (anthropic, openai,
    ollama); `register` exists for tests and local extensions.
    """

    _providers: Dict[str, Type[PriorityProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: Type[PriorityProvider]) -> None:
        cls._providers[name] = provider_class
        logger.debug(f"Registered provider: {name}")

    @classmethod
    def unregister(cls, name: str) -> bool:
        """Remove a provider (mainly for testing). True if it was registered."""
        return cls._providers.pop(name, None) is not None

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._providers

    @classmethod
    def list_providers(cls) -> List[str]:
        return list(cls._providers.keys())

    @classmethod
    def create(cls, name: str, config: Optional[Dict] = None) -> PriorityProvider:
        """
        Instantiate a provider.

        Raises:
            ValueError: If provider name is unknown
            ProviderUnavailable: If the provider lacks a credential
        """
        if name not in cls._providers:
            available = list(cls._providers.keys())
            raise ValueError(f"Unknown provider: '{name}'. Available: {available}")

        instance = cls._providers[name](config or {})
        logger.info(f"Created provider instance: {name}")
        return instance

    @classmethod
    def build_chain(
        cls,
        names: Iterable[str],
        settings: Optional[Dict[str, Dict]] = None,
        timeout: Optional[float] = None,
    ) -> List[PriorityProvider]:
        """
        Create providers in preference order, skipping unconfigured ones.

        Args:
            names: Provider names, most preferred first
            settings: Per-provider configuration dicts
            timeout: Default per-call timeout when a provider sets none
        """
        settings = settings or {}
        chain = []

        for name in names:
            config = dict(settings.get(name, {}))
            if timeout is not None:
                config.setdefault("timeout", timeout)
            try:
                chain.append(cls.create(name, config))
            except ProviderUnavailable as e:
                logger.debug(f"Skipping provider '{name}': {e}")

        if not chain:
            logger.warning("No external provider configured; heuristics only")
        return chain


def _register_builtin_providers():
    ProviderFactory.register("anthropic", AnthropicProvider)
    ProviderFactory.register("openai", OpenAIProvider)
    ProviderFactory.register("ollama", OllamaProvider)


_register_builtin_providers()
