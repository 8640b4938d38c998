"""
Ordered fallback over the configured providers.

The first provider that answers wins. Failures are logged and the next
provider is tried; when every provider fails, the caller gets None.
"""

from typing import List, Optional, Sequence

from .base import PriorityProvider, ProviderError, ProviderResponse
from ..core.models import NormalizedMessage
from ..utils.logger import logger


class FallbackClassifier:
    """
    External classifier adapter over an ordered provider list.

    Usage:
        classifier = FallbackClassifier(ProviderFactory.build_chain(["anthropic", "openai"]))
        response = classifier.classify(message)  # ProviderResponse or None
    """

    def __init__(self, providers: Sequence[PriorityProvider]):
        self.providers: List[PriorityProvider] = list(providers)

    @property
    def provider_names(self) -> List[str]:
        return [p.get_name() for p in self.providers]

    def __bool__(self) -> bool:
        return bool(self.providers)

    def classify(self, message: NormalizedMessage) -> Optional[ProviderResponse]:
        """Never raises; None means no provider produced a valid answer."""
        for provider in self.providers:
            name = provider.get_name()
            try:
                return provider.classify(message)
            except ProviderError as e:
                logger.warning(f"{name} failed for message {message.id}, trying next: {e}")

        if self.providers:
            logger.info(f"All providers exhausted for message {message.id}")
        return None

    def health(self) -> dict:
        return {p.get_name(): p.health_check() for p in self.providers}
