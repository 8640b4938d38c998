"""
Inbox Triage: hybrid priority classification for inbound messages.

Typical use:
    from inboxtriage import Orchestrator
    orchestrator = Orchestrator()
    result = orchestrator.classify(message)
"""

from .__version__ import __version__
from .core.models import ClassificationResult, NormalizedMessage, Provenance, Tier
from .core.orchestrator import Orchestrator

__all__ = [
    "__version__",
    "ClassificationResult",
    "NormalizedMessage",
    "Orchestrator",
    "Provenance",
    "Tier",
]
