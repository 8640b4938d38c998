"""
Inbox Triage - Version and metadata
"""

__version__ = "0.3.0"
__author__ = "Inbox Triage Contributors"
__license__ = "MIT"
__description__ = (
    "Hybrid heuristic + LLM priority triage for busy inboxes"
)
