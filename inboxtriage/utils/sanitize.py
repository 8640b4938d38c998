"""
Input sanitization utilities for Inbox Triage.

Bounds field lengths and neutralizes prompt injection before message text
is embedded in a provider prompt.
"""

import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

MAX_SUBJECT_LENGTH = 500
MAX_SENDER_LENGTH = 200
# Stored body excerpt agreed with the mail-fetching collaborator
BODY_EXCERPT_LENGTH = 200
ELLIPSIS = "..."

INJECTION_PATTERNS = [
    # Instruction override attempts
    r"(?i)ignore\s+(previous|all|above)\s+(instructions?|prompts?)",
    r"(?i)disregard\s+(previous|all|above)",
    r"(?i)forget\s+(everything|all|previous)",
    r"(?i)new\s+instructions?:",
    r"(?i)^\s*system\s*:\s*",
    r"(?i)^\s*assistant\s*:\s*",
    # Role manipulation
    r"(?i)you\s+are\s+now",
    r"(?i)pretend\s+(to\s+be|you\s+are)",
    # Delimiter injection
    r"```system",
    r"<\|im_start\|>",
    r"<\|im_end\|>",
    r"\[INST\]",
    r"\[/INST\]",
]

_compiled_patterns = [re.compile(p, re.MULTILINE) for p in INJECTION_PATTERNS]
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def clean_text(text) -> str:
    """Drop control characters (keeping newlines and tabs) and NFKC-normalize."""
    if not text:
        return ""
    if not isinstance(text, str):
        text = str(text)
    text = _CONTROL_CHARS.sub("", text)
    return unicodedata.normalize("NFKC", text)


def truncate_excerpt(body: str, limit: int = BODY_EXCERPT_LENGTH) -> str:
    """Cut a body to the excerpt length, marking the cut with an ellipsis."""
    if len(body) <= limit:
        return body
    return body[:limit] + ELLIPSIS


def sanitize_subject(subject) -> str:
    return clean_text(subject)[:MAX_SUBJECT_LENGTH]


def sanitize_sender(sender) -> str:
    # Newlines are never valid in an address header
    return clean_text(sender).replace("\n", " ").replace("\r", " ")[:MAX_SENDER_LENGTH]


def sanitize_body(body) -> str:
    return truncate_excerpt(clean_text(body))


def neutralize_injection(text: str) -> str:
    """
    Replace prompt-injection patterns with a marker.

    Only applied to text headed for an external model; the heuristics see
    the message as received.
    """
    if not text:
        return ""

    injection_found = False
    for pattern in _compiled_patterns:
        if pattern.search(text):
            injection_found = True
            text = pattern.sub("[FILTERED]", text)

    if injection_found:
        logger.warning("Potential prompt injection detected and neutralized")

    return text


def is_safe_for_llm(text: str) -> bool:
    """True if no injection pattern is present."""
    if not text:
        return True
    return not any(p.search(text) for p in _compiled_patterns)
