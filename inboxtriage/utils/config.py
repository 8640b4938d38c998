"""
Configuration loader for Inbox Triage.

Behavior:
- Looks for an explicit path, then the `INBOXTRIAGE_CONFIG` env var.
- Falls back to `inboxtriage/config.json` next to the package.
- If none is found, uses conservative defaults.

Every loaded file is validated against `json_schema/config.schema.json`.
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from jsonschema import ValidationError, validate

from .logger import logger

DEFAULT_CONFIG: Dict[str, Any] = {
    # Preference order: first configured provider wins
    "providers": ["anthropic", "openai"],
    "provider_settings": {},
    "escalation": {"threshold": 90},
    "timeout": 10,
    "heuristics": {"strategy": "baseline", "timezone": "UTC"},
    "batch": {"max_workers": 8},
    "log_level": "INFO",
}

SCHEMA_PATH = os.path.join(
    os.path.dirname(__file__), "..", "json_schema", "config.schema.json"
)

_config_cache: Dict[str, Any] = {}
_schema_cache: Dict[str, Any] = {}


def _default_config_path() -> str:
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    return os.path.join(base_dir, "config.json")


def _load_schema() -> Dict[str, Any]:
    if not _schema_cache:
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            _schema_cache.update(json.load(f))
    return _schema_cache


def merge_defaults(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay a user config on the defaults, one level deep for sections."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in cfg.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from JSON with sensible fallbacks.

    An invalid file (bad JSON or schema violation) is skipped with an error
    log; the next candidate is tried.
    """
    global _config_cache
    if _config_cache and path is None:
        return _config_cache

    candidates = []
    if path:
        candidates.append(path)
    env_path = os.environ.get("INBOXTRIAGE_CONFIG")
    if env_path:
        candidates.append(env_path)
    candidates.append(_default_config_path())

    for p in candidates:
        p_abs = os.path.abspath(p)
        if not os.path.exists(p_abs):
            continue
        try:
            with open(p_abs, "r", encoding="utf-8") as f:
                cfg = json.load(f)
            validate_config(cfg)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file {p_abs}: {e}")
            continue
        except (ValidationError, ValueError) as e:
            logger.error(f"Invalid configuration in {p_abs}: {e}")
            continue

        _config_cache = merge_defaults(cfg)
        logger.info(f"Configuration loaded from {p_abs}")
        return _config_cache

    logger.warning("No config found; using default configuration.")
    _config_cache = copy.deepcopy(DEFAULT_CONFIG)
    return _config_cache


def validate_config(cfg: Dict[str, Any]) -> None:
    """Validate configuration against the bundled JSON Schema.

    Raises:
        ValueError: if cfg is not a dict
        jsonschema.ValidationError: on schema violations
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a JSON object/dict")
    validate(instance=cfg, schema=_load_schema())


def reset_config_cache() -> None:
    """Forget the cached configuration (mainly for testing)."""
    global _config_cache
    _config_cache = {}
