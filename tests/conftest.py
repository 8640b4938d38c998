import atexit
import faulthandler
import os
import sys
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import patch

import pytest

# Keep test logs out of the user's home; must be set before inboxtriage is imported
os.environ.setdefault("INBOXTRIAGE_LOG_DIR", tempfile.mkdtemp(prefix="inboxtriage-logs-"))

from inboxtriage.core.models import NormalizedMessage  # noqa: E402
from inboxtriage.utils.config import reset_config_cache  # noqa: E402

# Wednesday, mid-day UTC
NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _start_watchdog(timeout_seconds: int) -> Optional[threading.Timer]:
    if timeout_seconds <= 0:
        return None

    def _kill() -> None:
        faulthandler.dump_traceback(file=sys.stderr, all_threads=True)
        # Hard exit: a hung provider mock must not hang CI
        os._exit(2)

    timer = threading.Timer(timeout_seconds, _kill)
    timer.daemon = True
    timer.start()
    return timer


def pytest_sessionstart(session) -> None:  # noqa: ANN001
    faulthandler.enable(all_threads=True)
    timer = _start_watchdog(_env_int("PYTEST_WATCHDOG_TIMEOUT_SECONDS", 10 * 60))
    if timer is not None:
        atexit.register(timer.cancel)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """No real credentials, no keyring backend, no on-disk config."""
    for var in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "OLLAMA_API_KEY", "INBOXTRIAGE_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    reset_config_cache()
    with patch("inboxtriage.utils.secrets.keyring") as mock_keyring:
        mock_keyring.get_password.return_value = None
        yield mock_keyring
    reset_config_cache()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_message():
    """Build a NormalizedMessage with sensible defaults."""
    counter = {"n": 0}

    def _make(
        sender="alice@acme.io",
        subject="Project notes",
        body="Notes from the call.",
        age=timedelta(hours=2),
        timestamp=None,
        message_id=None,
        is_read=False,
    ):
        counter["n"] += 1
        return NormalizedMessage(
            id=message_id or f"msg-{counter['n']}",
            sender=sender,
            subject=subject,
            body=body,
            timestamp=timestamp or (NOW - age),
            is_read=is_read,
        )

    return _make
