import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _log_dir() -> str:
    return os.environ.get(
        "INBOXTRIAGE_LOG_DIR",
        os.path.join(os.path.expanduser("~"), ".inboxtriage", "logs"),
    )


def setup_logger(name="InboxTriage", level=None):
    """
    Configure a logger that writes to a rotating file and stderr.
    Never stdout: the JSON-lines protocol in main.py owns it.
    """
    logger = logging.getLogger(name)
    level = level or os.environ.get("INBOXTRIAGE_LOG_LEVEL", "INFO")
    logger.setLevel(level)

    # Already configured (module reloaded or setup called twice)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    # Max 5MB, keep 3 backups
    try:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "triage.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        sys.stderr.write(f"File logging disabled: {e}\n")

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    return logger


def set_level(level: str) -> None:
    """Apply a level from configuration to the application logger."""
    logger.setLevel(level.upper())


logger = setup_logger()
