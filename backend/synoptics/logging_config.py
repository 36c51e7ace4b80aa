"""Logging configuration for the synoptics backend."""

import logging
from datetime import datetime
from pathlib import Path

from synoptics.config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Libraries that log every request or statement at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "aiosqlite")

_configured = False


def _log_dir() -> Path:
    if LOG_DIR:
        return Path(LOG_DIR)
    return Path(__file__).parent.parent.parent / "logs"


def setup_logging() -> None:
    """Send logs to a dated file under the log directory and to the console.

    Safe to call more than once; handlers are only attached the first time.
    """
    global _configured
    if _configured:
        return

    logs_dir = _log_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"synoptics-{datetime.now().strftime('%Y-%m-%d')}.log"

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers: list[logging.Handler] = [logging.FileHandler(log_file), logging.StreamHandler()]

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(logging.INFO)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("synoptics").setLevel(logging.INFO)

    _configured = True
    logging.info(f"Logging initialized - file: {log_file}")
