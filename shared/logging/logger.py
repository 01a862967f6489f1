import logging
import os
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = "logs"
LOG_DIR_ENV = "SKYBOUND_LOG_DIR"

_LOGGERS = {}


def _resolve_log_dir() -> Path | None:
    raw = os.getenv(LOG_DIR_ENV, DEFAULT_LOG_DIR)
    if not raw.strip():
        return None
    return Path(raw)


def get_logger(
    name: str,
    *,
    runtime: str = "skybound",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. leaderboard.service, leaderboard.server)
    - runtime: log file prefix (skybound | server | cli)

    File output goes to SKYBOUND_LOG_DIR (default: logs/).
    Setting SKYBOUND_LOG_DIR to an empty string keeps logs on the console only.
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    logger.addHandler(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    log_dir = _resolve_log_dir()
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        logfile = log_dir / f"{runtime}-{timestamp}.log"

        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
