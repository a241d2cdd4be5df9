"""Logging for Signalist.

One ``signalist`` logger shared by every module:
  - console at LOG_LEVEL (INFO by default)
  - ``logs/signalist_<timestamp>.log`` at DEBUG, one file per process
  - ``logs/signalist.log``, rewritten each start, for ``tail -f``

Run files beyond the newest ``_KEEP_RUN_LOGS`` are deleted at startup.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from signalist.config import settings

_KEEP_RUN_LOGS = 10
_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    return handler


def _stale_run_logs(logs_dir: Path) -> list[Path]:
    runs = sorted(logs_dir.glob("signalist_*.log"), key=lambda p: p.stat().st_mtime)
    return runs[:-_KEEP_RUN_LOGS] if len(runs) > _KEEP_RUN_LOGS else []


def configure_logging(name: str = "signalist") -> logging.Logger:
    """Attach handlers once; later calls return the configured logger."""
    log = logging.getLogger(name)
    if log.handlers:
        return log
    log.setLevel(logging.DEBUG)

    console_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    log.addHandler(_handler(logging.StreamHandler(sys.stdout), console_level))

    logs_dir = settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    run_log = logs_dir / f"signalist_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
    log.addHandler(_handler(logging.FileHandler(run_log, encoding="utf-8"), logging.DEBUG))

    try:
        log.addHandler(_handler(
            logging.FileHandler(logs_dir / "signalist.log", mode="w", encoding="utf-8"),
            logging.DEBUG,
        ))
    except OSError as e:
        log.warning("[Logger] Could not open signalist.log: %s", e)

    for old in _stale_run_logs(logs_dir):
        old.unlink(missing_ok=True)

    log.info("[Logger] Writing run log %s", run_log.name)
    return log


logger = configure_logging()
