"""
Observability

Central logging configuration for the provenance tree engine.

Modules log through ``logging.getLogger(__name__)``; nothing is emitted
until configure_logging() installs a handler. Levels:

- PROVTREE_LOG_LEVEL=0 (default): silent
- PROVTREE_LOG_LEVEL=1: INFO (rejected requests, graph resets)
- PROVTREE_LOG_LEVEL=2+: DEBUG (per-pass statistics)

PROVTREE_LOG_FILE sends output to a file instead of stderr.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False

PACKAGE_LOGGERS = ("provtree", "provvis")

for _name in PACKAGE_LOGGERS:
    logging.getLogger(_name).addHandler(logging.NullHandler())


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure package logging from arguments or the environment (once)."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    raw_level = level if level is not None else os.getenv("PROVTREE_LOG_LEVEL", "0")
    log_path = log_file if log_file is not None else os.getenv("PROVTREE_LOG_FILE")

    numeric = _read_level(raw_level)
    if numeric is None or numeric <= 0:
        _CONFIGURED = True
        return

    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, mode="a")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.addHandler(handler)
        package_logger.setLevel(_map_level(numeric))
    _CONFIGURED = True


def _read_level(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _map_level(level: int) -> int:
    if level >= 2:
        return logging.DEBUG
    return logging.INFO
