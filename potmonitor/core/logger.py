"""Logging setup for the Pot Monitor API."""

from __future__ import annotations

import logging
import sys

from potmonitor.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Attach a stdout handler to the root logger (once per process)."""
    global _configured

    root = logging.getLogger()
    root.setLevel(level or settings.log_level)
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    _configured = True
