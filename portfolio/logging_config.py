"""
Logging setup shared by the app and the maintenance scripts.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    # uvicorn and the test runner may have installed handlers already.
    if not any(getattr(h, "_portfolio", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._portfolio = True
        root.addHandler(handler)
