from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Send application logs to stdout at ``level``."""

    global _configured
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    # Per-request access lines are noise next to the conversion log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True
