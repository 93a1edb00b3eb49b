"""Process-wide logging configuration, applied once by each entry point."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO; the clients log what matters.
    logging.getLogger("httpx").setLevel(logging.WARNING)
