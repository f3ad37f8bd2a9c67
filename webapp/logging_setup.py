# webapp/logging_setup.py
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """
    Root logging config shared by the Flask app and the CLI scripts.
    basicConfig is a no-op once handlers exist, so calling this twice is fine.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)

    # requests/urllib3 connection chatter is noise at INFO
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
