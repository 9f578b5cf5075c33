"""Console logging for the ``intake`` logger tree.

Modules log through ``logging.getLogger("intake.<area>")`` and inherit the
handler installed here.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "intake"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

# discord.py is chatty at INFO; its gateway events are not ours.
QUIET_LOGGERS = ("discord", "discord.client", "discord.gateway", "discord.http")


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach one stream handler to the ``intake`` logger and return it.

    Calling it again returns the configured logger without adding handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger
    logger.setLevel(level)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
