"""Logging configuration for the CLI and the web app."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """Attach a rich handler to the ``echoguard`` logger.

    Safe to call more than once; only the level changes after the first call.
    """
    global _configured
    logger = logging.getLogger("echoguard")
    logger.setLevel(level.upper())

    if not _configured:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        _configured = True

    return logger
