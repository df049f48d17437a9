"""Logging setup shared by the CLI and the HTTP app."""

from __future__ import annotations

import logging

from linkcheck.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once.  Later calls only adjust the level."""
    logging.basicConfig(
        level=level or settings.log_level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    logging.getLogger().setLevel(level or settings.log_level)
