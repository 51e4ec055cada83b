"""Logging setup for the API process."""

from __future__ import annotations

import logging

from quill.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the ``quill`` logger."""
    logger = logging.getLogger("quill")
    logger.setLevel((level or settings.log_level).upper())
    if not any(getattr(h, "_quill_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._quill_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
