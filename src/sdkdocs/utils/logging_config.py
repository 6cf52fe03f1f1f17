"""Logging setup shared by the library and the CLI."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Configure the root ``sdkdocs`` logger.

    Args:
        level: Log level name or number. Falls back to ``SDKDOCS_LOG_LEVEL``
            and then ``WARNING``.
    """
    resolved = level if level is not None else os.getenv("SDKDOCS_LOG_LEVEL", "WARNING")
    if isinstance(resolved, str):
        resolved = resolved.upper()
    logger = logging.getLogger("sdkdocs")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``sdkdocs``."""
    if name == "sdkdocs" or name.startswith("sdkdocs."):
        return logging.getLogger(name)
    return logging.getLogger(f"sdkdocs.{name}")
