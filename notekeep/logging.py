"""Logging helpers for notekeep."""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_CONFIGURED = False


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        from .config import get_settings

        level = get_settings().log_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def configure_logging(level: Union[int, str, None] = None) -> None:
    """Configure application logging once; later calls are no-ops."""

    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    logging.basicConfig(
        level=_resolve_level(level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a named logger; configuration is left to the entry points."""

    return logging.getLogger(name or "notekeep")


__all__ = ["configure_logging", "get_logger"]
