"""Logging helpers shared by the study diary backend."""

from __future__ import annotations

import logging
from typing import Any, Mapping

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
ROOT_LOGGER_NAME = "study_diary"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; callers pass structured fields via ``extra``."""

    return logging.getLogger(name)


def configure_logging(config: Mapping[str, Any] | None = None) -> None:
    """Apply the profile's ``logging`` block once per process."""

    global _configured
    if _configured:
        return
    config = config or {}
    level_name = str(config.get("level", DEFAULT_LOG_LEVEL)).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(str(config.get("format", DEFAULT_LOG_FORMAT)))
    )
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.addHandler(handler)
    _configured = True
