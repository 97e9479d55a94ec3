"""Database connection helpers."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ...config import load_settings

__all__ = ["build_engine", "get_engine"]


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine for ``database_url`` without opening a connection."""

    return create_engine(database_url, echo=echo, future=True)


@lru_cache()
def get_engine() -> Engine:
    """Return the process-wide engine for the configured database."""

    settings = load_settings()
    return build_engine(settings.database_url)
