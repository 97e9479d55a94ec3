"""Profile-based configuration loader for the study diary backend."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ENVIRONMENT = "dev"
DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./study_diary.db"
DEFAULT_STORE_BACKEND = "sql"
STORE_BACKENDS = ("memory", "sql")
DEFAULT_STORE_PROFILE: dict[str, Any] = {
    "backend": DEFAULT_STORE_BACKEND,
    "fallback_to_memory": False,
    "create_schema": True,
}
DEFAULT_PROFILE_DICT: dict[str, Any] = {
    "environment": DEFAULT_ENVIRONMENT,
    "database": {"url": DEFAULT_DATABASE_URL},
    "store": DEFAULT_STORE_PROFILE,
    "logging": {"level": "INFO"},
}
CONFIG_PROFILE_ENV = "STUDY_DIARY_CONFIG_PROFILE"
CONFIG_DIR_ENV = "STUDY_DIARY_CONFIG_DIR"
STORE_BACKEND_ENV = "STUDY_DIARY_STORE_BACKEND"
DEFAULT_PROFILE = "dev"
DEFAULT_CONFIG_ROOT = Path(__file__).resolve().parents[3] / "config" / "profiles"
CONFIG_EXTENSIONS = (".yaml", ".yml")


@dataclass
class StoreConfig:
    backend: str = DEFAULT_STORE_BACKEND
    fallback_to_memory: bool = False
    create_schema: bool = True


@dataclass
class Settings:
    environment: str = DEFAULT_ENVIRONMENT
    database_url: str = DEFAULT_DATABASE_URL
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)


def load_settings(
    profile: str | None = None, config_dir: str | Path | None = None
) -> Settings:
    """Load settings from the requested profile or fall back to defaults."""

    profile_name = profile or os.getenv(CONFIG_PROFILE_ENV, DEFAULT_PROFILE)
    config_root = Path(
        config_dir or os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_ROOT)
    ).expanduser()
    config_data = _load_profile_dict(profile_name, config_root)
    if not config_data:
        config_data = copy.deepcopy(DEFAULT_PROFILE_DICT)

    database_cfg = config_data.get("database") or {}
    database_url = os.getenv(
        "DATABASE_URL", database_cfg.get("url", DEFAULT_DATABASE_URL)
    )

    return Settings(
        environment=config_data.get("environment", DEFAULT_ENVIRONMENT),
        database_url=database_url,
        store=_build_store_config(config_data.get("store")),
        logging=dict(config_data.get("logging") or {}),
        raw=config_data,
    )


def _load_profile_dict(profile_name: str, config_root: Path) -> dict[str, Any]:
    """Load the YAML profile if available, otherwise return an empty dict."""

    if not config_root.exists():
        return {}

    for extension in CONFIG_EXTENSIONS:
        candidate = config_root / f"{profile_name}{extension}"
        if not candidate.exists():
            continue
        try:
            with candidate.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise RuntimeError(
                f"Failed to parse config profile {candidate}: {exc}"
            ) from exc
        if not isinstance(loaded, dict):
            raise RuntimeError(
                f"Config profile {candidate} must be a mapping at the root"
            )
        return loaded

    return {}


def _build_store_config(store_cfg: dict[str, Any] | None) -> StoreConfig:
    store_cfg = store_cfg or DEFAULT_STORE_PROFILE
    backend = os.getenv(
        STORE_BACKEND_ENV, store_cfg.get("backend", DEFAULT_STORE_BACKEND)
    )
    backend = str(backend).strip().lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(
            f"Unsupported store backend '{backend}'; expected one of {STORE_BACKENDS}"
        )
    return StoreConfig(
        backend=backend,
        fallback_to_memory=bool(store_cfg.get("fallback_to_memory", False)),
        create_schema=bool(store_cfg.get("create_schema", True)),
    )
