# src/tasknest/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Components take settings as an argument; tests pass their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKNEST"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Presentation ----
    exit_delay_ms: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasknest").strip() or "tasknest"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")

        exit_delay_ms = max(0, _env_int(_k("EXIT_DELAY_MS"), 300))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasknest"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            exit_delay_ms=exit_delay_ms,
            data_dir=data_dir,
            store_db_path=store_db_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process settings, read once. Loads a local .env first (never overrides real env)."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
