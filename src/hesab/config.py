# src/hesab/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Every path defaults to a gitignored local data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "HESAB"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
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

    # ---- Session ----
    user_id: str

    # ---- Switches ----
    console_enabled: bool
    rollover_enabled: bool

    # ---- Rollover timing ----
    rollover_interval_seconds: float
    idle_visibility_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    checkpoint_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "hesab") or "hesab"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        user_id = (_env(_k("USER_ID"), "local") or "local").strip()

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        rollover_enabled = _env_bool(_k("ROLLOVER_ENABLED"), True)

        # 24h repeat after the first midnight; must stay positive.
        rollover_interval_seconds = max(1.0, _env_float(_k("ROLLOVER_INTERVAL_SECONDS"), 86400.0))
        idle_visibility_seconds = max(1.0, _env_float(_k("IDLE_VISIBILITY_SECONDS"), 300.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/hesab"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "hesab.sqlite3")
        checkpoint_path = _env_path(_k("CHECKPOINT_PATH"), data_dir / "checkpoint.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            console_enabled=console_enabled,
            rollover_enabled=rollover_enabled,
            rollover_interval_seconds=rollover_interval_seconds,
            idle_visibility_seconds=idle_visibility_seconds,
            data_dir=data_dir,
            db_path=db_path,
            checkpoint_path=checkpoint_path,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe per-machine switches.
try:
    import config_local as _config_local  # type: ignore
except ImportError:
    _config_local = None

if _config_local is not None:
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "ROLLOVER_ENABLED"):
        object.__setattr__(SETTINGS, "rollover_enabled", bool(_config_local.ROLLOVER_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "USER_ID"):
        object.__setattr__(SETTINGS, "user_id", str(_config_local.USER_ID))  # type: ignore[misc]


def get_settings() -> Settings:
    return SETTINGS
