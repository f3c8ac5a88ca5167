from __future__ import annotations

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_COMMAND_TIMEOUT_SECONDS = 10.0
MIN_COMMAND_TIMEOUT_SECONDS = 0.1
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def resolve_sleep_db_path() -> Path:
    package_root = Path(__file__).resolve().parents[1]
    default_path = package_root / "db" / "sleep-history.db"
    configured = os.getenv("SLEEPTRACKER_DB_PATH")
    if not configured or not configured.strip():
        default_path.parent.mkdir(parents=True, exist_ok=True)
        return default_path
    configured_path = Path(configured.strip()).expanduser()
    if configured_path.is_absolute():
        configured_path.parent.mkdir(parents=True, exist_ok=True)
        return configured_path
    relative_parts = [part for part in configured_path.parts if part not in ("..", ".")]
    normalized_relative = Path(*relative_parts) if relative_parts else configured_path
    resolved = (package_root / normalized_relative).resolve()
    logger.info(
        "Resolved relative SLEEPTRACKER_DB_PATH to %s (root=%s)",
        resolved,
        package_root,
    )
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def get_timezone() -> str:
    return resolve_timezone(os.getenv("SLEEPTRACKER_TIMEZONE"))


def resolve_timezone(name: str | None) -> str:
    tz_name = name.strip() if isinstance(name, str) and name.strip() else DEFAULT_TIMEZONE
    try:
        ZoneInfo(tz_name)
    except Exception:
        logger.warning("Unknown timezone %r; using %s", tz_name, DEFAULT_TIMEZONE)
        return DEFAULT_TIMEZONE
    return tz_name


def get_log_level() -> str:
    configured = str(os.getenv("SLEEPTRACKER_LOG_LEVEL") or "").strip().upper()
    if configured in _LOG_LEVELS:
        return configured
    return DEFAULT_LOG_LEVEL


def get_command_timeout_seconds() -> float:
    configured = os.getenv("SLEEPTRACKER_COMMAND_TIMEOUT_SECONDS")
    if configured is None:
        return DEFAULT_COMMAND_TIMEOUT_SECONDS
    try:
        value = float(configured)
    except (TypeError, ValueError):
        return DEFAULT_COMMAND_TIMEOUT_SECONDS
    return max(value, MIN_COMMAND_TIMEOUT_SECONDS)
