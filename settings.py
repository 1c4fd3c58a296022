from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_DB_PATH_ENV = "OOOHH_DB_PATH"
_BUSY_TIMEOUT_ENV = "OOOHH_BUSY_TIMEOUT_MS"
_SLACK_SALT_ENV = "OOOHH_SLACK_SALT"
_REQUEST_TIMEOUT_ENV = "OOOHH_REQUEST_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    db_path: str
    busy_timeout_ms: int
    slack_salt: str
    request_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        db_path=_read_str_env(_DB_PATH_ENV, "./tmp/ooohh.db"),
        busy_timeout_ms=_read_positive_int_env(_BUSY_TIMEOUT_ENV, 5000),
        slack_salt=_read_str_env(_SLACK_SALT_ENV, "ooohh"),
        request_timeout=_read_positive_float_env(_REQUEST_TIMEOUT_ENV, 10.0),
        log_level=_read_log_level("INFO"),
    )
