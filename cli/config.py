from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0
CACHE_FILE_NAME = "ooohh.json"

_BASE_URL_ENV = "API_BASE_URL"
_CACHE_DIR_ENV = "OOOHH_CACHE_DIR"
_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    cache_dir: Path = Path.home() / ".ooohh"
    timeout: float = DEFAULT_TIMEOUT

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / CACHE_FILE_NAME


@dataclass(frozen=True)
class DialCredentials:
    """The dial the CLI acts on, and the token that owns it."""

    dial_id: str
    token: str


def _read_float(value: Optional[str], default: float) -> float:
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


def load_config(
    base_url: Optional[str] = None,
    cache_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if cache_dir is None:
        env_dir = os.getenv(_CACHE_DIR_ENV)
        cache_dir = Path(env_dir) if env_dir else Path.home() / ".ooohh"
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(
        base_url=url.rstrip("/"),
        cache_dir=cache_dir,
        timeout=timeout,
    )


def load_credentials(path: Path) -> Optional[DialCredentials]:
    """Read saved credentials, or ``None`` when nothing usable is cached."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text() or "{}")
    except (OSError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    dial_id = data.get("id")
    token = data.get("token")
    if not isinstance(dial_id, str) or not isinstance(token, str) or not dial_id or not token:
        return None
    return DialCredentials(dial_id=dial_id, token=token)


def save_credentials(path: Path, credentials: DialCredentials) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"id": credentials.dial_id, "token": credentials.token}
    path.write_text(json.dumps(payload))
    path.chmod(0o600)
