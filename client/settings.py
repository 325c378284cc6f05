from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    token_file: Optional[str] = None


def load_settings() -> Settings:
    """Read client settings from the environment (and `.env` when present)."""
    load_dotenv()
    return Settings(
        base_url=(os.getenv("AGENT_API_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        timeout=_float_env("AGENT_API_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        token_file=os.getenv("AUTH_TOKEN_FILE") or None,
    )
