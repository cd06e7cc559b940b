from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_int(name: str, default: int) -> int:
    v = os.environ.get(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.environ.get(name)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.environ.get(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _env_str(name: str) -> Optional[str]:
    v = os.environ.get(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


@dataclass(frozen=True)
class ServiceConfig:
    """Deployment-level configuration, read once from AUTHMON_* env vars."""

    database_url: str = "sqlite:///./auth_events.db"
    webhook_url: Optional[str] = None
    auth_key: Optional[str] = None

    # Fixed-window limiter: 100 requests per client per 15 minutes.
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max: int = 100
    rate_limit_enabled: bool = True
    rate_limit_bypass_header: str = "X-RateLimit-Bypass"
    rate_limit_bypass_token: Optional[str] = None

    dispatch_timeout_seconds: float = 5.0
    log_level: str = "INFO"


def load_config() -> ServiceConfig:
    return ServiceConfig(
        database_url=_env_str("AUTHMON_DATABASE_URL") or "sqlite:///./auth_events.db",
        webhook_url=_env_str("AUTHMON_WEBHOOK_URL"),
        auth_key=_env_str("AUTHMON_AUTH_KEY"),
        rate_limit_window_ms=_env_int("AUTHMON_RATE_LIMIT_WINDOW_MS", 15 * 60 * 1000),
        rate_limit_max=_env_int("AUTHMON_RATE_LIMIT_MAX", 100),
        rate_limit_enabled=_env_bool("AUTHMON_RATE_LIMIT_ENABLED", True),
        rate_limit_bypass_token=_env_str("AUTHMON_RATE_LIMIT_BYPASS_TOKEN"),
        dispatch_timeout_seconds=_env_float("AUTHMON_DISPATCH_TIMEOUT", 5.0),
        log_level=_env_str("AUTHMON_LOG_LEVEL") or "INFO",
    )


@lru_cache(maxsize=1)
def get_config() -> ServiceConfig:
    return load_config()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
