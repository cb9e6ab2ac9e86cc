from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_NAMESPACE_ENV = "SENSOR_KV_NAMESPACE"
_PERSISTENCE_PATH_ENV = "SENSOR_KV_PERSISTENCE_PATH"
_PAGE_SIZE_ENV = "SENSOR_KV_PAGE_SIZE"
_TTL_ENV = "READING_TTL_SECONDS"
_DEFAULT_LIMIT_ENV = "HISTORY_DEFAULT_LIMIT"
_MAX_LIMIT_ENV = "HISTORY_MAX_LIMIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    kv_namespace: str
    kv_persistence_path: Optional[str]
    kv_page_size: int
    reading_ttl_seconds: int
    default_limit: int
    max_limit: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
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
    default_limit = _read_positive_int(_DEFAULT_LIMIT_ENV, 1000)
    max_limit = _read_positive_int(_MAX_LIMIT_ENV, 10000)
    return Settings(
        kv_namespace=_read_str_env(_NAMESPACE_ENV, "sensor_readings"),
        kv_persistence_path=_read_optional_env(_PERSISTENCE_PATH_ENV, "./tmp/sensor_kv.json"),
        kv_page_size=_read_positive_int(_PAGE_SIZE_ENV, 1000),
        reading_ttl_seconds=_read_positive_int(_TTL_ENV, 86400),
        default_limit=min(default_limit, max_limit),
        max_limit=max_limit,
        log_level=_read_log_level("INFO"),
    )
