from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv


_PORT_ENV = "PORT"
_ENDPOINT_ENV = "COSMOSDB_ENDPOINT"
_KEY_ENV = "COSMOSDB_KEY"
_DATABASE_ENV = "DATABASE_ID"
_CONTAINER_ENV = "CONTAINER_ID"
_DEVICE_ENV = "DEVICE_ID"
_FIXTURE_PATH_ENV = "READINGS_FIXTURE_PATH"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_DOTENV_PATH_ENV = "DOTENV_PATH"

DEFAULT_PORT = 3089
DEFAULT_DEVICE_ID = "hainetsukaishu-demo03"


@dataclass(frozen=True)
class Settings:
    port: int
    cosmos_endpoint: Optional[str]
    cosmos_key: Optional[str]
    database_id: str
    container_id: str
    device_id: str
    readings_fixture_path: Optional[str]
    cors_origins: Tuple[str, ...]
    log_level: str

    @property
    def cosmos_configured(self) -> bool:
        return bool(self.cosmos_endpoint and self.cosmos_key)


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


def _read_port(default: int) -> int:
    value = os.getenv(_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(
        origin.strip().rstrip("/") for origin in value.split(",") if origin.strip()
    )
    return origins or default


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
    # Variables already present in the process environment win over the file.
    load_dotenv(os.getenv(_DOTENV_PATH_ENV) or find_dotenv(usecwd=True))
    return Settings(
        port=_read_port(DEFAULT_PORT),
        cosmos_endpoint=_read_optional_env(_ENDPOINT_ENV, None),
        cosmos_key=_read_optional_env(_KEY_ENV, None),
        database_id=_read_str_env(_DATABASE_ENV, "telemetry"),
        container_id=_read_str_env(_CONTAINER_ENV, "readings"),
        device_id=_read_str_env(_DEVICE_ENV, DEFAULT_DEVICE_ID),
        readings_fixture_path=_read_optional_env(_FIXTURE_PATH_ENV, None),
        cors_origins=_read_origins(("*",)),
        log_level=_read_log_level("INFO"),
    )
