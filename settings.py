from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_SNAPSHOT_ROOT_ENV = "WEATHER_SNAPSHOT_ROOT_PATH"
_SNAPSHOT_WINDOW_ENV = "WEATHER_SNAPSHOT_WINDOW_SECONDS"
_RETENTION_ENV = "WEATHER_RETENTION_SECONDS"
_DEW_POINT_INTERVAL_ENV = "DEW_POINT_INTERVAL_SECONDS"
_HEAT_INDEX_INTERVAL_ENV = "HEAT_INDEX_INTERVAL_SECONDS"
_WIND_CHILL_INTERVAL_ENV = "WIND_CHILL_INTERVAL_SECONDS"
_SENSOR_PERIOD_ENV = "SENSOR_PERIOD_SECONDS"
_WORKER_COUNT_ENV = "STATION_WORKER_COUNT"
_AUTOSTART_ENV = "STATION_AUTOSTART"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    snapshot_root_path: Optional[str]
    snapshot_window_seconds: float
    retention_seconds: float
    dew_point_interval_seconds: float
    heat_index_interval_seconds: float
    wind_chill_interval_seconds: float
    sensor_period_seconds: float
    station_workers: int
    station_autostart: bool
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
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


def _read_worker_count(default: int) -> int:
    value = os.getenv(_WORKER_COUNT_ENV)
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


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


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
        snapshot_root_path=_read_optional_env(_SNAPSHOT_ROOT_ENV, "./tmp/snapshots"),
        snapshot_window_seconds=_read_positive_float(_SNAPSHOT_WINDOW_ENV, 60.0),
        retention_seconds=_read_positive_float(_RETENTION_ENV, 3600.0),
        dew_point_interval_seconds=_read_positive_float(_DEW_POINT_INTERVAL_ENV, 15.0),
        heat_index_interval_seconds=_read_positive_float(_HEAT_INDEX_INTERVAL_ENV, 15.0),
        wind_chill_interval_seconds=_read_positive_float(_WIND_CHILL_INTERVAL_ENV, 12.0),
        sensor_period_seconds=_read_positive_float(_SENSOR_PERIOD_ENV, 3.0),
        station_workers=_read_worker_count(4),
        station_autostart=_read_bool(_AUTOSTART_ENV, True),
        log_level=_read_log_level("INFO"),
    )
