from __future__ import annotations

from typing import Iterable

from datastore.snapshots import build_default_snapshot_store
from services.station import build_default_station
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    snapshot_root = tmp_path / "snapshots"

    monkeypatch.setenv("WEATHER_SNAPSHOT_ROOT_PATH", str(snapshot_root))
    monkeypatch.setenv("WEATHER_RETENTION_SECONDS", "120")
    monkeypatch.setenv("WIND_CHILL_INTERVAL_SECONDS", "24")
    monkeypatch.setenv("SENSOR_PERIOD_SECONDS", "6")
    monkeypatch.setenv("STATION_WORKER_COUNT", "2")
    monkeypatch.setenv("DEW_POINT_INTERVAL_SECONDS", "not-a-number")

    caches = (get_settings, build_default_snapshot_store, build_default_station)
    _clear_caches(caches)

    snapshots = build_default_snapshot_store()
    station = build_default_station()

    try:
        assert snapshots.root_path == snapshot_root
        assert snapshots.retention_seconds == 120
        assert station.snapshots is snapshots
        assert station.executor._max_workers == 2
        assert station.runners["wind_chill"].interval_seconds == 24
        assert station.runners["dew_point"].interval_seconds == 15
        periods = {job.name: job.period_seconds for job in station.jobs()}
        assert periods["temperature"] == 6
        assert periods["wind_speed"] == 2
    finally:
        station.shutdown()
        _clear_caches(caches)


def test_blank_snapshot_root_disables_disk(monkeypatch) -> None:
    monkeypatch.setenv("WEATHER_SNAPSHOT_ROOT_PATH", " ")
    monkeypatch.setenv("STATION_AUTOSTART", "off")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.snapshot_root_path is None
        assert settings.station_autostart is False
    finally:
        get_settings.cache_clear()
