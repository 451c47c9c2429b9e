from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from models.records import Reading
from services.calculations import CalculationReport
from services.errors import EmptyWindowError
from services.station import WeatherStation, build_station
from storage.streams import StreamRegistry

NOW = datetime(2024, 2, 2, 9, 30, tzinfo=timezone.utc)


class CountingSource:
    def __init__(self, name: str = "counter", error: Exception | None = None) -> None:
        self.name = name
        self.error = error
        self.calls = 0
        self._lock = threading.Lock()

    def run(self) -> List[Reading]:
        with self._lock:
            self.calls += 1
        if self.error is not None:
            raise self.error
        return []


@pytest.fixture()
def station() -> WeatherStation:
    service = build_station(StreamRegistry(), workers=2, clock=lambda: NOW)
    yield service
    service.shutdown()


def _wait(futures) -> list:
    return [future.result(timeout=5) for future in futures]


def test_run_pending_respects_job_periods() -> None:
    station = WeatherStation(StreamRegistry(), workers=1)
    source = CountingSource()
    station.add_producer(source, period_seconds=5)  # type: ignore[arg-type]

    try:
        _wait(station.run_pending(now=0))
        assert station.run_pending(now=1) == []
        _wait(station.run_pending(now=5))
    finally:
        station.shutdown()

    assert source.calls == 2


def test_job_failures_are_logged_and_swallowed(caplog) -> None:
    station = WeatherStation(StreamRegistry(), workers=2)
    empty = CountingSource("dew_point", EmptyWindowError("temperature", 15))
    broken = CountingSource("heat_index", RuntimeError("boom"))
    station.add_producer(empty, 1)  # type: ignore[arg-type]
    station.add_producer(broken, 1)  # type: ignore[arg-type]

    try:
        with caplog.at_level(logging.INFO):
            results = _wait(station.run_pending(now=0))
    finally:
        station.shutdown()

    assert results == [[], []]
    jobs = {getattr(record, "job", None): record.levelno for record in caplog.records}
    assert jobs["dew_point"] == logging.INFO
    assert jobs["heat_index"] == logging.ERROR


def test_build_station_schedules_sensors_and_calculations(station: WeatherStation) -> None:
    periods = {job.name: job.period_seconds for job in station.jobs()}

    assert periods == {
        "temperature": 3.0,
        "humidity": 3.0,
        "wind_speed": 1.0,
        "rainfall": 3.0,
        "dew_point": 15.0,
        "heat_index": 15.0,
        "wind_chill": 12.0,
    }
    assert set(station.runners) == {"dew_point", "heat_index", "wind_chill"}


def test_record_and_calculate(station: WeatherStation) -> None:
    for offset in (4, 2):
        station.record("temperature", 90.0, timestamp=NOW - timedelta(seconds=offset))
        station.record("humidity", 40.0, timestamp=NOW - timedelta(seconds=offset))

    report = station.calculate("heat_index")

    assert isinstance(report, CalculationReport)
    assert len(report.batch) == 2
    assert station.streams.get("heat_index").size() == 2


def test_record_defaults_source_and_timestamp(station: WeatherStation) -> None:
    reading = station.record("rainfall", 0.25)

    assert reading.source == "Rain"
    assert reading.timestamp == NOW


def test_record_rejects_derived_and_unknown_streams(station: WeatherStation) -> None:
    with pytest.raises(ValueError):
        station.record("dew_point", 50.0)
    with pytest.raises(KeyError):
        station.record("pressure", 1013.0)
    with pytest.raises(KeyError):
        station.calculate("pressure")


def test_calculate_propagates_empty_window(station: WeatherStation) -> None:
    with pytest.raises(EmptyWindowError):
        station.calculate("wind_chill")


def test_background_scheduler_runs_producers() -> None:
    station = build_station(StreamRegistry(), workers=4)
    station.start(tick_seconds=0.01)
    try:
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            if not station.streams.get("temperature").is_empty():
                break
            time.sleep(0.02)
    finally:
        station.shutdown()

    assert station.streams.get("temperature").size() >= 1
    assert station.streams.get("wind_speed").size() >= 1


def test_add_runner_keeps_an_explicit_period(station: WeatherStation) -> None:
    runner = station.runners["dew_point"]
    station.add_runner(runner, period_seconds=0)

    periods = [job.period_seconds for job in station.jobs() if job.name == "dew_point"]

    assert periods == [runner.interval_seconds, 0]
