"""Scheduling of sensor producers and calculation runners."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from threading import Event, Lock, Thread
from typing import Dict, List, Optional, Protocol

from datastore.snapshots import SnapshotStore, build_default_snapshot_store
from models.records import MeasurementKind, Reading
from services.calculations import (
    DEW_POINT,
    HEAT_INDEX,
    WIND_CHILL,
    CalculationReport,
    CalculationRunner,
    Clock,
    build_runner,
    utc_now,
)
from services.errors import EmptyWindowError
from services.sensors import PROFILES, SensorProducer
from settings import get_settings
from storage.streams import StreamRegistry

logger = logging.getLogger(__name__)


class BatchSource(Protocol):
    """Anything that produces a batch of readings when run."""

    name: str

    def run(self) -> List[Reading]:
        ...


@dataclass
class ScheduledJob:
    source: BatchSource
    period_seconds: float
    next_due: float = 0.0

    @property
    def name(self) -> str:
        return self.source.name


class WeatherStation:
    """Coordinates stream stores, producers, runners and their cadence."""

    def __init__(
        self,
        streams: StreamRegistry,
        snapshots: Optional[SnapshotStore] = None,
        workers: int = 4,
        clock: Clock = utc_now,
    ) -> None:
        self.streams = streams
        self.snapshots = snapshots
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self.runners: Dict[str, CalculationRunner] = {}
        self._jobs: List[ScheduledJob] = []
        self._futures: Dict[str, Future[List[Reading]]] = {}
        self._futures_lock = Lock()
        self._clock = clock
        self._stop = Event()
        self._thread: Optional[Thread] = None

    def add_producer(self, producer: SensorProducer, period_seconds: float) -> None:
        self._jobs.append(ScheduledJob(source=producer, period_seconds=period_seconds))

    def add_runner(self, runner: CalculationRunner, period_seconds: Optional[float] = None) -> None:
        self.runners[runner.name] = runner
        self._jobs.append(
            ScheduledJob(
                source=runner,
                period_seconds=(
                    runner.interval_seconds if period_seconds is None else period_seconds
                ),
            )
        )

    def jobs(self) -> List[ScheduledJob]:
        return list(self._jobs)

    def record(
        self,
        kind: str,
        value: float,
        source: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Reading:
        """Insert an externally measured value into a base stream."""
        store = self.streams.get(kind)
        if MeasurementKind(kind).is_derived:
            raise ValueError(f"Stream {kind!r} is written by its calculation only.")
        profile = PROFILES.get(kind)
        reading = Reading(
            timestamp=timestamp or self._clock(),
            source=source or (profile.source if profile else kind),
            kind=kind,
            value=value,
        )
        store.insert(reading)
        return reading

    def calculate(self, metric: str) -> CalculationReport:
        """Run the named calculation immediately on the calling thread."""
        runner = self.runners.get(metric)
        if runner is None:
            raise KeyError(f"Unknown metric {metric!r}.")
        return runner.execute()

    def run_pending(self, now: Optional[float] = None) -> List[Future[List[Reading]]]:
        """Submit every job whose period has elapsed."""
        current = time.monotonic() if now is None else now
        submitted: List[Future[List[Reading]]] = []
        for job in self._jobs:
            if current < job.next_due:
                continue
            job.next_due = current + job.period_seconds
            with self._futures_lock:
                running = self._futures.get(job.name)
                if running is not None and not running.done():
                    continue
                future = self.executor.submit(self._run_job, job)
                self._futures[job.name] = future
            future.add_done_callback(lambda f, name=job.name: self._clear_future(name, f))
            submitted.append(future)

        if self.snapshots is not None:
            self.snapshots.enforce_retention(self.streams, self._clock())
        return submitted

    def start(self, tick_seconds: float = 0.5) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(
            target=self._loop, args=(tick_seconds,), name="weather-station", daemon=True
        )
        self._thread.start()
        logger.info("Station scheduler started with %d jobs", len(self._jobs))

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def shutdown(self) -> None:
        """Stop scheduling and release executor resources."""
        self.stop()
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _loop(self, tick_seconds: float) -> None:
        while not self._stop.is_set():
            try:
                self.run_pending()
            except RuntimeError:
                # Executor already shut down.
                break
            self._stop.wait(tick_seconds)

    def _clear_future(self, name: str, future: Future[List[Reading]]) -> None:
        with self._futures_lock:
            if self._futures.get(name) is future:
                del self._futures[name]

    def _run_job(self, job: ScheduledJob) -> List[Reading]:
        try:
            return job.source.run()
        except EmptyWindowError as exc:
            logger.info("Job skipped: %s", exc, extra={"job": job.name})
        except Exception:
            logger.exception("Job failed", extra={"job": job.name})
        return []


def build_station(
    streams: StreamRegistry,
    snapshots: Optional[SnapshotStore] = None,
    workers: int = 4,
    sensor_period_seconds: float = 3.0,
    snapshot_window_seconds: float = 60.0,
    intervals: Optional[Dict[str, float]] = None,
    clock: Clock = utc_now,
) -> WeatherStation:
    """Wire the four simulated sensors and three calculations together."""
    station = WeatherStation(streams=streams, snapshots=snapshots, workers=workers, clock=clock)
    for kind, profile in PROFILES.items():
        producer = SensorProducer(
            profile=profile,
            store=streams.get(kind),
            persister=snapshots,
            snapshot_window_seconds=snapshot_window_seconds,
            clock=clock,
        )
        period = sensor_period_seconds
        if kind == MeasurementKind.wind_speed.value:
            # Wind chill averages three wind samples per temperature sample.
            period = sensor_period_seconds / WIND_CHILL.mode.group_size
        station.add_producer(producer, period)

    intervals = intervals or {}
    for metric in (DEW_POINT, HEAT_INDEX, WIND_CHILL):
        runner = build_runner(
            metric,
            streams.get,
            persister=snapshots,
            interval_seconds=intervals.get(metric.kind.value),
            clock=clock,
        )
        station.add_runner(runner)
    return station


@lru_cache
def build_default_station(workers: Optional[int] = None) -> WeatherStation:
    """Factory that wires the station from settings and restores snapshots."""
    settings = get_settings()
    streams = StreamRegistry()
    snapshots = build_default_snapshot_store()
    for store in streams:
        snapshots.restore_into(store)
    return build_station(
        streams=streams,
        snapshots=snapshots,
        workers=workers or settings.station_workers,
        sensor_period_seconds=settings.sensor_period_seconds,
        snapshot_window_seconds=settings.snapshot_window_seconds,
        intervals={
            DEW_POINT.kind.value: settings.dew_point_interval_seconds,
            HEAT_INDEX.kind.value: settings.heat_index_interval_seconds,
            WIND_CHILL.kind.value: settings.wind_chill_interval_seconds,
        },
    )
