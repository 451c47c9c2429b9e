"""Simulated sensor producers feeding the base streams."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional

from models.records import MeasurementKind, Reading
from services.calculations import Clock, Persister, utc_now
from storage.streams import OrderedStreamStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorProfile:
    """Value range of a simulated sensor.

    Values are drawn uniformly from the grid ``minimum + n * resolution``.
    Anything below ``zero_below`` is reported as ``0``.
    """

    kind: MeasurementKind
    source: str
    minimum: float
    maximum: float
    resolution: float
    zero_below: Optional[float] = None

    def sample(self, rng: random.Random) -> float:
        steps = round((self.maximum - self.minimum) / self.resolution)
        value = round(self.minimum + rng.randint(0, steps) * self.resolution, 6)
        if self.zero_below is not None and value < self.zero_below:
            return 0.0
        return value


TEMPERATURE = SensorProfile(MeasurementKind.temperature, "Temperature", -40.0, 120.0, 0.1)
HUMIDITY = SensorProfile(MeasurementKind.humidity, "Humidity", 0.0, 100.0, 0.1)
WIND_SPEED = SensorProfile(MeasurementKind.wind_speed, "Wind", 0.0, 60.0, 0.1)
RAINFALL = SensorProfile(MeasurementKind.rainfall, "Rain", 0.0, 99.99, 0.01, zero_below=0.04)

PROFILES: Dict[str, SensorProfile] = {
    profile.kind.value: profile for profile in (TEMPERATURE, HUMIDITY, WIND_SPEED, RAINFALL)
}


class SensorProducer:
    """Emits one reading per run and snapshots the recent stream tail."""

    def __init__(
        self,
        profile: SensorProfile,
        store: OrderedStreamStore,
        persister: Optional[Persister] = None,
        snapshot_window_seconds: float = 60.0,
        rng: Optional[random.Random] = None,
        clock: Clock = utc_now,
    ) -> None:
        if store.kind != profile.kind.value:
            raise ValueError(
                f"{profile.source} sensor cannot write into {store.kind!r} stream."
            )
        self.profile = profile
        self.store = store
        self.persister = persister
        self.snapshot_window_seconds = snapshot_window_seconds
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def name(self) -> str:
        return self.profile.kind.value

    def run(self) -> List[Reading]:
        now = self._clock()
        reading = Reading(
            timestamp=now,
            source=self.profile.source,
            kind=self.profile.kind.value,
            value=self.profile.sample(self._rng),
        )
        self.store.insert(reading)

        if self.persister is not None:
            recent = self.store.tail_from(now - timedelta(seconds=self.snapshot_window_seconds))
            try:
                self.persister.persist(recent)
            except Exception:
                logger.exception(
                    "Snapshot handoff failed",
                    extra={"stream": self.name, "source": self.profile.source},
                )
        return [reading]
