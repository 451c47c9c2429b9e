"""Domain models shared across services."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

_sequence = itertools.count()


def _next_sequence() -> int:
    return next(_sequence)


class MeasurementKind(str, Enum):
    """Streams known to the station, base sensors first."""

    temperature = "temperature"
    humidity = "humidity"
    wind_speed = "wind_speed"
    rainfall = "rainfall"
    dew_point = "dew_point"
    heat_index = "heat_index"
    wind_chill = "wind_chill"

    @property
    def is_derived(self) -> bool:
        return self in DERIVED_KINDS


DERIVED_KINDS = frozenset(
    {MeasurementKind.dew_point, MeasurementKind.heat_index, MeasurementKind.wind_chill}
)


@dataclass(frozen=True, order=True, slots=True)
class Reading:
    """A single timestamped observation or derived value.

    Readings order by timestamp, then source, kind and value. The trailing
    ``sequence`` is assigned at construction so two separately created
    readings never share an order key.
    """

    timestamp: datetime
    source: str
    kind: str
    value: float
    sequence: int = field(default_factory=_next_sequence, repr=False)

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            raise ValueError("Reading timestamp must be timezone-aware.")
