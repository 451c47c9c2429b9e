from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.sensors import HUMIDITY, PROFILES, RAINFALL, TEMPERATURE, SensorProducer
from storage.streams import OrderedStreamStore

NOW = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


class RecordingPersister:
    def __init__(self) -> None:
        self.batches: list[list[Reading]] = []

    def persist(self, batch) -> None:
        self.batches.append(list(batch))


@pytest.mark.parametrize("kind", sorted(PROFILES))
def test_profiles_sample_within_range(kind: str) -> None:
    profile = PROFILES[kind]
    rng = random.Random(42)

    samples = [profile.sample(rng) for _ in range(500)]

    assert all(profile.minimum <= value <= profile.maximum or value == 0.0 for value in samples)


def test_rain_below_threshold_reports_zero() -> None:
    class LowRng(random.Random):
        def randint(self, a: int, b: int) -> int:
            return 3

    assert RAINFALL.sample(LowRng()) == 0.0


def test_producer_inserts_reading_and_snapshots_recent_tail() -> None:
    store = OrderedStreamStore("temperature")
    store.insert(
        Reading(timestamp=NOW - timedelta(minutes=5), source="Temperature", kind="temperature", value=1.0)
    )
    store.insert(
        Reading(timestamp=NOW - timedelta(seconds=30), source="Temperature", kind="temperature", value=2.0)
    )
    persister = RecordingPersister()
    producer = SensorProducer(
        TEMPERATURE,
        store,
        persister=persister,
        snapshot_window_seconds=60,
        rng=random.Random(1),
        clock=lambda: NOW,
    )

    batch = producer.run()

    assert len(batch) == 1
    assert batch[0].timestamp == NOW
    assert batch[0].source == "Temperature"
    assert store.size() == 3
    assert len(persister.batches) == 1
    assert [r.value for r in persister.batches[0]] == [2.0, batch[0].value]


def test_producer_rejects_foreign_store() -> None:
    with pytest.raises(ValueError):
        SensorProducer(HUMIDITY, OrderedStreamStore("temperature"))
