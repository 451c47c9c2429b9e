"""Unit tests for the snapshot persistence collaborator."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from datastore.snapshots import SnapshotStore
from models.records import Reading
from storage.streams import OrderedStreamStore

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _batch(kind: str = "dew_point", count: int = 3) -> list[Reading]:
    return [
        Reading(
            timestamp=NOW + timedelta(seconds=index),
            source="Dew Point",
            kind=kind,
            value=50.0 + index,
        )
        for index in range(count)
    ]


def test_persist_writes_json_and_reloads(tmp_path) -> None:
    store = SnapshotStore(root_path=tmp_path)
    batch = _batch()

    store.persist(batch)

    path = tmp_path / "dew_point.json"
    assert path.exists()
    payload = json.loads(path.read_text())
    assert [item["value"] for item in payload] == [50.0, 51.0, 52.0]
    assert payload[0]["kind"] == "dew_point"

    reloaded = SnapshotStore(root_path=tmp_path).load("dew_point")
    assert [(r.timestamp, r.value) for r in reloaded] == [(r.timestamp, r.value) for r in batch]


def test_persist_replaces_previous_snapshot_in_memory() -> None:
    store = SnapshotStore()

    store.persist(_batch(count=3))
    store.persist(_batch(count=1))

    assert len(store.load("dew_point")) == 1
    assert store.load("heat_index") == []
    assert store.kinds() == ["dew_point"]


def test_unreadable_snapshot_is_ignored(tmp_path) -> None:
    (tmp_path / "humidity.json").write_text("{not json")

    assert SnapshotStore(root_path=tmp_path).load("humidity") == []


def test_restore_into_populates_stream(tmp_path) -> None:
    SnapshotStore(root_path=tmp_path).persist(_batch())
    stream = OrderedStreamStore("dew_point")

    restored = SnapshotStore(root_path=tmp_path).restore_into(stream)

    assert restored == 3
    assert [r.value for r in stream.tail_from(None)] == [50.0, 51.0, 52.0]


def test_enforce_retention_discards_old_readings() -> None:
    stream = OrderedStreamStore("dew_point")
    for reading in _batch(count=3):
        stream.insert(reading)
    snapshots = SnapshotStore(retention_seconds=60)

    removed = snapshots.enforce_retention([stream], now=NOW + timedelta(seconds=61.5))

    assert removed == 2
    assert [r.value for r in stream.tail_from(None)] == [52.0]
