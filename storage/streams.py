from __future__ import annotations

from bisect import bisect_left
from datetime import datetime
from operator import attrgetter
from threading import Lock
from typing import Dict, Iterable, Iterator, List, Optional

from models.records import MeasurementKind, Reading

_timestamp = attrgetter("timestamp")


class OrderedStreamStore:
    """Sorted, lock-guarded collection of readings of a single kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._readings: List[Reading] = []
        self._lock = Lock()

    def insert(self, reading: Reading) -> bool:
        """Add ``reading`` at its ordered position.

        Returns ``False`` without modifying the store when the exact same
        reading is already present.
        """
        if reading.kind != self.kind:
            raise ValueError(
                f"Cannot insert {reading.kind!r} reading into {self.kind!r} stream."
            )
        with self._lock:
            index = bisect_left(self._readings, reading)
            if index < len(self._readings) and self._readings[index] == reading:
                return False
            self._readings.insert(index, reading)
            return True

    def tail_from(self, cutoff: Optional[datetime]) -> List[Reading]:
        """Return readings with ``timestamp >= cutoff`` in ascending order."""
        with self._lock:
            if cutoff is None:
                return list(self._readings)
            index = bisect_left(self._readings, cutoff, key=_timestamp)
            return self._readings[index:]

    def discard_before(self, cutoff: datetime) -> int:
        with self._lock:
            index = bisect_left(self._readings, cutoff, key=_timestamp)
            del self._readings[:index]
            return index

    def latest(self) -> Optional[Reading]:
        with self._lock:
            return self._readings[-1] if self._readings else None

    def size(self) -> int:
        with self._lock:
            return len(self._readings)

    def is_empty(self) -> bool:
        return self.size() == 0

    def __len__(self) -> int:
        return self.size()


class StreamRegistry:
    """One ordered store per measurement kind."""

    def __init__(self, kinds: Iterable[str] | None = None) -> None:
        selected = kinds if kinds is not None else [kind.value for kind in MeasurementKind]
        self._stores: Dict[str, OrderedStreamStore] = {
            kind: OrderedStreamStore(kind) for kind in selected
        }

    def get(self, kind: str) -> OrderedStreamStore:
        try:
            return self._stores[kind]
        except KeyError:
            raise KeyError(f"Unknown stream {kind!r}.") from None

    def kinds(self) -> list[str]:
        return list(self._stores)

    def __iter__(self) -> Iterator[OrderedStreamStore]:
        return iter(list(self._stores.values()))

    def __contains__(self, kind: object) -> bool:
        return kind in self._stores
