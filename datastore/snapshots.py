from __future__ import annotations
import json
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence

from app.schemas import ReadingRecord
from models.records import Reading
from settings import get_settings
from storage.streams import OrderedStreamStore

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Keeps the last persisted batch of every stream, optionally on disk."""

    def __init__(
        self,
        root_path: Optional[Path] = None,
        retention_seconds: Optional[float] = None,
    ) -> None:
        self.root_path = root_path
        self.retention_seconds = retention_seconds
        self._snapshots: Dict[str, List[ReadingRecord]] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def persist(self, batch: Sequence[Reading]) -> None:
        grouped: Dict[str, List[ReadingRecord]] = {}
        for reading in batch:
            grouped.setdefault(reading.kind, []).append(ReadingRecord.from_reading(reading))

        with self._lock:
            for kind, records in grouped.items():
                self._snapshots[kind] = records
                self._write(kind, records)

    def load(self, kind: str) -> List[Reading]:
        with self._lock:
            records = self._snapshots.get(kind)
            if records is None:
                records = self._read(kind)
                if records:
                    self._snapshots[kind] = records
        return [record.to_reading() for record in records]

    def kinds(self) -> List[str]:
        with self._lock:
            known = set(self._snapshots)
        if self.root_path:
            known.update(path.stem for path in self.root_path.glob("*.json"))
        return sorted(known)

    def restore_into(self, store: OrderedStreamStore) -> int:
        """Reload the last snapshot of ``store.kind`` into ``store``."""
        restored = 0
        for reading in self.load(store.kind):
            if store.insert(reading):
                restored += 1
        if restored:
            logger.info(
                "Restored stream from snapshot",
                extra={"stream": store.kind, "reading_count": restored},
            )
        return restored

    def enforce_retention(
        self,
        stores: Iterable[OrderedStreamStore],
        now: Optional[datetime] = None,
    ) -> int:
        """Drop readings older than the retention horizon from every store."""
        if not self.retention_seconds:
            return 0
        reference = now if now is not None else datetime.now(timezone.utc)
        cutoff = reference - timedelta(seconds=self.retention_seconds)
        removed = 0
        for store in stores:
            dropped = store.discard_before(cutoff)
            if dropped:
                logger.debug(
                    "Discarded expired readings",
                    extra={"stream": store.kind, "reading_count": dropped},
                )
            removed += dropped
        return removed

    def _path_for(self, kind: str) -> Path:
        assert self.root_path is not None
        return self.root_path / f"{kind}.json"

    def _write(self, kind: str, records: List[ReadingRecord]) -> None:
        if not self.root_path:
            return
        payload = [record.model_dump(mode="json") for record in records]
        self._path_for(kind).write_text(json.dumps(payload, indent=2))

    def _read(self, kind: str) -> List[ReadingRecord]:
        if not self.root_path:
            return []
        path = self._path_for(kind)
        if not path.exists():
            return []

        try:
            raw = path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable snapshot",
                extra={"stream": kind, "snapshot_path": str(path)},
            )
            data = []

        return [ReadingRecord.model_validate(payload) for payload in data]


@lru_cache
def build_default_snapshot_store(path: Optional[str] = None) -> SnapshotStore:
    settings = get_settings()
    root = settings.snapshot_root_path if path is None else path
    return SnapshotStore(
        root_path=Path(root) if root else None,
        retention_seconds=settings.retention_seconds,
    )
