"""Time window extraction over ordered streams."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from models.records import Reading
from services.errors import EmptyWindowError
from storage.streams import OrderedStreamStore


def extract_window(
    store: OrderedStreamStore,
    interval_seconds: float,
    now: Optional[datetime] = None,
) -> List[Reading]:
    """Return the readings recorded within the last ``interval_seconds``.

    Raises ``EmptyWindowError`` when nothing qualifies.
    """
    if interval_seconds <= 0:
        raise ValueError("Window interval must be positive.")

    reference = now if now is not None else datetime.now(timezone.utc)
    window = store.tail_from(reference - timedelta(seconds=interval_seconds))
    if not window:
        raise EmptyWindowError(store.kind, interval_seconds)
    return window
