"""Pydantic schemas for the HTTP API layer and snapshot files."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Reading


class CalculationStatus(str, Enum):
    """Outcome of a single calculation invocation."""

    done = "done"
    partial = "partial"
    failed = "failed"


class ReadingRecord(BaseModel):
    """Serialized form of a reading."""

    timestamp: datetime
    source: str
    kind: str
    value: float

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRecord":
        return cls(
            timestamp=reading.timestamp,
            source=reading.source,
            kind=reading.kind,
            value=reading.value,
        )

    def to_reading(self) -> Reading:
        return Reading(
            timestamp=self.timestamp,
            source=self.source,
            kind=self.kind,
            value=self.value,
        )


class ReadingIn(BaseModel):
    """Payload for recording an externally measured value."""

    value: float = Field(..., allow_inf_nan=False)
    source: Optional[str] = Field(
        default=None, description="Producer label; defaults to the sensor name."
    )
    timestamp: Optional[datetime] = Field(
        default=None, description="Observation time; defaults to now (UTC)."
    )


class StreamSummary(BaseModel):
    kind: str
    size: int = Field(..., ge=0)
    derived: bool = False
    latest: Optional[ReadingRecord] = None


class StreamWindow(BaseModel):
    """Readings that fall inside a requested window."""

    kind: str
    seconds: float
    readings: List[ReadingRecord] = Field(default_factory=list)


class MismatchRecord(BaseModel):
    side: str
    count: int = Field(..., ge=1)


class CalculationResponse(BaseModel):
    """Summary of a triggered calculation."""

    metric: str
    status: CalculationStatus
    produced: int = Field(..., ge=0)
    skipped: int = Field(default=0, ge=0)
    persisted: bool = False
    mismatches: List[MismatchRecord] = Field(default_factory=list)
    readings: List[ReadingRecord] = Field(default_factory=list)


class SnapshotResponse(BaseModel):
    kind: str
    readings: List[ReadingRecord] = Field(default_factory=list)
