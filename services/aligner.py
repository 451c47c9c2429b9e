"""Positional alignment of readings across two windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from models.records import Reading


class AlignmentMode(Enum):
    """How many auxiliary readings are consumed per primary reading."""

    one_to_one = 1
    one_to_three = 3

    @property
    def group_size(self) -> int:
        return self.value


@dataclass(frozen=True)
class AlignmentMismatch:
    """Readings on one side that were left unconsumed."""

    side: str
    count: int


@dataclass(frozen=True)
class AlignedGroup:
    primary: Reading
    auxiliary: Tuple[Reading, ...]

    @property
    def auxiliary_value(self) -> float:
        return sum(reading.value for reading in self.auxiliary) / len(self.auxiliary)


@dataclass
class AlignmentResult:
    groups: List[AlignedGroup] = field(default_factory=list)
    mismatches: List[AlignmentMismatch] = field(default_factory=list)

    def leftover(self, side: str) -> int:
        return sum(m.count for m in self.mismatches if m.side == side)


class Aligner:
    """Pairs window elements by walk order, never by timestamp proximity.

    Every primary reading consumes ``mode.group_size`` auxiliary readings,
    whose values are averaged. Alignment stops as soon as the primary window
    is exhausted or a full auxiliary group can no longer be formed; whatever
    remains on either side is reported as a mismatch.
    """

    def align(
        self,
        primary: Sequence[Reading],
        auxiliary: Sequence[Reading],
        mode: AlignmentMode = AlignmentMode.one_to_one,
        primary_name: str = "primary",
        auxiliary_name: str = "auxiliary",
    ) -> AlignmentResult:
        size = mode.group_size
        count = min(len(primary), len(auxiliary) // size)

        result = AlignmentResult()
        for index in range(count):
            start = index * size
            result.groups.append(
                AlignedGroup(
                    primary=primary[index],
                    auxiliary=tuple(auxiliary[start:start + size]),
                )
            )

        primary_left = len(primary) - count
        auxiliary_left = len(auxiliary) - count * size
        if primary_left:
            result.mismatches.append(AlignmentMismatch(primary_name, primary_left))
        if auxiliary_left:
            result.mismatches.append(AlignmentMismatch(auxiliary_name, auxiliary_left))
        return result
