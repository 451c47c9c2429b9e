"""Derived metric calculation over aligned stream windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from models.records import MeasurementKind, Reading
from services.aligner import Aligner, AlignmentMismatch, AlignmentMode
from services.errors import DomainError, EmptyWindowError
from services.formulas import dew_point, heat_index, wind_chill
from services.windows import extract_window
from storage.streams import OrderedStreamStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Persister(Protocol):
    def persist(self, batch: Sequence[Reading]) -> None:
        ...


class RunnerState(str, Enum):
    """Progress of the most recent runner invocation."""

    idle = "idle"
    window_extracted = "window_extracted"
    aligned = "aligned"
    computed = "computed"
    emitted = "emitted"
    done = "done"
    failed = "failed"


def _dew_point_from_pair(temperature: float, humidity: float) -> float:
    return dew_point(temperature, humidity)


def _heat_index_from_pair(temperature: float, humidity: float) -> float:
    return heat_index(humidity, temperature)


def _wind_chill_from_pair(temperature: float, wind_speed: float) -> float:
    return wind_chill(temperature, wind_speed)


@dataclass(frozen=True)
class MetricDefinition:
    """Static description of a derived metric.

    ``formula`` receives the primary value and the (averaged) auxiliary value.
    """

    kind: MeasurementKind
    source: str
    inputs: Tuple[MeasurementKind, MeasurementKind]
    mode: AlignmentMode
    formula: Callable[[float, float], float]
    default_interval_seconds: float


DEW_POINT = MetricDefinition(
    kind=MeasurementKind.dew_point,
    source="Dew Point",
    inputs=(MeasurementKind.temperature, MeasurementKind.humidity),
    mode=AlignmentMode.one_to_one,
    formula=_dew_point_from_pair,
    default_interval_seconds=15.0,
)

HEAT_INDEX = MetricDefinition(
    kind=MeasurementKind.heat_index,
    source="Heat Index",
    inputs=(MeasurementKind.temperature, MeasurementKind.humidity),
    mode=AlignmentMode.one_to_one,
    formula=_heat_index_from_pair,
    default_interval_seconds=15.0,
)

WIND_CHILL = MetricDefinition(
    kind=MeasurementKind.wind_chill,
    source="Wind Chill",
    inputs=(MeasurementKind.temperature, MeasurementKind.wind_speed),
    mode=AlignmentMode.one_to_three,
    formula=_wind_chill_from_pair,
    default_interval_seconds=12.0,
)

METRICS: Dict[str, MetricDefinition] = {
    metric.kind.value: metric for metric in (DEW_POINT, HEAT_INDEX, WIND_CHILL)
}


@dataclass
class CalculationReport:
    metric: str
    batch: List[Reading] = field(default_factory=list)
    skipped: int = 0
    mismatches: List[AlignmentMismatch] = field(default_factory=list)
    persisted: bool = False


class CalculationRunner:
    """Computes one derived metric from the recent windows of two streams."""

    def __init__(
        self,
        metric: MetricDefinition,
        primary: OrderedStreamStore,
        auxiliary: OrderedStreamStore,
        output: OrderedStreamStore,
        persister: Optional[Persister] = None,
        interval_seconds: Optional[float] = None,
        aligner: Optional[Aligner] = None,
        clock: Clock = utc_now,
    ) -> None:
        expected = (metric.inputs[0].value, metric.inputs[1].value)
        if (primary.kind, auxiliary.kind) != expected:
            raise ValueError(
                f"{metric.kind.value} expects inputs {expected}, "
                f"got {(primary.kind, auxiliary.kind)}."
            )
        if output.kind != metric.kind.value:
            raise ValueError(
                f"{metric.kind.value} cannot write into {output.kind!r} stream."
            )
        self.metric = metric
        self.primary = primary
        self.auxiliary = auxiliary
        self.output = output
        self.persister = persister
        self.interval_seconds = (
            metric.default_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.aligner = aligner or Aligner()
        self.state = RunnerState.idle
        self._clock = clock
        self._lock = Lock()

    @property
    def name(self) -> str:
        return self.metric.kind.value

    def run(self) -> List[Reading]:
        return self.execute().batch

    def execute(self) -> CalculationReport:
        with self._lock:
            self.state = RunnerState.idle
            try:
                return self._execute()
            except Exception:
                self.state = RunnerState.failed
                raise

    def _execute(self) -> CalculationReport:
        log_context = {"metric": self.name, "interval_seconds": self.interval_seconds}
        now = self._clock()
        try:
            primary_window = extract_window(self.primary, self.interval_seconds, now)
            auxiliary_window = extract_window(self.auxiliary, self.interval_seconds, now)
        except EmptyWindowError as exc:
            logger.debug("Calculation aborted: %s", exc, extra=log_context)
            raise
        self.state = RunnerState.window_extracted

        alignment = self.aligner.align(
            primary_window,
            auxiliary_window,
            mode=self.metric.mode,
            primary_name=self.primary.kind,
            auxiliary_name=self.auxiliary.kind,
        )
        for mismatch in alignment.mismatches:
            logger.info(
                "Extra values left in %s window",
                mismatch.side,
                extra={**log_context, "side": mismatch.side, "leftover": mismatch.count},
            )
        self.state = RunnerState.aligned

        report = CalculationReport(metric=self.name, mismatches=list(alignment.mismatches))
        for group in alignment.groups:
            try:
                value = self.metric.formula(group.primary.value, group.auxiliary_value)
            except DomainError as exc:
                report.skipped += 1
                logger.warning(
                    "Skipping aligned group",
                    extra={**log_context, "reason": str(exc)},
                )
                continue
            report.batch.append(
                Reading(
                    timestamp=self._clock(),
                    source=self.metric.source,
                    kind=self.name,
                    value=value,
                )
            )
        self.state = RunnerState.computed

        for reading in report.batch:
            self.output.insert(reading)
        self.state = RunnerState.emitted

        if report.batch and self.persister is not None:
            try:
                self.persister.persist(report.batch)
                report.persisted = True
            except Exception:
                logger.exception("Snapshot handoff failed", extra=log_context)

        logger.info(
            "Calculation finished",
            extra={
                **log_context,
                "reading_count": len(report.batch),
                "skipped_count": report.skipped,
            },
        )
        self.state = RunnerState.done
        return report


def build_runner(
    metric: MetricDefinition,
    stores: Callable[[str], OrderedStreamStore],
    persister: Optional[Persister] = None,
    interval_seconds: Optional[float] = None,
    clock: Clock = utc_now,
) -> CalculationRunner:
    """Wire a runner to the stores resolved by ``stores(kind)``."""
    primary_kind, auxiliary_kind = metric.inputs
    return CalculationRunner(
        metric=metric,
        primary=stores(primary_kind.value),
        auxiliary=stores(auxiliary_kind.value),
        output=stores(metric.kind.value),
        persister=persister,
        interval_seconds=interval_seconds,
        clock=clock,
    )
