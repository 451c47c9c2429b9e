"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    CalculationResponse,
    CalculationStatus,
    MismatchRecord,
    ReadingIn,
    ReadingRecord,
    SnapshotResponse,
    StreamSummary,
    StreamWindow,
)
from models.records import MeasurementKind
from services.errors import EmptyWindowError
from services.station import WeatherStation, build_default_station
from services.windows import extract_window

router = APIRouter()


def get_station() -> WeatherStation:
    return build_default_station()


def _summarize(kind: str, station: WeatherStation) -> StreamSummary:
    store = station.streams.get(kind)
    latest = store.latest()
    return StreamSummary(
        kind=kind,
        size=store.size(),
        derived=MeasurementKind(kind).is_derived,
        latest=ReadingRecord.from_reading(latest) if latest else None,
    )


@router.get(
    "/streams",
    response_model=list[StreamSummary],
    summary="List every stream with its size and latest reading.",
)
async def list_streams(
    station: WeatherStation = Depends(get_station),
) -> list[StreamSummary]:
    return [_summarize(kind, station) for kind in station.streams.kinds()]


@router.get(
    "/streams/{kind}",
    response_model=StreamWindow,
    summary="Fetch the readings recorded within the last N seconds.",
)
async def get_stream_window(
    kind: str,
    seconds: float = Query(60.0, gt=0, description="Window length in seconds."),
    station: WeatherStation = Depends(get_station),
) -> StreamWindow:
    try:
        store = station.streams.get(kind)
        window = extract_window(store, seconds)
    except (KeyError, EmptyWindowError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    return StreamWindow(
        kind=kind,
        seconds=seconds,
        readings=[ReadingRecord.from_reading(reading) for reading in window],
    )


@router.post(
    "/streams/{kind}/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=ReadingRecord,
    summary="Record an externally measured value into a base stream.",
)
async def record_reading(
    kind: str,
    payload: ReadingIn,
    station: WeatherStation = Depends(get_station),
) -> ReadingRecord:
    try:
        reading = station.record(
            kind,
            payload.value,
            source=payload.source,
            timestamp=payload.timestamp,
        )
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ReadingRecord.from_reading(reading)


@router.post(
    "/calculations/{metric}",
    response_model=CalculationResponse,
    summary="Run a derived metric calculation over the current windows.",
)
async def trigger_calculation(
    metric: str,
    station: WeatherStation = Depends(get_station),
) -> CalculationResponse:
    try:
        report = station.calculate(metric)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    except EmptyWindowError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc

    if not report.batch:
        outcome = CalculationStatus.failed
    elif report.skipped:
        outcome = CalculationStatus.partial
    else:
        outcome = CalculationStatus.done
    return CalculationResponse(
        metric=report.metric,
        status=outcome,
        produced=len(report.batch),
        skipped=report.skipped,
        persisted=report.persisted,
        mismatches=[
            MismatchRecord(side=mismatch.side, count=mismatch.count)
            for mismatch in report.mismatches
        ],
        readings=[ReadingRecord.from_reading(reading) for reading in report.batch],
    )


@router.get(
    "/snapshots/{kind}",
    response_model=SnapshotResponse,
    summary="Fetch the last persisted snapshot of a stream.",
)
async def get_snapshot(
    kind: str,
    station: WeatherStation = Depends(get_station),
) -> SnapshotResponse:
    if kind not in station.streams:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown stream {kind!r}.",
        )
    readings = station.snapshots.load(kind) if station.snapshots is not None else []
    return SnapshotResponse(
        kind=kind,
        readings=[ReadingRecord.from_reading(reading) for reading in readings],
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
