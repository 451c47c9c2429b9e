"""Unit tests for positional cross-stream alignment."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.aligner import Aligner, AlignmentMismatch, AlignmentMode

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _series(kind: str, values: list[float], step: float = 1.0) -> list[Reading]:
    return [
        Reading(
            timestamp=BASE + timedelta(seconds=index * step),
            source=kind.title(),
            kind=kind,
            value=value,
        )
        for index, value in enumerate(values)
    ]


def test_one_to_one_stops_at_shorter_window_and_reports_leftover() -> None:
    temperature = _series("temperature", [70, 71, 72, 73, 74])
    humidity = _series("humidity", [40, 41, 42])

    result = Aligner().align(
        temperature, humidity, AlignmentMode.one_to_one, "temperature", "humidity"
    )

    assert len(result.groups) == 3
    assert [(g.primary.value, g.auxiliary_value) for g in result.groups] == [
        (70, 40),
        (71, 41),
        (72, 42),
    ]
    assert result.mismatches == [AlignmentMismatch("temperature", 2)]
    assert result.leftover("humidity") == 0


def test_one_to_one_reports_auxiliary_leftover() -> None:
    result = Aligner().align(
        _series("temperature", [70]),
        _series("humidity", [40, 41]),
        primary_name="temperature",
        auxiliary_name="humidity",
    )

    assert len(result.groups) == 1
    assert result.mismatches == [AlignmentMismatch("humidity", 1)]


def test_one_to_three_averages_each_triplet() -> None:
    temperature = _series("temperature", [30, 20], step=3)
    wind = _series("wind_speed", [3, 6, 9, 10, 20, 30, 99])

    result = Aligner().align(
        temperature, wind, AlignmentMode.one_to_three, "temperature", "wind_speed"
    )

    assert len(result.groups) == 2
    assert [len(g.auxiliary) for g in result.groups] == [3, 3]
    assert result.groups[0].auxiliary_value == pytest.approx(6.0)
    assert result.groups[1].auxiliary_value == pytest.approx(20.0)
    assert result.mismatches == [AlignmentMismatch("wind_speed", 1)]


def test_one_to_three_reports_both_sides_when_wind_runs_short() -> None:
    temperature = _series("temperature", [30, 20, 10])
    wind = _series("wind_speed", [5, 5, 5, 7, 7])

    result = Aligner().align(
        temperature, wind, AlignmentMode.one_to_three, "temperature", "wind_speed"
    )

    assert len(result.groups) == 1
    assert result.leftover("temperature") == 2
    assert result.leftover("wind_speed") == 2


def test_pairing_follows_walk_order_not_timestamp_proximity() -> None:
    temperature = _series("temperature", [70, 80], step=10)
    humidity = _series("humidity", [40, 41], step=1)

    result = Aligner().align(temperature, humidity)

    assert result.groups[1].primary.value == 80
    assert result.groups[1].auxiliary[0].value == 41
    assert result.mismatches == []
