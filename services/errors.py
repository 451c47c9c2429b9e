"""Exceptions raised by the calculation engine."""

from __future__ import annotations


class WeatherStationError(Exception):
    """Base class for engine errors."""


class EmptyWindowError(WeatherStationError, LookupError):
    """No readings fell inside the requested window."""

    def __init__(self, kind: str, interval_seconds: float) -> None:
        self.kind = kind
        self.interval_seconds = interval_seconds
        super().__init__(
            f"No {kind} readings within the last {interval_seconds:g} seconds."
        )


class DomainError(WeatherStationError, ValueError):
    """A formula received input outside its valid domain."""
