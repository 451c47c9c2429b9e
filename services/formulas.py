"""Derived weather metrics.

Temperatures are degrees Fahrenheit, relative humidity is a percentage
(pass 80 for 80 %, not 0.80) and wind speed is miles per hour.
"""

from __future__ import annotations

import math

from services.errors import DomainError

MIN_WIND_CHILL_SPEED_MPH = 3.0

_MAGNUS_A = 17.27
_MAGNUS_B = 237.3


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32.0) * 5.0 / 9.0


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9.0 / 5.0 + 32.0


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise DomainError(f"{name} must be a finite number, got {value}.")


def dew_point_celsius(temperature_c: float, relative_humidity: float) -> float:
    """Magnus approximation of the dew point, in Celsius."""
    _require_finite(temperature=temperature_c, relative_humidity=relative_humidity)
    if not 0.0 < relative_humidity <= 100.0:
        raise DomainError(
            f"Relative humidity must be in (0, 100], got {relative_humidity}."
        )
    if temperature_c + _MAGNUS_B == 0.0:
        raise DomainError(f"Dew point undefined at {temperature_c} C.")

    gamma = math.log(relative_humidity / 100.0) + (
        _MAGNUS_A * temperature_c / (_MAGNUS_B + temperature_c)
    )
    denominator = _MAGNUS_A - gamma
    if denominator == 0.0:
        raise DomainError("Dew point undefined for the given inputs.")
    return _MAGNUS_B * gamma / denominator


def dew_point(temperature_f: float, relative_humidity: float) -> float:
    """Dew point in Fahrenheit for a Fahrenheit air temperature."""
    return celsius_to_fahrenheit(
        dew_point_celsius(fahrenheit_to_celsius(temperature_f), relative_humidity)
    )


def simple_heat_index(relative_humidity: float, temperature_f: float) -> float:
    return 0.5 * (
        temperature_f + 61.0 + ((temperature_f - 68.0) * 1.2) + (relative_humidity * 0.094)
    )


def rothfusz_regression(relative_humidity: float, temperature_f: float) -> float:
    """Unadjusted Rothfusz regression used for warm conditions."""
    t = temperature_f
    rh = relative_humidity
    t2 = t * t
    rh2 = rh * rh
    return (
        -42.379
        + (2.04901523 * t)
        + (10.14333127 * rh)
        - (0.22475541 * t * rh)
        - (0.00683783 * t2)
        - (0.05481717 * rh2)
        + (0.00122874 * t2 * rh)
        + (0.00085282 * t * rh2)
        - (0.00000199 * t2 * rh2)
    )


def heat_index(relative_humidity: float, temperature_f: float) -> float:
    """Heat index in Fahrenheit.

    The simple equation is used unless its result reaches 80 F, in which case
    the Rothfusz regression takes over with at most one of the low or high
    humidity adjustments applied.
    """
    _require_finite(temperature=temperature_f, relative_humidity=relative_humidity)
    if not 0.0 <= relative_humidity <= 100.0:
        raise DomainError(
            f"Relative humidity must be in [0, 100], got {relative_humidity}."
        )

    simple = simple_heat_index(relative_humidity, temperature_f)
    if simple < 80.0:
        return simple

    value = rothfusz_regression(relative_humidity, temperature_f)
    if relative_humidity < 13.0 and 80.0 <= temperature_f <= 112.0:
        value -= ((13.0 - relative_humidity) / 4.0) * math.sqrt(
            (17.0 - abs(temperature_f - 95.0)) / 17.0
        )
    elif relative_humidity > 85.0 and 80.0 <= temperature_f <= 87.0:
        value += ((relative_humidity - 85.0) / 10.0) * ((87.0 - temperature_f) / 5.0)
    return value


def wind_chill(temperature_f: float, wind_mph: float) -> float:
    """Wind chill in Fahrenheit; wind below 3 mph is rejected."""
    _require_finite(temperature=temperature_f, wind_speed=wind_mph)
    if wind_mph < MIN_WIND_CHILL_SPEED_MPH:
        raise DomainError(
            f"Wind chill requires at least {MIN_WIND_CHILL_SPEED_MPH:g} mph, got {wind_mph}."
        )
    factor = math.pow(wind_mph, 0.16)
    return 35.74 + (0.6215 * temperature_f) - (35.75 * factor) + (0.4275 * temperature_f * factor)
