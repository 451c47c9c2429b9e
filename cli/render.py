from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_readings(readings: List[Dict[str, Any]]) -> None:
    if not readings:
        typer.echo("No readings.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('timestamp')} {reading.get('source')}: {reading.get('value')}"
        )


def render_streams(streams: List[Dict[str, Any]]) -> None:
    echo_heading("Streams")
    for stream in streams:
        latest = stream.get("latest") or {}
        marker = " (derived)" if stream.get("derived") else ""
        typer.echo(
            f"{stream.get('kind')}{marker}: {stream.get('size')} readings, "
            f"latest={latest.get('value', '-')}"
        )


def render_window(payload: Dict[str, Any]) -> None:
    echo_heading(f"{payload.get('kind')} (last {payload.get('seconds')}s)")
    echo_readings(payload.get("readings") or [])


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Recorded Reading")
    echo_key_values(
        [
            ("kind", payload.get("kind")),
            ("source", payload.get("source")),
            ("timestamp", payload.get("timestamp")),
            ("value", payload.get("value")),
        ]
    )


def render_calculation(payload: Dict[str, Any]) -> None:
    echo_heading("Calculation Result")
    echo_key_values(
        [
            ("metric", payload.get("metric")),
            ("status", payload.get("status")),
            ("produced", payload.get("produced")),
            ("skipped", payload.get("skipped")),
            ("persisted", payload.get("persisted")),
        ]
    )

    mismatches = payload.get("mismatches") or []
    typer.echo()
    echo_heading("Alignment")
    if mismatches:
        for mismatch in mismatches:
            typer.echo(f"  - extra {mismatch.get('side')} values: {mismatch.get('count')}")
    else:
        typer.echo("All readings aligned.")

    typer.echo()
    echo_heading("Readings")
    echo_readings(payload.get("readings") or [])


def render_snapshot(payload: Dict[str, Any]) -> None:
    echo_heading(f"Snapshot: {payload.get('kind')}")
    echo_readings(payload.get("readings") or [])
