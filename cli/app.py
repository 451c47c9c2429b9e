from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_calculation,
    render_reading,
    render_snapshot,
    render_streams,
    render_window,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the weather station service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Station API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("streams")
def streams_command(ctx: typer.Context) -> None:
    """List every stream with its size and latest value."""
    state = _get_state(ctx)
    render_streams(state.client.list_streams())


@app.command("window")
def window_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Stream to read, e.g. temperature."),
    seconds: float = typer.Option(60.0, "--seconds", "-s", min=0.001, help="Window length in seconds."),
) -> None:
    """Show the readings recorded within the last N seconds."""
    state = _get_state(ctx)
    render_window(state.client.get_window(kind, seconds))


@app.command("record")
def record_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Base stream to write, e.g. humidity."),
    value: float = typer.Argument(..., help="Measured value."),
    source: Optional[str] = typer.Option(None, "--source", help="Producer label."),
) -> None:
    """Record a measured value into a base stream."""
    state = _get_state(ctx)
    payload = state.client.record(kind, value, source=source)
    typer.secho(f"Recorded {kind}={value}", fg=typer.colors.GREEN)
    render_reading(payload)


@app.command("calculate")
def calculate_command(
    ctx: typer.Context,
    metric: str = typer.Argument(..., help="dew_point, heat_index or wind_chill."),
) -> None:
    """Run a derived metric calculation now."""
    state = _get_state(ctx)
    typer.echo(f"Calculating {metric} on {state.config.base_url} ...")
    render_calculation(state.client.calculate(metric))


@app.command("snapshot")
def snapshot_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Stream whose snapshot to show."),
) -> None:
    """Show the last persisted snapshot of a stream."""
    state = _get_state(ctx)
    render_snapshot(state.client.get_snapshot(kind))
