from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_history

TIME_SCALES = ("30m", "1h", "6h", "24h", "7d", "30d", "all")


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for pushing and browsing sensor readings.",
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
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("push")
def push_command(
    ctx: typer.Context,
    temperature: float = typer.Option(..., "--temperature", "-t", help="Temperature reading."),
    humidity: float = typer.Option(..., "--humidity", "-H", help="Relative humidity reading."),
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="Reporting device."),
) -> None:
    """Store a single reading."""
    state = _get_state(ctx)
    key = state.client.post_reading(temperature, humidity, device_id=device_id)
    typer.secho(f"Reading stored. key={key}", fg=typer.colors.GREEN)


@app.command("history")
def history_command(
    ctx: typer.Context,
    time_scale: str = typer.Option("24h", "--time-scale", "-s", help="One of " + ", ".join(TIME_SCALES) + "."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Maximum rows to fetch."),
) -> None:
    """Show recent readings, aggregated when the window is dense."""
    if time_scale not in TIME_SCALES:
        raise typer.BadParameter(
            f"Unknown time scale {time_scale!r}.", param_hint="--time-scale"
        )
    state = _get_state(ctx)
    readings = state.client.get_history(time_scale, limit=limit)
    render_history(readings, time_scale)
