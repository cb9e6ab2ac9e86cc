from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def format_timestamp(timestamp_ms: Any) -> str:
    if not isinstance(timestamp_ms, (int, float)):
        return str(timestamp_ms)
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def render_history(readings: Iterable[Dict[str, Any]], time_scale: str) -> None:
    rows = list(readings)
    echo_heading(f"Readings ({time_scale}, {len(rows)} rows)")
    if not rows:
        typer.echo("No readings available.")
        return
    for row in rows:
        device = row.get("deviceId") or "-"
        typer.echo(
            f"  {format_timestamp(row.get('timestamp'))}  "
            f"temp={row.get('temperature')}  "
            f"humidity={row.get('humidity')}  "
            f"device={device}"
        )
