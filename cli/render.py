from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_dial_value(payload: Dict[str, Any]) -> None:
    value = payload.get("value")
    formatted = f"{value:.1f}" if isinstance(value, (int, float)) else value
    typer.echo(f"Your dial ({payload.get('id')}) is set to {formatted}.")


def render_board(payload: Dict[str, Any]) -> None:
    echo_heading(f"Board {payload.get('name')}")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("updated_at", payload.get("updated_at")),
        ]
    )

    dials = payload.get("dials") or []
    typer.echo()
    echo_heading("Dials")
    if not dials:
        typer.echo("No dials on this board.")
        return
    for dial in dials:
        typer.echo(f"  - {dial.get('name')} ({dial.get('id')}): {dial.get('value')}")
