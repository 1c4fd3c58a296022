from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, DialCredentials, load_config, load_credentials, save_credentials
from cli.render import render_board, render_dial_value
from logging_config import configure_logging


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Set and share how you feel with ooohh dials and boards.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
board_app = typer.Typer(help="Create, show and extend boards.")
app.add_typer(board_app, name="board")


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _require_credentials(state: CLIState) -> DialCredentials:
    credentials = load_credentials(state.config.cache_file)
    if credentials is None:
        typer.secho(
            "No dial configured. Run `ooohh create NAME TOKEN` or `ooohh set DIAL_ID TOKEN` first.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    return credentials


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="ooohh API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    cache_dir: Optional[Path] = typer.Option(
        None,
        "--cache-dir",
        help="Directory holding the saved dial id and token (defaults to ~/.ooohh).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(base_url=base_url, cache_dir=cache_dir, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("create")
def create_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name for the new dial."),
    token: str = typer.Argument(..., help="Secret needed to change the dial later."),
) -> None:
    """Create a new dial and remember it for later commands."""
    state = _get_state(ctx)
    dial = state.client.create_dial(name, token)
    save_credentials(state.config.cache_file, DialCredentials(dial_id=dial["id"], token=token))
    typer.secho(f"created dial {dial['name']} ({dial['id']})", fg=typer.colors.GREEN)


@app.command("set")
def set_command(
    ctx: typer.Context,
    dial_id: str = typer.Argument(..., help="Existing dial identifier."),
    token: str = typer.Argument(..., help="Token the dial was created with."),
) -> None:
    """Use an existing dial for later commands."""
    state = _get_state(ctx)
    save_credentials(state.config.cache_file, DialCredentials(dial_id=dial_id, token=token))
    typer.echo("Config updated.")


@app.command("wtf")
def wtf_command(
    ctx: typer.Context,
    value: float = typer.Argument(..., help="New value for your dial."),
) -> None:
    """Update the value of your dial."""
    state = _get_state(ctx)
    credentials = _require_credentials(state)
    state.client.set_dial(credentials.dial_id, credentials.token, value)
    typer.echo("wtf level set 💥")


@app.command("query")
def query_command(ctx: typer.Context) -> None:
    """Show the current value of your dial."""
    state = _get_state(ctx)
    credentials = _require_credentials(state)
    render_dial_value(state.client.get_dial(credentials.dial_id))


@board_app.command("create")
def board_create_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name for the new board."),
    token: str = typer.Argument(..., help="Secret needed to change the board later."),
) -> None:
    """Create an empty board."""
    state = _get_state(ctx)
    board = state.client.create_board(name, token)
    typer.secho(f"created board {board['name']} ({board['id']})", fg=typer.colors.GREEN)


@board_app.command("show")
def board_show_command(
    ctx: typer.Context,
    board_id: str = typer.Argument(..., help="Board identifier."),
) -> None:
    """Show a board and the current value of its dials."""
    state = _get_state(ctx)
    render_board(state.client.get_board(board_id))


@board_app.command("add")
def board_add_command(
    ctx: typer.Context,
    board_id: str = typer.Argument(..., help="Board identifier."),
    token: str = typer.Argument(..., help="Token the board was created with."),
    dial_id: Optional[str] = typer.Option(
        None,
        "--dial",
        "-d",
        help="Dial to add (defaults to your saved dial).",
    ),
) -> None:
    """Append a dial to a board."""
    state = _get_state(ctx)
    if dial_id is None:
        dial_id = _require_credentials(state).dial_id

    board = state.client.get_board(board_id)
    # Unresolvable references stay on the board.
    dial_ids = [*(board.get("dial_refs") or []), dial_id]
    render_board(state.client.set_board(board_id, token, dial_ids))
