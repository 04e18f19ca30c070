from __future__ import annotations

from datetime import datetime, timezone

import typer
from rich.markup import escape

from .. import console
from ..config import SETTABLE_KEYS, save_config, set_config_value
from ..formatting import format_time
from ..state import get_state

app = typer.Typer(help="Inspect and change CLI configuration.")


@app.command("show")
def show_config(ctx: typer.Context):
    """Show the current configuration (the token is never printed)."""
    state = get_state(ctx)
    cfg = state.cfg
    view = {
        "cloud_url": cfg.cloud_url,
        "username": cfg.auth.username,
        "expires_at": cfg.auth.expires_at,
        "logged_in": cfg.is_logged_in(),
    }

    def _table() -> None:
        console.rule("Configuration")
        console.print(f"Config File: {escape(state.config_path)}")
        console.print(f"Cloud URL:   {escape(cfg.cloud_url)}")
        console.print(f"Logged In:   {'yes' if view['logged_in'] else 'no'}")
        if cfg.auth.username:
            console.print(f"Username:    {escape(cfg.auth.username)}")
        if cfg.auth.expires_at:
            console.print(f"Expires:     {format_time(datetime.fromtimestamp(cfg.auth.expires_at, tz=timezone.utc))}")

    state.renderer.render(view, table=_table)


@app.command("set")
def set_value(
        ctx: typer.Context,
        key: str = typer.Argument(..., help=f"Configuration key ({', '.join(SETTABLE_KEYS)})."),
        value: str = typer.Argument(..., help="New value."),
):
    """Set a configuration value."""
    state = get_state(ctx)
    try:
        set_config_value(state.cfg, key, value)
    except ValueError as e:
        console.err(str(e))
        console.info(f"Supported keys: {', '.join(SETTABLE_KEYS)}")
        raise typer.Exit(code=2)
    try:
        save_config(state.cfg, state.config_path)
    except OSError as e:
        console.err(f"Failed to save config: {e}")
        raise typer.Exit(code=2)
    console.ok(f"Set {key} = {getattr(state.cfg, key)}")


@app.command("path")
def show_path(ctx: typer.Context):
    """Print the configuration file path."""
    state = get_state(ctx)
    console.print(state.config_path, markup=False, highlight=False, soft_wrap=True)
