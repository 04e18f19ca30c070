from __future__ import annotations

import typer
from rich.markup import escape
from vstats_client import VstatsClientError

from .. import auth_state
from .. import console
from ..http import make_client
from ..state import get_state, require_login


def login(
        ctx: typer.Context,
        token: str | None = typer.Option(None, "-t", "--token", help="API token from the vStats Cloud dashboard."),
):
    """Log in to vStats Cloud with an API token."""
    state = get_state(ctx)
    if not token:
        console.print("[bold]Login to vStats Cloud[/]")
        console.info(f"You can get your token from: {state.cfg.cloud_url}")
        token = typer.prompt("Token", hide_input=True)

    console.info("Verifying token...")
    try:
        result = auth_state.login(
            state.cfg,
            token,
            path=state.config_path,
            client_factory=make_client,
        )
    except VstatsClientError as e:
        console.err(f"Login failed: {e}")
        raise typer.Exit(code=2)
    except OSError as e:
        console.err(f"Failed to save config: {e}")
        raise typer.Exit(code=2)

    console.ok(f"Logged in as {result.username}")
    if result.plan:
        console.info(f"Plan: {result.plan}")


def logout(ctx: typer.Context):
    """Clear the stored session."""
    state = get_state(ctx)
    try:
        username = auth_state.logout(state.cfg, path=state.config_path)
    except OSError as e:
        console.err(f"Failed to save config: {e}")
        raise typer.Exit(code=2)
    if username is None:
        console.info("Not logged in")
        return
    console.ok(f"Logged out from {username}")


def whoami(ctx: typer.Context):
    """Show the current user."""
    state = get_state(ctx)
    require_login(state)

    client = make_client(state.cfg)
    try:
        me = client.me()
    except VstatsClientError as e:
        console.err(f"Failed to get user info: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    def _table() -> None:
        user = me.user
        console.print("[bold]Current User[/]")
        console.print(f"Username:     {escape(user.username)}")
        if user.email:
            console.print(f"Email:        {escape(user.email)}")
        console.print(f"Plan:         {escape(user.plan or '-')}")
        console.print(f"Servers:      {me.server_count} / {me.server_limit}")
        console.print(f"Status:       {escape(user.status or '-')}")

    state.renderer.render(me, table=_table)
