from __future__ import annotations

import typer
from rich.markup import escape
from rich.table import Table
from vstats_client import VstatsClientError
from vstats_client.models import WebInstance
from vstats_client.resolve import find_web_instance_by_name_or_id

from .. import console
from ..deploy import PRICING_URL, WEB_INSTALL_SCRIPT_URL
from ..formatting import format_connected, format_limit, format_status, format_time, format_time_ago
from ..http import make_client
from ..state import CliState, get_state, require_login

app = typer.Typer(help="Manage web dashboard instances.")

UNINSTALL_HINT = f"curl -fsSL {WEB_INSTALL_SCRIPT_URL} | sudo bash -s -- --uninstall"


def _session(ctx: typer.Context) -> CliState:
    state = get_state(ctx)
    require_login(state)
    return state


def _resolve(client, ref: str) -> WebInstance:
    try:
        return find_web_instance_by_name_or_id(client, ref)
    except VstatsClientError as e:
        console.err(str(e))
        raise typer.Exit(code=2)


@app.command("list")
def list_instances(ctx: typer.Context):
    """List web dashboard instances."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        instances = client.web_instances_list()
    except VstatsClientError as e:
        console.err(f"Failed to list web instances: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    def _table() -> None:
        if not instances:
            console.info("No web instances found.")
            console.info("Use 'vstats ssh web <host>' to deploy a web dashboard.")
            return
        table = Table(title="Web instances")
        table.add_column("NAME", style="bold")
        table.add_column("HOST")
        table.add_column("PORT", justify="right")
        table.add_column("STATUS", no_wrap=True)
        table.add_column("URL")
        table.add_column("CREATED", no_wrap=True)
        for w in instances:
            table.add_row(
                escape(w.name),
                escape(w.host or "-"),
                str(w.port),
                format_status(w.status),
                escape(w.url or "-"),
                format_time_ago(w.created_at),
            )
        console.console.print(table)

    state.renderer.render(instances, table=_table)


@app.command("status")
def plan_status(ctx: typer.Context):
    """Show plan usage and deployed web instances."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        plan = client.user_plan()
        instances = client.web_instances_list()
    except VstatsClientError as e:
        console.err(f"Failed to get web status: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    def _table() -> None:
        console.rule("Web Dashboard Status")
        console.print(f"Plan:            {escape(plan.plan or '-')}")
        console.print(f"Web Instances:   {plan.current_count} / {format_limit(plan.max_web_apps)}")
        console.print()
        if instances:
            console.print("Deployed Instances:")
            for w in instances:
                console.print(f"  • {escape(w.name)} ({escape(w.url or '-')}) - {format_status(w.status)}")
        else:
            console.info("No web instances deployed yet.")
            console.info("Deploy with: vstats ssh web <host>")
        if not plan.is_pro:
            console.print()
            console.rule(style="yellow")
            console.print("Upgrade to Pro for unlimited web instances!")
            console.print(f"  {PRICING_URL}")
            console.rule(style="yellow")

    state.renderer.render({"plan": plan, "instances": instances}, table=_table)


@app.command("check")
def check_instance(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Web instance id or name."),
):
    """Run a health check against a web instance."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        instance = _resolve(client, ref)
        if not state.renderer.structured:
            console.info(f"Checking web instance '{instance.name}'...")
        try:
            status = client.web_instance_check(instance.id)
        except VstatsClientError as e:
            # reported, not fatal: the instance itself may simply be down
            console.print(f"[red]✗[/] Health check failed: {escape(str(e))}")
            return
    finally:
        client.close()

    def _table() -> None:
        console.print(f"Status:       {format_status(status.status)}")
        console.print(f"URL:          {escape(instance.url or '-')}")
        console.print(f"Response:     {escape(status.response_time or '-')}")
        console.print(f"Version:      {escape(status.version or '-')}")
        console.print(f"Cloud Sync:   {format_connected(status.cloud_connected)}")
        console.print(f"Last Check:   {format_time(status.checked_at)}")

    state.renderer.render(status, table=_table)


@app.command("remove")
def remove_instance(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Web instance id or name."),
        force: bool = typer.Option(False, "-f", "--force", help="Skip confirmation."),
):
    """Remove a web instance from the cloud registry."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        instance = _resolve(client, ref)
        if not force:
            confirmed = typer.confirm(f"Are you sure you want to remove web instance '{instance.name}'?", default=False)
            if not confirmed:
                console.info("Cancelled.")
                return
        client.web_instance_remove(instance.id)
    except VstatsClientError as e:
        console.err(f"Failed to remove web instance: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    console.ok(f"Web instance '{instance.name}' removed")
    console.print()
    console.print("To uninstall from the server, SSH in and run:")
    console.print(f"  {UNINSTALL_HINT}", markup=False, soft_wrap=True)
