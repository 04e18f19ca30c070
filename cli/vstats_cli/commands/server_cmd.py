from __future__ import annotations

import typer
from rich.markup import escape
from rich.table import Table
from vstats_client import VstatsClientError
from vstats_client.models import Server, ServerMetrics
from vstats_client.resolve import find_server_by_name_or_id

from .. import console
from ..formatting import (
    format_bytes,
    format_float,
    format_int,
    format_percent,
    format_short_time,
    format_status,
    format_time,
    format_time_ago,
)
from ..http import make_client
from ..state import CliState, get_state, require_login

app = typer.Typer(help="Manage monitored servers.")

HISTORY_RANGES = ("1h", "24h", "7d", "30d")


def _fail(action: str, e: Exception) -> typer.Exit:
    console.err(f"Failed to {action}: {e}")
    return typer.Exit(code=2)


def _resolve(client, ref: str) -> Server:
    try:
        return find_server_by_name_or_id(client, ref)
    except VstatsClientError as e:
        console.err(str(e))
        raise typer.Exit(code=2)


def _session(ctx: typer.Context) -> CliState:
    state = get_state(ctx)
    require_login(state)
    return state


def _load_avg(m: ServerMetrics) -> str:
    return " / ".join(format_float(v) for v in (m.load_avg_1, m.load_avg_5, m.load_avg_15))


@app.command("list")
def list_servers(ctx: typer.Context):
    """List all servers."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        servers = client.servers_list()
    except VstatsClientError as e:
        raise _fail("list servers", e)
    finally:
        client.close()

    def _table() -> None:
        if not servers:
            console.info("No servers found.")
            console.info("Use 'vstats server create <name>' to add a server.")
            return
        table = Table(title="Servers")
        table.add_column("NAME", style="bold")
        table.add_column("STATUS", no_wrap=True)
        table.add_column("CPU", justify="right")
        table.add_column("MEM", justify="right")
        table.add_column("IP")
        table.add_column("LAST SEEN", no_wrap=True)
        for s in servers:
            cpu = format_percent(s.metrics.cpu_usage) if s.metrics else "-"
            mem = format_percent(s.metrics.memory_percent()) if s.metrics else "-"
            table.add_row(
                escape(s.name),
                format_status(s.status),
                cpu,
                mem,
                escape(s.ip_address or "-"),
                format_time_ago(s.last_seen_at),
            )
        console.console.print(table)

    state.renderer.render(servers, table=_table)


@app.command("create")
def create_server(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Server name."),
):
    """Create a new server."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = client.server_create(name)
    except VstatsClientError as e:
        raise _fail("create server", e)
    finally:
        client.close()

    def _table() -> None:
        console.ok(f"Server '{server.name}' created successfully!")
        console.print(f"  ID:        {escape(server.id)}")
        console.print(f"  Agent Key: {escape(server.agent_key)}")
        console.print()
        console.print("To install the agent, run:")
        console.print(f"  vstats server install {escape(server.id)}")

    state.renderer.render(server, table=_table)


@app.command("show")
def show_server(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
):
    """Show server details."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
    finally:
        client.close()

    def _table() -> None:
        console.rule("Server Details")
        console.print(f"ID:            {escape(server.id)}")
        console.print(f"Name:          {escape(server.name)}")
        console.print(f"Status:        {format_status(server.status)}")
        console.print(f"Hostname:      {escape(server.hostname or '-')}")
        console.print(f"IP Address:    {escape(server.ip_address or '-')}")
        os_name = " ".join(v for v in (server.os_type, server.os_version) if v) or "-"
        console.print(f"OS:            {escape(os_name)}")
        console.print(f"Agent Version: {escape(server.agent_version or '-')}")
        console.print(f"Last Seen:     {format_time(server.last_seen_at)}")
        console.print(f"Created:       {format_time(server.created_at)}")
        m = server.metrics
        if m is None:
            return
        console.print()
        console.rule("Current Metrics")
        console.print(f"CPU Usage:     {format_float(m.cpu_usage)}")
        console.print(f"Load Average:  {_load_avg(m)}")
        console.print(f"Memory:        {format_bytes(m.memory_used)} / {format_bytes(m.memory_total)}")
        console.print(f"Disk:          {format_bytes(m.disk_used)} / {format_bytes(m.disk_total)}")
        console.print(f"Processes:     {format_int(m.process_count)}")

    state.renderer.render(server, table=_table)


@app.command("update")
def update_server(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
        name: str = typer.Option(..., "-n", "--name", help="New server name."),
):
    """Rename a server."""
    state = _session(ctx)
    if not name.strip():
        console.err("--name cannot be empty.")
        raise typer.Exit(code=2)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        updated = client.server_update(server.id, name=name)
    except VstatsClientError as e:
        raise _fail("update server", e)
    finally:
        client.close()

    state.renderer.render(updated, table=lambda: console.ok(f"Server updated: {updated.name}"))


@app.command("delete")
def delete_server(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
        force: bool = typer.Option(False, "-f", "--force", help="Skip confirmation."),
):
    """Delete a server."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        if not force:
            confirmed = typer.confirm(f"Are you sure you want to delete server '{server.name}'?", default=False)
            if not confirmed:
                console.info("Cancelled.")
                return
        client.server_delete(server.id)
    except VstatsClientError as e:
        raise _fail("delete server", e)
    finally:
        client.close()

    console.ok(f"Server '{server.name}' deleted")


@app.command("metrics")
def server_metrics(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
):
    """Show current metrics for a server."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        metrics = client.server_metrics(server.id)
    except VstatsClientError as e:
        raise _fail("get metrics", e)
    finally:
        client.close()

    if metrics is None:
        if state.renderer.structured:
            state.renderer.render(None)
        else:
            console.info("No metrics available for this server.")
        return

    def _table() -> None:
        console.rule(f"Metrics for {escape(server.name)}")
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("key", style="bold")
        table.add_column("value")
        table.add_row("CPU", "")
        table.add_row("  Usage", format_float(metrics.cpu_usage))
        table.add_row("  Cores", format_int(metrics.cpu_cores))
        table.add_row("  Load Avg", _load_avg(metrics))
        table.add_row("Memory", "")
        table.add_row("  Total", format_bytes(metrics.memory_total))
        table.add_row("  Used", format_bytes(metrics.memory_used))
        table.add_row("  Free", format_bytes(metrics.memory_free))
        table.add_row("Disk", "")
        table.add_row("  Total", format_bytes(metrics.disk_total))
        table.add_row("  Used", format_bytes(metrics.disk_used))
        table.add_row("  Free", format_bytes(metrics.disk_free))
        table.add_row("Processes", "")
        table.add_row("  Count", format_int(metrics.process_count))
        console.console.print(table)

    state.renderer.render(metrics, table=_table)


@app.command("history")
def server_history(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
        range_: str = typer.Option("1h", "-r", "--range", help="Time range (1h, 24h, 7d, 30d)."),
):
    """Show metrics history for a server."""
    state = _session(ctx)
    if range_ not in HISTORY_RANGES:
        console.err(f"Invalid range: {range_}. Use one of: {', '.join(HISTORY_RANGES)}.")
        raise typer.Exit(code=2)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        history = client.server_history(server.id, range_=range_)
    except VstatsClientError as e:
        raise _fail("get history", e)
    finally:
        client.close()

    def _table() -> None:
        console.rule(f"Metrics History for {escape(server.name)} (range: {escape(history.range or range_)})")
        if not history.data:
            console.info("No historical data available.")
            return
        table = Table()
        table.add_column("TIME", no_wrap=True)
        table.add_column("CPU", justify="right")
        table.add_column("MEM USED", justify="right")
        table.add_column("DISK USED", justify="right")
        for point in history.data:
            table.add_row(
                format_short_time(point.collected_at),
                format_float(point.cpu_usage),
                format_bytes(point.memory_used),
                format_bytes(point.disk_used),
            )
        console.console.print(table)

    state.renderer.render(history, table=_table)


@app.command("install")
def install_command(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
):
    """Show the agent installation command for a server."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        install = client.server_install_command(server.id)
    except VstatsClientError as e:
        raise _fail("get install command", e)
    finally:
        client.close()

    def _table() -> None:
        console.rule(f"Agent Installation for '{escape(server.name)}'")
        console.print("Run this command on your server:")
        console.print()
        console.print(f"  {install.command}", markup=False, soft_wrap=True)
        console.print()
        console.print(f"Agent Key: {install.agent_key}", markup=False)

    state.renderer.render(install, table=_table)


@app.command("key")
def agent_key(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Server id or name."),
        regenerate: bool = typer.Option(False, "--regenerate", help="Issue a new agent key."),
):
    """Show or regenerate the agent key of a server."""
    state = _session(ctx)
    client = make_client(state.cfg)
    try:
        server = _resolve(client, ref)
        if regenerate:
            key = client.server_regenerate_key(server.id).agent_key
        else:
            key = server.agent_key
    except VstatsClientError as e:
        raise _fail("regenerate agent key" if regenerate else "get agent key", e)
    finally:
        client.close()

    def _table() -> None:
        if regenerate:
            console.ok(f"New agent key for '{server.name}':")
        else:
            console.print(f"Agent key for '{escape(server.name)}':")
        console.print(f"  {key}", markup=False)
        if regenerate:
            console.print()
            console.warn("The old key is now invalid. Update your agent configuration.")

    state.renderer.render({"server_id": server.id, "agent_key": key}, table=_table)
