from __future__ import annotations

import typer
from rich.markup import escape
from rich.panel import Panel
from vstats_client import DeploymentError, QuotaExceededError, VstatsClientError

from .. import console
from ..deploy import DEFAULT_WEB_PORT, PRICING_URL, Deployer
from ..formatting import format_limit
from ..http import make_client
from ..ssh import run_ssh_command
from ..state import get_state, require_login

app = typer.Typer(help="Deploy the agent or the web dashboard to a host over SSH.")


def _quota_panel(e: QuotaExceededError) -> None:
    plan = e.plan
    body = "\n".join(
        [
            f"Your plan: {escape(plan.plan or '-')}",
            f"Web instances: {plan.current_count} / {format_limit(plan.max_web_apps)}",
            "",
            "Upgrade to Pro for unlimited web instances:",
            f"  {PRICING_URL}",
        ]
    )
    console.print(Panel(body, title="Web Instance Limit Reached", border_style="yellow", expand=False))


@app.command("agent")
def deploy_agent(
        ctx: typer.Context,
        host: str = typer.Argument(..., help="Target host, as host or user@host."),
        user: str | None = typer.Option(None, "-u", "--user", help="SSH user (default: root)."),
        port: int | None = typer.Option(None, "-p", "--port", help="SSH port."),
        key: str | None = typer.Option(None, "-i", "--key", help="SSH private key file."),
        name: str | None = typer.Option(None, "--name", help="Server name (default: host)."),
        server: str | None = typer.Option(None, "--server", help="Existing server id or name to reuse."),
):
    """Install the monitoring agent on a remote host."""
    state = get_state(ctx)
    require_login(state)

    client = make_client(state.cfg)
    deployer = Deployer(client, state.cfg, runner=run_ssh_command, on_status=console.info)
    try:
        result = deployer.deploy_agent(
            host,
            user=user,
            port=port,
            key_path=key,
            name=name,
            server_ref=server,
        )
    except DeploymentError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
    except VstatsClientError as e:
        console.err(f"Failed to deploy agent: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    def _table() -> None:
        srv = result.server
        body = "\n".join(
            [
                f"Server ID:  {escape(srv.id)}",
                f"Agent Key:  {escape(srv.agent_key or '-')}",
                "",
                "View metrics:",
                f"  vstats server metrics {escape(srv.name)}",
            ]
        )
        console.print(Panel(body, title="Agent Deployed Successfully!", border_style="green", expand=False))

    state.renderer.render(result.server, table=_table)


@app.command("web")
def deploy_web(
        ctx: typer.Context,
        host: str = typer.Argument(..., help="Target host, as host or user@host."),
        user: str | None = typer.Option(None, "-u", "--user", help="SSH user (default: root)."),
        port: int | None = typer.Option(None, "-p", "--port", help="SSH port."),
        key: str | None = typer.Option(None, "-i", "--key", help="SSH private key file."),
        name: str | None = typer.Option(None, "--name", help="Instance name (default: web-<host>)."),
        web_port: int = typer.Option(DEFAULT_WEB_PORT, "--web-port", help="Dashboard port."),
        domain: str | None = typer.Option(None, "--domain", help="Public domain for the dashboard."),
        ssl: bool = typer.Option(False, "--ssl", help="Serve the dashboard over HTTPS (requires --domain)."),
):
    """Install the web dashboard on a remote host in cloud mode."""
    state = get_state(ctx)
    require_login(state)

    client = make_client(state.cfg)
    deployer = Deployer(client, state.cfg, runner=run_ssh_command, on_status=console.info)
    try:
        result = deployer.deploy_web(
            host,
            user=user,
            port=port,
            key_path=key,
            name=name,
            web_port=web_port,
            domain=domain,
            ssl=ssl,
        )
    except QuotaExceededError as e:
        _quota_panel(e)
        raise typer.Exit(code=2)
    except DeploymentError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
    except VstatsClientError as e:
        console.err(f"Failed to deploy web dashboard: {e}")
        raise typer.Exit(code=2)
    finally:
        client.close()

    def _table() -> None:
        inst = result.instance
        body = "\n".join(
            [
                f"Name:        {escape(inst.name)}",
                f"Instance ID: {escape(inst.id)}",
                f"URL:         {escape(inst.url)}",
                "",
                "The dashboard is connected to vStats Cloud",
                "and will display all your monitored servers.",
            ]
        )
        console.print(Panel(body, title="Web Dashboard Deployed Successfully!", border_style="green", expand=False))

    state.renderer.render(result.instance, table=_table)
