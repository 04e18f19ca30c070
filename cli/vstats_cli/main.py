from __future__ import annotations

import logging
import tomllib

import typer

from . import console
from .commands import auth_cmd, config_cmd
from .commands.server_cmd import app as server_app
from .commands.ssh_cmd import app as ssh_app
from .commands.web_cmd import app as web_app
from .config import config_path, default_config, load_config, normalize_base_url
from .logging_ import setup_logging
from .output import OutputFormat, make_renderer
from .state import CliState
from .version import cli_version

logger = logging.getLogger(__name__)


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="vstats",
        help="vStats Cloud CLI: manage monitored servers and web dashboards.",
        no_args_is_help=True,
    )

    app.command("login")(auth_cmd.login)
    app.command("logout")(auth_cmd.logout)
    app.command("whoami")(auth_cmd.whoami)

    app.add_typer(server_app, name="server")
    app.add_typer(server_app, name="servers", hidden=True)
    app.add_typer(server_app, name="srv", hidden=True)
    app.add_typer(ssh_app, name="ssh")
    app.add_typer(web_app, name="web")
    app.add_typer(config_cmd.app, name="config")

    @app.command("version")
    def version():
        """Print the CLI version."""
        console.print(f"vstats {cli_version()}", markup=False, highlight=False)

    @app.callback()
    def _main(
            ctx: typer.Context,
            config: str | None = typer.Option(None, "--config", help="Config file path."),
            output: OutputFormat = typer.Option(
                OutputFormat.table,
                "-o",
                "--output",
                case_sensitive=False,
                help="Output format.",
            ),
            cloud_url: str | None = typer.Option(None, "--cloud-url", help="Override the vStats Cloud URL."),
            no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)
        console.configure(no_color=no_color)

        path = config or config_path()
        try:
            cfg = load_config(path)
        except (OSError, tomllib.TOMLDecodeError) as e:
            console.warn(f"Failed to read config {path}: {e}; using defaults")
            cfg = default_config()

        if cloud_url:
            cfg.cloud_url = normalize_base_url(cloud_url, warn=True)
        logger.debug("config %s, cloud_url %s", path, cfg.cloud_url)

        ctx.obj = CliState(cfg=cfg, config_path=path, renderer=make_renderer(output))

    return app


app = _build_app()
