from __future__ import annotations

from dataclasses import dataclass

import typer
from vstats_client import AuthenticationRequiredError

from . import console
from .auth_state import require_session
from .config import AppConfig
from .output import Renderer


@dataclass
class CliState:
    cfg: AppConfig
    config_path: str
    renderer: Renderer


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.find_root().obj
    if not isinstance(state, CliState):
        raise RuntimeError("CLI state is not initialised")
    return state


def require_login(state: CliState) -> None:
    try:
        require_session(state.cfg)
    except AuthenticationRequiredError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
