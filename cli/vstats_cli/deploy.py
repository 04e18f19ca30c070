from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from vstats_client import DeploymentError, QuotaExceededError, VstatsClientError
from vstats_client.config_types import DEFAULT_CLOUD_URL
from vstats_client.models import Server, UserPlan, WebInstance
from vstats_client.resolve import find_server_by_name_or_id

from .auth_state import require_session
from .config import AppConfig
from .ssh import SshTarget, build_ssh_args, resolve_target, run_ssh_command

logger = logging.getLogger(__name__)

AGENT_INSTALL_SCRIPT_URL = "https://vstats.zsoft.cc/agent.sh"
WEB_INSTALL_SCRIPT_URL = "https://vstats.zsoft.cc/install.sh"
PRICING_URL = "https://vstats.zsoft.cc/pricing"
DEFAULT_WEB_PORT = 3001

T = TypeVar("T")

SshRunner = Callable[[list[str], str], None]


def build_web_url(host: str, port: int, domain: str, ssl: bool) -> str:
    scheme = "https" if ssl else "http"
    if domain:
        default_port = 443 if ssl else 80
        if port == default_port:
            return f"{scheme}://{domain}"
        return f"{scheme}://{domain}:{port}"
    if port in (80, 443):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def build_agent_install_command(cloud_url: str, token: str, server_name: str) -> str:
    return (
        f"curl -fsSL {AGENT_INSTALL_SCRIPT_URL} | sudo bash -s -- "
        f'--server "{cloud_url}" --token "{token}" --name "{server_name}"'
    )


def build_web_install_command(cloud_url: str, token: str, port: int, *, domain: str = "", ssl: bool = False) -> str:
    cmd = (
        f"curl -fsSL {WEB_INSTALL_SCRIPT_URL} | sudo bash -s -- "
        f'--cloud-mode --cloud-url "{cloud_url}" --cloud-token "{token}" --port {port}'
    )
    if ssl and domain:
        cmd += f' --ssl --domain "{domain}"'
    return cmd


def best_effort(label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
    """Run a follow-up API call whose failure must not change the outcome of the workflow."""
    try:
        return fn(*args, **kwargs)
    except VstatsClientError as e:
        logger.warning("%s failed (ignored): %s", label, e)
        return None


@dataclass
class AgentDeployment:
    server: Server
    target: SshTarget
    created: bool


@dataclass
class WebDeployment:
    instance: WebInstance
    target: SshTarget
    plan: UserPlan


class Deployer:
    def __init__(
            self,
            client,
            cfg: AppConfig,
            *,
            runner: SshRunner = run_ssh_command,
            on_status: Callable[[str], None] | None = None,
    ):
        self._client = client
        self._cfg = cfg
        self._runner = runner
        self._on_status = on_status

    def _status(self, msg: str) -> None:
        if self._on_status:
            self._on_status(msg)

    @property
    def cloud_url(self) -> str:
        return self._cfg.cloud_url or DEFAULT_CLOUD_URL

    def deploy_agent(
            self,
            host_arg: str,
            *,
            user: str | None = None,
            port: int | None = None,
            key_path: str | None = None,
            name: str | None = None,
            server_ref: str | None = None,
    ) -> AgentDeployment:
        require_session(self._cfg)
        target = resolve_target(host_arg, user=user, port=port, key_path=key_path)
        server_name = name or target.host

        if server_ref:
            server = find_server_by_name_or_id(self._client, server_ref)
            server_name = server.name
            created = False
            self._status(f"Using existing server: {server.name}")
        else:
            self._status(f"Creating server '{server_name}'...")
            server = self._client.server_create(server_name)
            created = True
            self._status(f"Server created: {server.id}")

        install_cmd = build_agent_install_command(self.cloud_url, self._cfg.auth.token, server_name)
        self._status(f"Connecting to {host_arg}...")
        # a failed install leaves the created server in place; it can be reused with --server
        self._runner(build_ssh_args(target), install_cmd)
        return AgentDeployment(server=server, target=target, created=created)

    def deploy_web(
            self,
            host_arg: str,
            *,
            user: str | None = None,
            port: int | None = None,
            key_path: str | None = None,
            name: str | None = None,
            web_port: int | None = None,
            domain: str | None = None,
            ssl: bool = False,
    ) -> WebDeployment:
        require_session(self._cfg)
        plan = self._client.user_plan()
        existing = self._client.web_instances_list()
        if plan.at_capacity(len(existing)):
            raise QuotaExceededError(plan)

        target = resolve_target(host_arg, user=user, port=port, key_path=key_path)
        web_name = name or f"web-{target.host}"
        web_port = web_port or DEFAULT_WEB_PORT
        domain = domain or ""

        self._status(f"Registering web dashboard '{web_name}'...")
        instance = self._client.web_instance_register(
            name=web_name,
            host=target.host,
            port=web_port,
            url=build_web_url(target.host, web_port, domain, ssl),
            cloud_mode=True,
            ssl_enabled=ssl,
        )

        install_cmd = build_web_install_command(
            self.cloud_url,
            self._cfg.auth.token,
            web_port,
            domain=domain,
            ssl=ssl,
        )
        self._status(f"Connecting to {host_arg}...")
        try:
            self._runner(build_ssh_args(target), install_cmd)
        except DeploymentError:
            best_effort("remove web instance", self._client.web_instance_remove, instance.id)
            raise

        instance.status = "online"
        best_effort("update web instance status", self._client.web_instance_update, instance)
        return WebDeployment(instance=instance, target=target, plan=plan)
