from __future__ import annotations

import pytest

from vstats_client import (
    ApiError,
    AuthenticationRequiredError,
    DeploymentError,
    QuotaExceededError,
    TransportError,
)
from vstats_client.models import Server, UserPlan, WebInstance
from vstats_cli.config import AppConfig, AuthConfig
from vstats_cli.deploy import (
    Deployer,
    best_effort,
    build_agent_install_command,
    build_web_install_command,
)


def _cfg() -> AppConfig:
    return AppConfig(cloud_url="https://cloud.example", auth=AuthConfig(token="tok-123", username="alice"))


class _FakeClient:
    def __init__(
            self,
            *,
            plan: UserPlan | None = None,
            instances: list[WebInstance] | None = None,
            remove_error: Exception | None = None,
            update_error: Exception | None = None,
    ):
        self.plan = plan or UserPlan(plan="pro", max_web_apps=-1, current_count=0, is_pro=True)
        self.instances = instances or []
        self.remove_error = remove_error
        self.update_error = update_error
        self.registered: list[dict] = []
        self.removed: list[str] = []
        self.updated: list[WebInstance] = []
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.servers = [Server(id="s-existing", name="box", agent_key="key-existing")]

    def user_plan(self) -> UserPlan:
        return self.plan

    def web_instances_list(self) -> list[WebInstance]:
        return list(self.instances)

    def web_instance_register(self, **kwargs) -> WebInstance:
        self.registered.append(kwargs)
        return WebInstance(
            id="w-new",
            name=kwargs["name"],
            host=kwargs["host"],
            port=kwargs["port"],
            url=kwargs["url"],
            status="pending",
            cloud_mode=kwargs["cloud_mode"],
            ssl_enabled=kwargs["ssl_enabled"],
        )

    def web_instance_remove(self, instance_id: str) -> None:
        self.removed.append(instance_id)
        if self.remove_error:
            raise self.remove_error

    def web_instance_update(self, instance: WebInstance) -> None:
        self.updated.append(instance)
        if self.update_error:
            raise self.update_error

    def server_create(self, name: str) -> Server:
        self.created.append(name)
        return Server(id="s-new", name=name, agent_key="key-new")

    def server_delete(self, server_id: str) -> None:
        self.deleted.append(server_id)

    def server_get(self, server_id: str) -> Server:
        for s in self.servers:
            if s.id == server_id:
                return s
        raise ApiError(404, "API error: not_found")

    def servers_list(self) -> list[Server]:
        return list(self.servers)


class _Runner:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[list[str], str]] = []

    def __call__(self, ssh_args: list[str], command: str) -> None:
        self.calls.append((ssh_args, command))
        if self.error:
            raise self.error


def test_quota_preflight_blocks_registration() -> None:
    client = _FakeClient(
        plan=UserPlan(plan="free", max_web_apps=1, current_count=1, is_pro=False),
        instances=[WebInstance(id="w1", name="web-a")],
    )
    runner = _Runner()

    with pytest.raises(QuotaExceededError) as exc:
        Deployer(client, _cfg(), runner=runner).deploy_web("host")

    assert exc.value.plan.max_web_apps == 1
    assert client.registered == []
    assert runner.calls == []


def test_quota_counts_listed_instances_when_plan_count_lags() -> None:
    client = _FakeClient(
        plan=UserPlan(plan="free", max_web_apps=1, current_count=0, is_pro=False),
        instances=[WebInstance(id="w1", name="web-a")],
    )

    with pytest.raises(QuotaExceededError):
        Deployer(client, _cfg(), runner=_Runner()).deploy_web("host")
    assert client.registered == []


def test_negative_limit_is_unlimited() -> None:
    client = _FakeClient(plan=UserPlan(plan="free", max_web_apps=-1, current_count=5, is_pro=False))

    result = Deployer(client, _cfg(), runner=_Runner()).deploy_web("host")

    assert result.instance.id == "w-new"


def test_failed_web_install_removes_registration_once() -> None:
    client = _FakeClient()
    runner = _Runner(DeploymentError("deployment failed: ssh exited with status 1"))

    with pytest.raises(DeploymentError):
        Deployer(client, _cfg(), runner=runner).deploy_web("root@host")

    assert client.removed == ["w-new"]
    assert client.updated == []


def test_cleanup_failure_does_not_mask_deployment_error() -> None:
    client = _FakeClient(remove_error=TransportError("request failed: down"))
    runner = _Runner(DeploymentError("deployment failed: ssh exited with status 255"))

    with pytest.raises(DeploymentError) as exc:
        Deployer(client, _cfg(), runner=runner).deploy_web("host")

    assert "status 255" in str(exc.value)
    assert client.removed == ["w-new"]


def test_successful_web_deploy_marks_instance_online() -> None:
    client = _FakeClient()
    runner = _Runner()

    result = Deployer(client, _cfg(), runner=runner).deploy_web(
        "admin@10.0.0.5",
        port=2222,
        key_path="/keys/id",
        web_port=8080,
        domain="dash.example.com",
        ssl=True,
    )

    assert result.instance.status == "online"
    assert [i.id for i in client.updated] == ["w-new"]
    assert client.removed == []

    reg = client.registered[0]
    assert reg["name"] == "web-10.0.0.5"
    assert reg["host"] == "10.0.0.5"
    assert reg["port"] == 8080
    assert reg["url"] == "https://dash.example.com:8080"
    assert reg["cloud_mode"] is True
    assert reg["ssl_enabled"] is True

    ssh_args, command = runner.calls[0]
    assert ssh_args == ["-p", "2222", "-i", "/keys/id", "admin@10.0.0.5"]
    assert '--cloud-url "https://cloud.example"' in command
    assert '--cloud-token "tok-123"' in command
    assert "--port 8080" in command
    assert '--ssl --domain "dash.example.com"' in command


def test_status_update_failure_is_ignored() -> None:
    client = _FakeClient(update_error=ApiError(500, "API error: internal"))

    result = Deployer(client, _cfg(), runner=_Runner()).deploy_web("host")

    assert result.instance.status == "online"
    assert len(client.updated) == 1


def test_web_deploy_requires_session() -> None:
    client = _FakeClient()
    cfg = AppConfig(cloud_url="https://cloud.example")

    with pytest.raises(AuthenticationRequiredError):
        Deployer(client, cfg, runner=_Runner()).deploy_web("host")
    assert client.registered == []


def test_agent_deploy_creates_server_named_after_host() -> None:
    client = _FakeClient()
    runner = _Runner()

    result = Deployer(client, _cfg(), runner=runner).deploy_agent("10.0.0.7")

    assert client.created == ["10.0.0.7"]
    assert result.created is True
    assert result.server.id == "s-new"
    ssh_args, command = runner.calls[0]
    assert ssh_args == ["root@10.0.0.7"]
    assert command == build_agent_install_command("https://cloud.example", "tok-123", "10.0.0.7")


def test_agent_deploy_reuses_existing_server() -> None:
    client = _FakeClient()

    result = Deployer(client, _cfg(), runner=_Runner()).deploy_agent("host", server_ref="box")

    assert client.created == []
    assert result.created is False
    assert result.server.id == "s-existing"


def test_agent_reusing_server_installs_under_its_name() -> None:
    client = _FakeClient()
    client.servers = [Server(id="s-1", name="prod-db", agent_key="k")]
    runner = _Runner()

    Deployer(client, _cfg(), runner=runner).deploy_agent("10.0.0.9", server_ref="s-1", name="ignored")

    _, command = runner.calls[0]
    assert '--name "prod-db"' in command
    assert "10.0.0.9" not in command
    assert "ignored" not in command


def test_agent_deploy_failure_keeps_created_server() -> None:
    # known behavior: the agent path does not roll back the server it created
    client = _FakeClient()
    runner = _Runner(DeploymentError("deployment failed: ssh exited with status 1"))

    with pytest.raises(DeploymentError):
        Deployer(client, _cfg(), runner=runner).deploy_agent("host", name="db-1")

    assert client.created == ["db-1"]
    assert client.deleted == []


def test_status_callback_receives_progress() -> None:
    messages: list[str] = []

    Deployer(_FakeClient(), _cfg(), runner=_Runner(), on_status=messages.append).deploy_agent("host")

    assert any("Creating server" in m for m in messages)
    assert any("Connecting to host" in m for m in messages)


def test_install_commands() -> None:
    assert build_agent_install_command("https://c", "t", "n") == (
        'curl -fsSL https://vstats.zsoft.cc/agent.sh | sudo bash -s -- --server "https://c" --token "t" --name "n"'
    )
    assert build_web_install_command("https://c", "t", 3001) == (
        "curl -fsSL https://vstats.zsoft.cc/install.sh | sudo bash -s -- "
        '--cloud-mode --cloud-url "https://c" --cloud-token "t" --port 3001'
    )
    # --ssl without a domain is not forwarded
    assert "--ssl" not in build_web_install_command("https://c", "t", 443, ssl=True)


def test_best_effort_returns_none_on_client_error() -> None:
    def _boom() -> None:
        raise ApiError(500, "API error: internal")

    assert best_effort("boom", _boom) is None
    assert best_effort("ok", lambda x: x + 1, 1) == 2


def test_best_effort_does_not_hide_programming_errors() -> None:
    def _bug() -> None:
        raise KeyError("x")

    with pytest.raises(KeyError):
        best_effort("bug", _bug)


def test_plan_capacity_rules() -> None:
    free = UserPlan(plan="free", max_web_apps=1, current_count=1, is_pro=False)

    assert free.at_capacity() is True
    assert UserPlan(plan="free", max_web_apps=2, current_count=1).at_capacity() is False
    assert UserPlan(plan="free", max_web_apps=2, current_count=1).at_capacity(2) is True
    assert UserPlan(plan="pro", max_web_apps=1, current_count=5, is_pro=True).at_capacity(5) is False
    assert UserPlan(plan="free", max_web_apps=-1, current_count=9).at_capacity(9) is False
