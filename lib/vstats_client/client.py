from __future__ import annotations

from functools import partial
from typing import Any, Callable, TypeVar
from urllib.parse import quote, urlencode

import httpx

from .config_types import ClientConfig
from .errors import DecodeError
from .models import (
    AgentKey,
    CurrentUser,
    InstallCommand,
    MetricsHistory,
    Server,
    ServerMetrics,
    UserPlan,
    VerifyResult,
    WebInstance,
    WebInstanceStatus,
    decode_list,
    decode_metrics_envelope,
)
from .transport import Transport

T = TypeVar("T")


def _seg(value: str) -> str:
    return quote(str(value), safe="")


class VstatsClient:
    def __init__(self, cfg: ClientConfig, *, transport: httpx.BaseTransport | None = None):
        self._t = Transport(cfg, transport=transport)

    def _request(
            self,
            method: str,
            path: str,
            *,
            json_body: Any | None = None,
            decode: Callable[[Any], T] | None = None,
            allow_empty: bool = False,
    ) -> T | None:
        """Single request/decode primitive every typed operation goes through."""
        data = self._t.request(method, path, json_body=json_body)
        if decode is None:
            return None
        if data is None and not allow_empty:
            raise DecodeError(f"failed to parse response: {method} {path} returned an empty body")
        return decode(data)

    def close(self) -> None:
        self._t.close()

    def __enter__(self) -> "VstatsClient":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    # --- auth ---
    def verify_token(self) -> VerifyResult:
        return self._request("GET", "/api/auth/verify", decode=VerifyResult.from_dict)

    def me(self) -> CurrentUser:
        return self._request("GET", "/api/auth/me", decode=CurrentUser.from_dict)

    # --- servers ---
    def servers_list(self) -> list[Server]:
        return self._request("GET", "/api/servers", decode=partial(decode_list, Server), allow_empty=True)

    def server_create(self, name: str) -> Server:
        return self._request("POST", "/api/servers", json_body={"name": name}, decode=Server.from_dict)

    def server_get(self, server_id: str) -> Server:
        return self._request("GET", f"/api/servers/{_seg(server_id)}", decode=Server.from_dict)

    def server_update(self, server_id: str, *, name: str) -> Server:
        return self._request(
            "PUT",
            f"/api/servers/{_seg(server_id)}",
            json_body={"name": name},
            decode=Server.from_dict,
        )

    def server_delete(self, server_id: str) -> None:
        self._request("DELETE", f"/api/servers/{_seg(server_id)}")

    def server_regenerate_key(self, server_id: str) -> AgentKey:
        return self._request("POST", f"/api/servers/{_seg(server_id)}/regenerate-key", decode=AgentKey.from_dict)

    def server_install_command(self, server_id: str) -> InstallCommand:
        return self._request(
            "GET",
            f"/api/servers/{_seg(server_id)}/install-command",
            decode=InstallCommand.from_dict,
        )

    def server_metrics(self, server_id: str) -> ServerMetrics | None:
        return self._request("GET", f"/api/servers/{_seg(server_id)}/metrics", decode=decode_metrics_envelope)

    def server_history(self, server_id: str, *, range_: str | None = None) -> MetricsHistory:
        query = urlencode({"range": range_}) if range_ else ""
        path = f"/api/servers/{_seg(server_id)}/history" + (f"?{query}" if query else "")
        return self._request("GET", path, decode=MetricsHistory.from_dict)

    # --- web instances ---
    def web_instances_list(self) -> list[WebInstance]:
        return self._request(
            "GET",
            "/api/web/instances",
            decode=partial(decode_list, WebInstance),
            allow_empty=True,
        )

    def web_instance_get(self, instance_id: str) -> WebInstance:
        return self._request("GET", f"/api/web/instances/{_seg(instance_id)}", decode=WebInstance.from_dict)

    def web_instance_register(
            self,
            *,
            name: str,
            host: str,
            port: int,
            url: str,
            cloud_mode: bool = True,
            ssl_enabled: bool = False,
    ) -> WebInstance:
        body = {
            "name": name,
            "host": host,
            "port": int(port),
            "url": url,
            "cloud_mode": bool(cloud_mode),
            "ssl_enabled": bool(ssl_enabled),
        }
        return self._request("POST", "/api/web/instances", json_body=body, decode=WebInstance.from_dict)

    def web_instance_update(self, instance: WebInstance) -> None:
        self._request("PUT", f"/api/web/instances/{_seg(instance.id)}", json_body=instance.to_dict())

    def web_instance_remove(self, instance_id: str) -> None:
        self._request("DELETE", f"/api/web/instances/{_seg(instance_id)}")

    def web_instance_check(self, instance_id: str) -> WebInstanceStatus:
        return self._request(
            "GET",
            f"/api/web/instances/{_seg(instance_id)}/check",
            decode=WebInstanceStatus.from_dict,
        )

    # --- account ---
    def user_plan(self) -> UserPlan:
        return self._request("GET", "/api/user/plan", decode=UserPlan.from_dict)
