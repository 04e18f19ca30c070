from __future__ import annotations

import json

import httpx
import pytest

from vstats_client import ApiError, AuthError, DecodeError, TransportError, VstatsClient
from vstats_client.config_types import ClientConfig


def _client(handler, *, token: str | None = "tok") -> VstatsClient:
    cfg = ClientConfig(base_url="https://api.example", token=token, client_version="1.2.3")
    return VstatsClient(cfg, transport=httpx.MockTransport(handler))


def test_requests_carry_json_and_auth_headers() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["req"] = request
        return httpx.Response(200, json={"valid": True, "user_id": "u1", "username": "alice", "plan": "free"})

    client = _client(handler)
    result = client.verify_token()
    client.close()

    req = seen["req"]
    assert req.url.path == "/api/auth/verify"
    assert req.headers["Authorization"] == "Bearer tok"
    assert req.headers["User-Agent"] == "vstats-cli/1.2.3"
    assert req.headers["Accept"] == "application/json"
    assert result.valid is True
    assert result.username == "alice"


def test_no_authorization_header_without_token() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["req"] = request
        return httpx.Response(200, json=[])

    client = _client(handler, token=None)
    assert client.servers_list() == []
    assert "Authorization" not in seen["req"].headers


def test_structured_error_payload_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "bad_request", "message": "name is required"})

    client = _client(handler)
    with pytest.raises(ApiError) as exc:
        client.server_create("")

    assert exc.value.status_code == 400
    assert str(exc.value) == "API error: bad_request (name is required)"
    assert exc.value.details == "name is required"


def test_unstructured_error_keeps_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="upstream down")

    client = _client(handler)
    with pytest.raises(ApiError) as exc:
        client.servers_list()

    assert exc.value.status_code == 502
    assert "502" in str(exc.value)
    assert "upstream down" in str(exc.value)


def test_unauthorized_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "unauthorized"})

    client = _client(handler)
    with pytest.raises(AuthError) as exc:
        client.me()
    assert exc.value.status_code == 401


def test_malformed_body_raises_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    client = _client(handler)
    with pytest.raises(DecodeError):
        client.user_plan()


def test_wrong_shape_raises_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "no-id"})

    client = _client(handler)
    with pytest.raises(DecodeError):
        client.server_get("s1")


def test_connection_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(TransportError):
        client.servers_list()


def test_history_range_query_is_omitted_when_empty() -> None:
    urls: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url)
        return httpx.Response(200, json={"server_id": "s1", "range": "1h", "data": []})

    client = _client(handler)
    client.server_history("s1")
    client.server_history("s1", range_="24h")

    assert urls[0].path == "/api/servers/s1/history"
    assert "range" not in urls[0].params
    assert urls[1].params["range"] == "24h"


def test_metrics_unwraps_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/metrics"):
            return httpx.Response(200, json={"metrics": {"cpu_usage": 12.5, "memory_total": 200, "memory_used": 50}})
        return httpx.Response(404, json={"error": "not_found"})

    client = _client(handler)
    metrics = client.server_metrics("s1")
    assert metrics is not None
    assert metrics.cpu_usage == 12.5
    assert metrics.memory_percent() == 25.0


def test_metrics_envelope_without_metrics_is_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"metrics": None})

    assert _client(handler).server_metrics("s1") is None


def test_web_register_sends_cloud_mode_body() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": "w1", "name": "web-h", "port": 3001, "url": "http://h:3001"})

    client = _client(handler)
    inst = client.web_instance_register(name="web-h", host="h", port=3001, url="http://h:3001", ssl_enabled=False)

    assert bodies == [
        {"name": "web-h", "host": "h", "port": 3001, "url": "http://h:3001", "cloud_mode": True, "ssl_enabled": False}
    ]
    assert inst.id == "w1"


def test_delete_accepts_empty_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        return httpx.Response(204)

    assert _client(handler).server_delete("s1") is None


def test_list_endpoints_reject_non_list_bodies() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    client = _client(handler)
    with pytest.raises(DecodeError):
        client.servers_list()
    with pytest.raises(DecodeError):
        client.web_instances_list()


def test_list_endpoints_accept_empty_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    client = _client(handler)
    assert client.servers_list() == []
    assert client.web_instances_list() == []


def test_metrics_requires_envelope_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2])

    with pytest.raises(DecodeError):
        _client(handler).server_metrics("s1")


def test_metrics_empty_body_is_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    with pytest.raises(DecodeError):
        _client(handler).server_metrics("s1")
