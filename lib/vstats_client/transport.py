from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import ApiError, AuthError, DecodeError, TransportError
from .config_types import ClientConfig

logger = logging.getLogger(__name__)


class Transport:
    def __init__(self, cfg: ClientConfig, *, transport: httpx.BaseTransport | None = None):
        self._cfg = cfg
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"vstats-cli/{cfg.client_version or '0.0.0'}",
        }
        if cfg.token:
            headers["Authorization"] = f"Bearer {cfg.token}"

        self._client = httpx.Client(
            base_url=cfg.base_url.rstrip("/"),
            timeout=cfg.timeout_s,
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def request(self, method: str, path: str, *, json_body: Any | None = None) -> Any:
        try:
            r = self._client.request(method, path, json=json_body)
        except httpx.RequestError as e:
            raise TransportError(f"request failed: {e}") from e
        logger.debug("%s %s -> %s", method, path, r.status_code)

        if r.status_code >= 400:
            data: Any = None
            try:
                data = r.json()
            except ValueError:
                data = None

            if isinstance(data, dict) and data.get("error"):
                msg = f"API error: {data['error']}"
                details = str(data.get("message") or "") or None
                if details:
                    msg = f"{msg} ({details})"
            else:
                msg = f"request failed with status {r.status_code}: {r.text}"
                details = r.text[:1000] or None

            if r.status_code in (401, 403):
                raise AuthError(r.status_code, msg, details)
            raise ApiError(r.status_code, msg, details)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise DecodeError(f"failed to parse response: {e}") from e
