from __future__ import annotations

from vstats_client import VstatsClient
from vstats_client.config_types import DEFAULT_CLOUD_URL, ClientConfig

from .config import AppConfig, normalize_base_url
from .version import cli_version


def make_client(
    cfg: AppConfig,
    *,
    base_url_override: str | None = None,
    token_override: str | None = None,
) -> VstatsClient:
    base_url = normalize_base_url(base_url_override or cfg.cloud_url) or DEFAULT_CLOUD_URL
    token = token_override if token_override is not None else cfg.auth.token
    return VstatsClient(
        ClientConfig(
            base_url=base_url,
            token=token or None,
            client_version=cli_version(),
        )
    )
