from __future__ import annotations
from dataclasses import dataclass

DEFAULT_CLOUD_URL = "https://api.vstats.zsoft.cc"


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = DEFAULT_CLOUD_URL
    token: str | None = None
    timeout_s: float = 30.0
    client_version: str | None = None
