from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir
from vstats_client.config_types import DEFAULT_CLOUD_URL

from . import console

APP_NAME = "vstats"
CONFIG_FILENAME = "config.toml"
SETTABLE_KEYS = ("cloud_url",)

_WARNED_BASE_URL_SCHEME = False


@dataclass
class AuthConfig:
    token: str = ""
    username: str = ""
    expires_at: int = 0


@dataclass
class AppConfig:
    cloud_url: str = DEFAULT_CLOUD_URL
    auth: AuthConfig = field(default_factory=AuthConfig)

    def is_logged_in(self) -> bool:
        return bool((self.auth.token or "").strip())

    def clear_session(self) -> None:
        self.auth = AuthConfig()


def config_path() -> str:
    return os.path.join(user_config_dir(APP_NAME), CONFIG_FILENAME)


def default_config() -> AppConfig:
    return AppConfig(cloud_url=DEFAULT_CLOUD_URL, auth=AuthConfig())


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    console.warn(f"cloud_url missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return {
        "cloud_url": cfg.cloud_url,
        "auth": {
            "token": cfg.auth.token,
            "username": cfg.auth.username,
            "expires_at": int(cfg.auth.expires_at or 0),
        },
    }


def from_toml(data: dict[str, Any]) -> AppConfig:
    cloud_url = normalize_base_url(str(data.get("cloud_url") or ""), warn=True)
    auth_raw = data.get("auth") or {}
    token = ""
    username = ""
    expires_at = 0
    if isinstance(auth_raw, dict):
        token = str(auth_raw.get("token") or "")
        username = str(auth_raw.get("username") or "")
        try:
            expires_at = int(auth_raw.get("expires_at") or 0)
        except (TypeError, ValueError):
            expires_at = 0
    return AppConfig(
        cloud_url=cloud_url or DEFAULT_CLOUD_URL,
        auth=AuthConfig(token=token, username=username, expires_at=expires_at),
    )


def load_config(path: str | None = None) -> AppConfig:
    path = path or config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def set_config_value(cfg: AppConfig, key: str, value: str) -> None:
    if key == "cloud_url":
        normalized = normalize_base_url(value, warn=True)
        if not normalized:
            raise ValueError("cloud_url cannot be empty")
        cfg.cloud_url = normalized
        return
    raise ValueError(f"unknown configuration key: {key}")


def ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, mode=0o700, exist_ok=True)
    os.chmod(parent, 0o700)


def save_config(cfg: AppConfig, path: str | None = None) -> str:
    path = path or config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path
