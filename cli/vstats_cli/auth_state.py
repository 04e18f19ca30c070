from __future__ import annotations

import time
from typing import Callable

from vstats_client import AuthenticationRequiredError, InvalidTokenError, VstatsClient
from vstats_client.models import VerifyResult

from .config import AppConfig, save_config
from .http import make_client

# verify does not return an expiry; tokens are issued for a week
SESSION_TTL_S = 7 * 24 * 60 * 60


def require_session(cfg: AppConfig) -> None:
    if not cfg.is_logged_in():
        raise AuthenticationRequiredError()


def login(
        cfg: AppConfig,
        token: str,
        *,
        path: str | None = None,
        client_factory: Callable[..., VstatsClient] = make_client,
        now: Callable[[], float] = time.time,
) -> VerifyResult:
    """Verify ``token`` against the cloud and persist it as the active session.

    Nothing is written unless the cloud reports the token as valid.
    """
    token = (token or "").strip()
    if not token:
        raise InvalidTokenError("token is required")

    client = client_factory(cfg, token_override=token)
    try:
        result = client.verify_token()
    finally:
        client.close()
    if not result.valid:
        raise InvalidTokenError()

    cfg.auth.token = token
    cfg.auth.username = result.username
    cfg.auth.expires_at = int(now()) + SESSION_TTL_S
    save_config(cfg, path)
    return result


def logout(cfg: AppConfig, *, path: str | None = None) -> str | None:
    """Clear the session; returns the previous username, or None if nobody was logged in."""
    if not cfg.is_logged_in():
        return None
    username = cfg.auth.username
    cfg.clear_session()
    save_config(cfg, path)
    return username
