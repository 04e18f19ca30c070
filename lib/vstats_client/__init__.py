from .client import VstatsClient
from .errors import (
    ApiError,
    AuthError,
    AuthenticationRequiredError,
    DecodeError,
    DeploymentError,
    InvalidTokenError,
    NotFoundError,
    QuotaExceededError,
    SshNotFoundError,
    TransportError,
    VstatsClientError,
)

__all__ = [
    "VstatsClient",
    "ApiError",
    "AuthError",
    "AuthenticationRequiredError",
    "DecodeError",
    "DeploymentError",
    "InvalidTokenError",
    "NotFoundError",
    "QuotaExceededError",
    "SshNotFoundError",
    "TransportError",
    "VstatsClientError",
]
