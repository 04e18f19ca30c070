from __future__ import annotations


class VstatsClientError(Exception):
    """Base client error."""


class TransportError(VstatsClientError):
    """Transport/network layer error."""


class DecodeError(VstatsClientError):
    """Response body does not match the expected shape."""


class ApiError(VstatsClientError):
    def __init__(self, status_code: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthError(ApiError):
    """Auth-related API error."""


class AuthenticationRequiredError(VstatsClientError):
    def __init__(self, message: str = "not logged in. Run 'vstats login' first"):
        super().__init__(message)


class InvalidTokenError(VstatsClientError):
    def __init__(self, message: str = "invalid token"):
        super().__init__(message)


class NotFoundError(VstatsClientError):
    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} not found: {ref}")
        self.kind = kind
        self.ref = ref


class QuotaExceededError(VstatsClientError):
    def __init__(self, plan, message: str = "web instance limit reached"):
        super().__init__(message)
        self.plan = plan


class DeploymentError(VstatsClientError):
    """Remote installation over SSH failed."""


class SshNotFoundError(DeploymentError):
    def __init__(self, message: str = "ssh not found in PATH. Please install OpenSSH"):
        super().__init__(message)
