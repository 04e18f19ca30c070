from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, TypeVar

from .errors import DecodeError

T = TypeVar("T")


def _expect_dict(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"failed to parse response: expected {kind} object, got {type(data).__name__}")
    return data


def _id(data: dict[str, Any], kind: str) -> str:
    value = data.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int)) or str(value) == "":
        raise DecodeError(f"failed to parse response: {kind} has no id")
    return str(value)


def _str(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise DecodeError(f"failed to parse response: '{key}' must be a string")
    return value


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    if data.get(key) is None:
        return None
    return _str(data, key)


def _opt_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"failed to parse response: '{key}' must be an integer")
    return value


def _int(data: dict[str, Any], key: str, default: int = 0) -> int:
    value = _opt_int(data, key)
    return default if value is None else value


def _opt_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"failed to parse response: '{key}' must be a number")
    return float(value)


def _bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"failed to parse response: '{key}' must be a boolean")
    return value


def _opt_time(data: dict[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"failed to parse response: '{key}' must be a timestamp")
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise DecodeError(f"failed to parse response: bad timestamp in '{key}': {value}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def decode_list(model: type[T], data: Any) -> list[T]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(f"failed to parse response: expected a list, got {type(data).__name__}")
    return [model.from_dict(item) for item in data]  # type: ignore[attr-defined]


class _Model:
    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))  # type: ignore[call-overload]


@dataclass
class User(_Model):
    id: str
    username: str
    plan: str = ""
    server_limit: int = 0
    status: str = ""
    email: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "User":
        d = _expect_dict(data, "user")
        return cls(
            id=_id(d, "user"),
            username=_str(d, "username"),
            plan=_str(d, "plan"),
            server_limit=_int(d, "server_limit"),
            status=_str(d, "status"),
            email=_opt_str(d, "email"),
            avatar_url=_opt_str(d, "avatar_url"),
        )


@dataclass
class CurrentUser(_Model):
    user: User
    server_count: int = 0
    server_limit: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "CurrentUser":
        d = _expect_dict(data, "current user")
        return cls(
            user=User.from_dict(d.get("user")),
            server_count=_int(d, "server_count"),
            server_limit=_int(d, "server_limit"),
        )


@dataclass
class VerifyResult(_Model):
    valid: bool
    user_id: str = ""
    username: str = ""
    plan: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "VerifyResult":
        d = _expect_dict(data, "verify")
        return cls(
            valid=_bool(d, "valid"),
            user_id=_str(d, "user_id"),
            username=_str(d, "username"),
            plan=_str(d, "plan"),
        )


@dataclass
class ServerMetrics(_Model):
    cpu_usage: float | None = None
    cpu_cores: int | None = None
    load_avg_1: float | None = None
    load_avg_5: float | None = None
    load_avg_15: float | None = None
    memory_total: int | None = None
    memory_used: int | None = None
    memory_free: int | None = None
    disk_total: int | None = None
    disk_used: int | None = None
    disk_free: int | None = None
    process_count: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ServerMetrics":
        d = _expect_dict(data, "metrics")
        return cls(
            cpu_usage=_opt_float(d, "cpu_usage"),
            cpu_cores=_opt_int(d, "cpu_cores"),
            load_avg_1=_opt_float(d, "load_avg_1"),
            load_avg_5=_opt_float(d, "load_avg_5"),
            load_avg_15=_opt_float(d, "load_avg_15"),
            memory_total=_opt_int(d, "memory_total"),
            memory_used=_opt_int(d, "memory_used"),
            memory_free=_opt_int(d, "memory_free"),
            disk_total=_opt_int(d, "disk_total"),
            disk_used=_opt_int(d, "disk_used"),
            disk_free=_opt_int(d, "disk_free"),
            process_count=_opt_int(d, "process_count"),
        )

    def memory_percent(self) -> float | None:
        if self.memory_total is None or self.memory_used is None or self.memory_total <= 0:
            return None
        return self.memory_used / self.memory_total * 100


def decode_metrics_envelope(data: Any) -> ServerMetrics | None:
    """Unwrap ``{"metrics": {...} | null}``; a null payload means no sample yet."""
    d = _expect_dict(data, "metrics envelope")
    metrics = d.get("metrics")
    return ServerMetrics.from_dict(metrics) if metrics is not None else None


@dataclass
class Server(_Model):
    id: str
    name: str
    agent_key: str = ""
    status: str = ""
    hostname: str | None = None
    ip_address: str | None = None
    agent_version: str | None = None
    os_type: str | None = None
    os_version: str | None = None
    last_seen_at: datetime | None = None
    created_at: datetime | None = None
    metrics: ServerMetrics | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Server":
        d = _expect_dict(data, "server")
        metrics_raw = d.get("metrics")
        return cls(
            id=_id(d, "server"),
            name=_str(d, "name"),
            agent_key=_str(d, "agent_key"),
            status=_str(d, "status"),
            hostname=_opt_str(d, "hostname"),
            ip_address=_opt_str(d, "ip_address"),
            agent_version=_opt_str(d, "agent_version"),
            os_type=_opt_str(d, "os_type"),
            os_version=_opt_str(d, "os_version"),
            last_seen_at=_opt_time(d, "last_seen_at"),
            created_at=_opt_time(d, "created_at"),
            metrics=ServerMetrics.from_dict(metrics_raw) if metrics_raw is not None else None,
        )


@dataclass
class MetricsPoint(_Model):
    collected_at: datetime | None
    cpu_usage: float | None = None
    memory_used: int | None = None
    disk_used: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "MetricsPoint":
        d = _expect_dict(data, "metrics point")
        return cls(
            collected_at=_opt_time(d, "collected_at"),
            cpu_usage=_opt_float(d, "cpu_usage"),
            memory_used=_opt_int(d, "memory_used"),
            disk_used=_opt_int(d, "disk_used"),
        )


@dataclass
class MetricsHistory(_Model):
    server_id: str
    range: str
    data: list[MetricsPoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "MetricsHistory":
        d = _expect_dict(data, "history")
        return cls(
            server_id=_str(d, "server_id"),
            range=_str(d, "range"),
            data=decode_list(MetricsPoint, d.get("data")),
        )


@dataclass
class AgentKey(_Model):
    agent_key: str

    @classmethod
    def from_dict(cls, data: Any) -> "AgentKey":
        d = _expect_dict(data, "agent key")
        return cls(agent_key=_str(d, "agent_key"))


@dataclass
class InstallCommand(_Model):
    command: str
    agent_key: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "InstallCommand":
        d = _expect_dict(data, "install command")
        return cls(command=_str(d, "command"), agent_key=_str(d, "agent_key"))


@dataclass
class WebInstance(_Model):
    id: str
    name: str
    host: str = ""
    port: int = 0
    url: str = ""
    status: str = ""
    version: str = ""
    cloud_mode: bool = False
    ssl_enabled: bool = False
    created_at: datetime | None = None
    last_check_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "WebInstance":
        d = _expect_dict(data, "web instance")
        return cls(
            id=_id(d, "web instance"),
            name=_str(d, "name"),
            host=_str(d, "host"),
            port=_int(d, "port"),
            url=_str(d, "url"),
            status=_str(d, "status"),
            version=_str(d, "version"),
            cloud_mode=_bool(d, "cloud_mode"),
            ssl_enabled=_bool(d, "ssl_enabled"),
            created_at=_opt_time(d, "created_at"),
            last_check_at=_opt_time(d, "last_check_at"),
        )


@dataclass
class WebInstanceStatus(_Model):
    status: str
    response_time: str = ""
    version: str = ""
    cloud_connected: bool = False
    checked_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "WebInstanceStatus":
        d = _expect_dict(data, "web instance status")
        return cls(
            status=_str(d, "status"),
            response_time=_str(d, "response_time"),
            version=_str(d, "version"),
            cloud_connected=_bool(d, "cloud_connected"),
            checked_at=_opt_time(d, "checked_at"),
        )


@dataclass
class UserPlan(_Model):
    plan: str
    max_web_apps: int = 0
    current_count: int = 0
    is_pro: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "UserPlan":
        d = _expect_dict(data, "plan")
        return cls(
            plan=_str(d, "plan"),
            max_web_apps=_int(d, "max_web_apps"),
            current_count=_int(d, "current_count"),
            is_pro=_bool(d, "is_pro"),
        )

    @property
    def unlimited(self) -> bool:
        return self.max_web_apps < 0

    def at_capacity(self, deployed: int = 0) -> bool:
        """True when another web instance would exceed the plan.

        ``deployed`` is the length of the instance listing. The plan's
        ``current_count`` can lag behind a registration made moments earlier,
        so the larger of the two is compared against ``max_web_apps``.
        """
        if self.is_pro or self.unlimited:
            return False
        return max(self.current_count, deployed) >= self.max_web_apps
