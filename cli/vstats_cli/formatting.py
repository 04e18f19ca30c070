from __future__ import annotations

from datetime import datetime, timezone

from rich.markup import escape

_STATUS_STYLES = {
    "online": ("green", "●"),
    "active": ("green", "●"),
    "healthy": ("green", "●"),
    "offline": ("red", "○"),
    "inactive": ("red", "○"),
    "unhealthy": ("red", "○"),
    "pending": ("yellow", "◐"),
    "connecting": ("yellow", "◐"),
}


def format_status(status: str | None) -> str:
    """Rich markup for a status word, with a state icon."""
    text = status or "-"
    style, icon = _STATUS_STYLES.get(text.lower(), ("bright_black", "?"))
    return f"[{style}]{icon} {escape(text)}[/]"


def format_bytes(value: int | None) -> str:
    if value is None:
        return "-"
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    tb = gb * 1024
    if value >= tb:
        return f"{value / tb:.1f} TB"
    if value >= gb:
        return f"{value / gb:.1f} GB"
    if value >= mb:
        return f"{value / mb:.1f} MB"
    if value >= kb:
        return f"{value / kb:.1f} KB"
    return f"{value} B"


def format_percent(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.1f}%"


def format_float(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}"


def format_int(value: int | None) -> str:
    if value is None:
        return "-"
    return str(value)


def format_limit(limit: int) -> str:
    if limit < 0:
        return "unlimited"
    return str(limit)


def format_connected(value: bool) -> str:
    return "✓ connected" if value else "✗ disconnected"


def _as_utc(value: datetime | str) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_time(value: datetime | str | None) -> str:
    if value is None:
        return "-"
    dt = _as_utc(value)
    if dt is None:
        return str(value)
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_short_time(value: datetime | str | None) -> str:
    if value is None:
        return "-"
    dt = _as_utc(value)
    if dt is None:
        return str(value)
    return dt.astimezone().strftime("%m-%d %H:%M")


def format_time_ago(value: datetime | str | None, *, now: datetime | None = None) -> str:
    if value is None:
        return "-"
    dt = _as_utc(value)
    if dt is None:
        return str(value)
    now = now or datetime.now(timezone.utc)
    seconds = int((now - dt).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"
