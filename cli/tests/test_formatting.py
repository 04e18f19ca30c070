from datetime import datetime, timedelta, timezone

from vstats_cli.formatting import (
    format_bytes,
    format_limit,
    format_percent,
    format_status,
    format_time_ago,
)


def test_format_bytes_uses_binary_units() -> None:
    assert format_bytes(None) == "-"
    assert format_bytes(512) == "512 B"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(3 * 1024 ** 3) == "3.0 GB"


def test_format_percent_one_decimal() -> None:
    assert format_percent(12.345) == "12.3%"
    assert format_percent(None) == "-"


def test_format_limit_negative_is_unlimited() -> None:
    assert format_limit(-1) == "unlimited"
    assert format_limit(3) == "3"


def test_format_time_ago_buckets() -> None:
    now = datetime(2026, 1, 4, 12, 0, tzinfo=timezone.utc)

    assert format_time_ago(None) == "-"
    assert format_time_ago(now - timedelta(seconds=30), now=now) == "just now"
    assert format_time_ago(now - timedelta(minutes=5), now=now) == "5m ago"
    assert format_time_ago(now - timedelta(hours=3), now=now) == "3h ago"
    assert format_time_ago("2026-01-01T12:00:00Z", now=now) == "3d ago"


def test_format_status_escapes_unknown_values() -> None:
    assert "online" in format_status("online")
    assert "\\[x]" in format_status("[x]")
