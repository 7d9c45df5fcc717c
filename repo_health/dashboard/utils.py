"""Shared utility functions for the dashboard package."""

from __future__ import annotations

from datetime import datetime, timezone


def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_age(dt: datetime | None, now: datetime | None = None) -> str:
    """Format a timestamp as a short age like '2h', '15m'."""
    if dt is None:
        return ""
    now = _aware(now or datetime.now(timezone.utc))
    secs = (now - _aware(dt)).total_seconds()
    if secs < 0:
        return "now"
    if secs < 60:
        return f"{int(secs)}s"
    if secs < 3600:
        return f"{int(secs // 60)}m"
    if secs < 86400:
        return f"{int(secs // 3600)}h"
    return f"{int(secs // 86400)}d"


def format_last_activity(dt: datetime | None, now: datetime | None = None) -> str:
    """Describe last activity in days: 'Today', '1 day ago', '12 days ago', 'Never'."""
    if dt is None:
        return "Never"
    now = _aware(now or datetime.now(timezone.utc))
    days = int((now - _aware(dt)).total_seconds() // 86400)
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def time_ago(dt: datetime | None, now: datetime | None = None) -> str | None:
    """Convert a timestamp to a relative time string like '5s ago' or '3m ago'."""
    if dt is None:
        return None
    now = _aware(now or datetime.now(timezone.utc))
    secs = int((now - _aware(dt)).total_seconds())
    if secs < 0:
        return "just now"
    if secs < 60:
        return f"{secs}s ago"
    mins = secs // 60
    if mins < 60:
        return f"{mins}m ago"
    hours = mins // 60
    return f"{hours}h {mins % 60}m ago"
