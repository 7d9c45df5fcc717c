"""Badges for repository status and refresh session state."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from ...models import RepositoryStatus, SessionStatus

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

_STATUS_STYLES = {
    RepositoryStatus.ACTIVE: ("●", "bold #66bb6a"),
    RepositoryStatus.QUIET: ("◐", "#ffa726"),
    RepositoryStatus.STALE: ("○", "#9e9e9e"),
}


def status_text(status: RepositoryStatus) -> Text:
    """Colored icon + label for a table cell."""
    icon, style = _STATUS_STYLES[status]
    return Text(f"{icon} {status.value}", style=style)


class RefreshBadge(Static):
    """Inline badge showing the refresh session state.

    - in flight → "⠋ REFRESHING" (animated spinner)
    - succeeded → "OK"
    - failed    → "FAILED"
    - idle      → "IDLE"
    """

    DEFAULT_CSS = """
    RefreshBadge { width: auto; padding: 0 1; }
    RefreshBadge.badge--running { color: #42a5f5; }
    RefreshBadge.badge--ok { color: #66bb6a; }
    RefreshBadge.badge--failed { color: #ef5350; text-style: bold; }
    RefreshBadge.badge--idle { color: #9e9e9e; }
    """

    def __init__(self, **kwargs: object) -> None:
        super().__init__("IDLE", **kwargs)
        self._status = SessionStatus.IDLE
        self._spinner_index = 0
        self.add_class("badge--idle")

    def on_mount(self) -> None:
        self.set_interval(0.1, self._tick_spinner)

    def set_status(self, status: SessionStatus) -> None:
        if status is self._status:
            return
        self._status = status
        text, css_class = _badge_for(status, self._spinner_index)
        for cls in ("badge--running", "badge--ok", "badge--failed", "badge--idle"):
            self.remove_class(cls)
        self.add_class(css_class)
        self.update(text)

    def _tick_spinner(self) -> None:
        if self._status is not SessionStatus.IN_FLIGHT:
            return
        self._spinner_index = (self._spinner_index + 1) % len(SPINNER_FRAMES)
        self.update(_badge_for(self._status, self._spinner_index)[0])


def _badge_for(status: SessionStatus, frame: int = 0) -> tuple[str, str]:
    """Return (badge_text, css_class) for a session status."""
    if status is SessionStatus.IN_FLIGHT:
        return f"{SPINNER_FRAMES[frame]} REFRESHING", "badge--running"
    elif status is SessionStatus.SUCCEEDED:
        return "OK", "badge--ok"
    elif status is SessionStatus.FAILED:
        return "FAILED", "badge--failed"
    else:
        return "IDLE", "badge--idle"
