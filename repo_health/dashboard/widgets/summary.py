"""Summary bar (stats, last refresh, error indicator) and selected-repo detail."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widget import Widget
from textual.widgets import Label, Static

from ...models import RepositorySnapshot, RepositoryStatus
from ...state import DashboardView
from ..utils import time_ago
from .status_badge import RefreshBadge


def stats_line(view: DashboardView) -> str:
    if view.is_loading and not view.snapshots:
        return "Loading repositories…"
    if not view.snapshots:
        return "No repositories found"
    counts = view.status_counts
    return (
        f"{len(view.snapshots)} repos ({counts[RepositoryStatus.ACTIVE]} active, "
        f"{counts[RepositoryStatus.QUIET]} quiet, {counts[RepositoryStatus.STALE]} stale)"
    )


def refresh_line(view: DashboardView, now: datetime | None = None) -> str:
    ago = time_ago(view.last_success_at, now)
    return f"Last refresh: {ago}" if ago else "Last refresh: never"


def detail_text(snapshot: RepositorySnapshot) -> Text:
    text = Text()
    text.append(snapshot.full_name, style="bold #e0e0e0")
    text.append(f"  {snapshot.status.description}", style="#9e9e9e")
    text.append(f"\n{snapshot.primary_language or 'Unknown language'}", style="#ce93d8")
    text.append(f"  ★ {snapshot.star_count}", style="#ffd54f")
    if snapshot.html_url:
        text.append(f"\n{snapshot.html_url}", style="#4fc3f7")
    if snapshot.description:
        text.append(f"\n{snapshot.description}")
    return text


class SummaryBar(Widget):
    """One-line status: repo counts, refresh age, session badge, last error."""

    DEFAULT_CSS = """
    SummaryBar {
        height: auto;
        padding: 0 1;
        background: #1e1e1e;
    }
    SummaryBar Horizontal { height: 1; }
    SummaryBar #summary-stats { width: 1fr; }
    SummaryBar #summary-refresh { width: auto; color: #9e9e9e; padding: 0 1; }
    SummaryBar #summary-error { color: #ef5350; height: auto; }
    """

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Label("", id="summary-stats")
            yield Label("", id="summary-refresh")
            yield RefreshBadge(id="summary-badge")
        yield Label("", id="summary-error")

    def update_view(self, view: DashboardView) -> None:
        self.query_one("#summary-stats", Label).update(stats_line(view))
        self.query_one("#summary-refresh", Label).update(refresh_line(view))
        self.query_one(RefreshBadge).set_status(view.session.status)

        error = self.query_one("#summary-error", Label)
        if view.last_error is not None:
            error.update(view.last_error.summary)
            error.display = True
        else:
            error.display = False


class DetailLine(Static):
    """Description, URL, language, stars and classification of the selected repository."""

    DEFAULT_CSS = """
    DetailLine {
        height: auto;
        padding: 0 1;
        color: #bdbdbd;
        border-top: solid #424242;
    }
    """

    def update_view(self, view: DashboardView) -> None:
        selected = view.selected
        self.update(detail_text(selected) if selected is not None else "")
