"""Repository table, one row per snapshot, in identity order."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widget import Widget
from textual.widgets import DataTable, Label

from ...models import RepositorySnapshot
from ...state import DashboardView
from ..utils import format_last_activity
from .status_badge import status_text

COLUMNS = ("Status", "Repository", "PRs", "Last Activity", "Language", "Stars")


class _RepoDataTable(DataTable):
    # Selection is driven by the dashboard state, not by table focus.
    can_focus = False


def empty_message(view: DashboardView) -> str:
    """Placeholder text shown while there are no snapshots to list."""
    if view.is_loading:
        return "Loading repositories… this may take a moment while we fetch data from GitHub."
    if view.last_error is not None:
        return f"Error loading repositories\n\n{view.last_error.message}\n\nPress 'r' to retry"
    return "No repositories found\n\nMake sure your GitHub token has access to repositories.\n\nPress 'r' to refresh"


def row_for(snapshot: RepositorySnapshot) -> tuple:
    return (
        status_text(snapshot.status),
        snapshot.full_name,
        str(snapshot.open_pull_request_count),
        format_last_activity(snapshot.last_activity_at, snapshot.as_of),
        snapshot.primary_language or "-",
        f"★ {snapshot.star_count}",
    )


class RepoTable(Widget):
    """List of repositories with status, PR count and last activity."""

    DEFAULT_CSS = """
    RepoTable {
        height: 1fr;
    }
    RepoTable .section-header {
        text-style: bold;
        color: #4fc3f7;
    }
    RepoTable #repo-empty {
        width: 100%;
        content-align: center middle;
        color: #9e9e9e;
        padding: 2 0;
    }
    """

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._shown: tuple[RepositorySnapshot, ...] | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(" REPOSITORIES (0) ", classes="section-header", id="repo-header")
            yield Label("", id="repo-empty")
            yield _RepoDataTable(id="repo-table", cursor_type="row", zebra_stripes=True)

    def update_view(self, view: DashboardView) -> None:
        """Render the view. Rows are rebuilt only when the collection changes."""
        header = self.query_one("#repo-header", Label)
        empty = self.query_one("#repo-empty", Label)
        table = self.query_one("#repo-table", DataTable)
        if not table.columns:
            table.add_columns(*COLUMNS)

        header.update(f" REPOSITORIES ({len(view.snapshots)}) ")

        if not view.snapshots:
            empty.update(empty_message(view))
            empty.display = True
            table.display = False
        else:
            empty.display = False
            table.display = True

        if view.snapshots is not self._shown:
            self._shown = view.snapshots
            table.clear()
            for snapshot in view.snapshots:
                table.add_row(*row_for(snapshot), key=snapshot.full_name)

        if view.snapshots:
            table.move_cursor(row=view.selected_index, animate=False)
