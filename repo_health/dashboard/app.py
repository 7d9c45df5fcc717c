"""Repo Health Dashboard: Textual TUI app.

Launch with: python -m repo_health.dashboard
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from ..config import APP_TITLE, DEFAULT_REFRESH_INTERVAL_SECONDS
from ..coordinator import FetchFn, RefreshCoordinator
from ..events import Event, EventDispatcher, FetchSettled, KeyPressed, Resized, Tick
from ..models import FetchResult, RepositoryIdentity
from ..state import AppState, DashboardView
from .widgets.repo_table import RepoTable
from .widgets.summary import DetailLine, SummaryBar

logger = logging.getLogger(__name__)


class RepoHealthDashboard(App):
    """Repository health dashboard built with Textual.

    Textual's message loop is the single foreground thread: key presses,
    resizes, timer ticks and fetch completions all arrive there as events
    and go through one EventDispatcher. Fetches run in thread workers and
    hand their settled result back with call_from_thread.
    """

    TITLE = APP_TITLE

    BINDINGS = [
        Binding("q", "dispatch_key('q')", "Quit", show=True, priority=True),
        Binding("escape", "dispatch_key('escape')", "Quit", show=False, priority=True),
        Binding("r", "dispatch_key('r')", "Refresh", show=True),
        Binding("f5", "dispatch_key('f5')", "Refresh", show=False),
        Binding("down", "dispatch_key('down')", "Next", show=False),
        Binding("j", "dispatch_key('j')", "Next", show=False),
        Binding("up", "dispatch_key('up')", "Previous", show=False),
        Binding("k", "dispatch_key('k')", "Previous", show=False),
    ]

    def __init__(
        self,
        fetch: FetchFn,
        identities: Iterable[RepositoryIdentity] = (),
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        state: AppState | None = None,
        on_quit: Callable[[], None] | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self._on_quit = on_quit
        self._quit_requested = False
        self._refresh_interval = refresh_interval
        self._state = state or AppState()
        self._coordinator = RefreshCoordinator(
            state=self._state,
            fetch=fetch,
            identities=identities,
            run_in_background=self._run_in_background,
            deliver=self._deliver,
        )
        self._dispatcher = EventDispatcher(self._coordinator)

    @property
    def state(self) -> AppState:
        return self._state

    def compose(self) -> ComposeResult:
        yield Header()
        yield SummaryBar(id="summary")
        yield RepoTable(id="repos")
        yield DetailLine(id="detail")
        yield Footer()

    def on_mount(self) -> None:
        self._coordinator.request_refresh()
        self._render_view()
        if self._refresh_interval > 0:
            self.set_interval(self._refresh_interval, self._on_tick)
        # Keeps the "last refresh" age current between events
        self.set_interval(1, self._render_view)

    def on_resize(self, event: events.Resize) -> None:
        self.dispatch_event(Resized(event.size.width, event.size.height))

    def action_dispatch_key(self, key: str) -> None:
        self.dispatch_event(KeyPressed(key))

    def _on_tick(self) -> None:
        self.dispatch_event(Tick())

    def dispatch_event(self, event: Event) -> None:
        """Apply one event, then render. Runs on the UI thread only."""
        keep_running = self._dispatcher.dispatch(event)
        self._render_view()
        if not keep_running and not self._quit_requested:
            self._quit_requested = True
            self._shutdown_fetches()
            self.exit(return_code=0)

    def _shutdown_fetches(self) -> None:
        """Tell the fetch client to stop; a request already on the wire still runs out."""
        if self._state.session.in_flight:
            logger.info("Quit with generation %d in flight", self._state.generation)
            self.notify("Waiting for refresh to finish…", timeout=30)
        if self._on_quit is not None:
            self._on_quit()

    # -- background ----------------------------------------------------------

    @work(thread=True, group="refresh", exit_on_error=False)
    def _run_in_background(self, job: Callable[[], None]) -> None:
        job()

    def _deliver(self, generation: int, result: FetchResult) -> None:
        """Called from the worker thread; marshals onto the UI thread."""
        try:
            self.call_from_thread(self.dispatch_event, FetchSettled(generation, result))
        except RuntimeError:
            # App already shut down; nobody is waiting for this result.
            logger.debug("Dropping result for generation %d after shutdown", generation)

    # -- rendering -----------------------------------------------------------

    def _render_view(self) -> None:
        view = self._state.current_view()
        self.sub_title = self._sub_title(view)
        for widget_id, widget_type in [
            ("#summary", SummaryBar),
            ("#repos", RepoTable),
            ("#detail", DetailLine),
        ]:
            self.query_one(widget_id, widget_type).update_view(view)

    @staticmethod
    def _sub_title(view: DashboardView) -> str:
        if view.is_loading:
            return "Loading…"
        if not view.snapshots:
            return "No repositories found"
        return f"{len(view.snapshots)} repos ({view.active_count} active)"
