"""Refresh coordination between background fetches and the foreground loop.

Each fetch is tagged with the session generation current at launch time.
The fetch runs off the foreground thread; its settled result is handed to
``deliver``, which must marshal it back onto the foreground thread before
complete() touches state. Superseded fetches are never interrupted, their
results are simply dropped on arrival.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Iterable

from .exceptions import FetchError
from .models import FetchResult, RefreshSession, RepositoryIdentity, RepositorySnapshot
from .state import AppState

logger = logging.getLogger(__name__)

FetchFn = Callable[[frozenset[RepositoryIdentity]], Iterable[RepositorySnapshot]]
RunInBackground = Callable[[Callable[[], None]], Any]
Deliver = Callable[[int, FetchResult], Any]


class RefreshCoordinator:
    """Starts background fetches and applies their results to AppState.

    Does not retry: a failed refresh stays failed until the user (or the
    auto-refresh timer) asks for another one.

    Args:
        state: Application state, owned by the foreground thread
        fetch: Blocking fetch function; raises FetchError on failure
        identities: Repositories to fetch (empty means discover)
        run_in_background: Schedules a zero-arg callable off the foreground thread
        deliver: Called from the background with (generation, result);
            responsible for getting back onto the foreground thread
    """

    def __init__(
        self,
        state: AppState,
        fetch: FetchFn,
        identities: Iterable[RepositoryIdentity],
        run_in_background: RunInBackground,
        deliver: Deliver,
    ):
        self.state = state
        self._fetch = fetch
        self._identities = frozenset(identities)
        self._run_in_background = run_in_background
        self._deliver = deliver

    @property
    def identities(self) -> frozenset[RepositoryIdentity]:
        return self._identities

    def request_refresh(self) -> RefreshSession:
        """Start a refresh now, superseding any in-flight one."""
        session = self.state.request_refresh()
        logger.info("Starting refresh generation %d", session.generation)
        self._run_in_background(partial(self._run, session.generation, self._identities))
        return session

    def refresh_if_idle(self) -> RefreshSession | None:
        """Start a refresh only when none is in flight."""
        if self.state.session.in_flight:
            return None
        return self.request_refresh()

    def complete(self, generation: int, result: FetchResult) -> bool:
        """Apply a delivered result. Must be called on the foreground thread."""
        return self.state.handle_fetch_result(generation, result)

    def _run(self, generation: int, identities: frozenset[RepositoryIdentity]) -> None:
        result = self.settle(identities)
        self._deliver(generation, result)

    def settle(self, identities: frozenset[RepositoryIdentity]) -> FetchResult:
        """Run the fetch and turn every outcome into a FetchResult."""
        try:
            snapshots = self._fetch(identities)
            return FetchResult.success(snapshots)
        except FetchError as e:
            return FetchResult.failure(e)
        except Exception as e:
            logger.exception("Unexpected error during refresh")
            return FetchResult.failure(FetchError(f"{type(e).__name__}: {e}"))
