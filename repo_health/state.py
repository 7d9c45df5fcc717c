"""Application state: snapshots, the current refresh session, and selection.

All mutation happens on the foreground thread. The renderer only ever sees
the immutable DashboardView returned by current_view().
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from .exceptions import FetchError, FetchErrorKind
from .models import (
    FetchResult,
    RefreshSession,
    RepositorySnapshot,
    RepositoryStatus,
    SessionStatus,
    sort_snapshots,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ErrorInfo:
    """Display projection of the last refresh failure."""
    kind: FetchErrorKind
    message: str
    retry_after: float | None = None

    @classmethod
    def from_error(cls, error: FetchError) -> ErrorInfo:
        return cls(
            kind=error.kind,
            message=error.message,
            retry_after=getattr(error, "retry_after", None),
        )

    @property
    def summary(self) -> str:
        text = f"last refresh failed: {self.kind.label}"
        if self.retry_after is not None:
            text += f" (retry after {int(self.retry_after)}s)"
        return text


@dataclass(frozen=True)
class DashboardView:
    """Read-only snapshot of everything the renderer needs."""
    snapshots: tuple[RepositorySnapshot, ...]
    session: RefreshSession
    last_error: ErrorInfo | None
    selected_index: int
    last_success_at: datetime | None

    @property
    def is_loading(self) -> bool:
        return self.session.in_flight

    @property
    def generation(self) -> int:
        return self.session.generation

    @property
    def selected(self) -> RepositorySnapshot | None:
        if 0 <= self.selected_index < len(self.snapshots):
            return self.snapshots[self.selected_index]
        return None

    @property
    def status_counts(self) -> dict[RepositoryStatus, int]:
        counts = Counter(s.status for s in self.snapshots)
        return {status: counts.get(status, 0) for status in RepositoryStatus}

    @property
    def active_count(self) -> int:
        return self.status_counts[RepositoryStatus.ACTIVE]


class AppState:
    """Owns the last-known-good snapshots and the current refresh session.

    Invariants:
    - at most one session is in flight; starting a new one supersedes it
    - generation strictly increases with every request_refresh()
    - the snapshot collection is only ever replaced as a whole

    Args:
        clock: Returns the current time (defaults to UTC now)
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or utc_now
        self._session = RefreshSession(generation=0, status=SessionStatus.IDLE)
        self._snapshots: tuple[RepositorySnapshot, ...] = ()
        self._last_error: ErrorInfo | None = None
        self._last_success_at: datetime | None = None
        self._selected = 0

    @property
    def session(self) -> RefreshSession:
        return self._session

    @property
    def generation(self) -> int:
        return self._session.generation

    @property
    def snapshots(self) -> tuple[RepositorySnapshot, ...]:
        return self._snapshots

    @property
    def last_error(self) -> ErrorInfo | None:
        return self._last_error

    def request_refresh(self) -> RefreshSession:
        """Start a new in-flight session, superseding any current one.

        Returns the new session; its generation tags the fetch to launch.
        """
        previous = self._session
        if previous.in_flight:
            logger.debug("Superseding in-flight refresh generation %d", previous.generation)
        self._session = RefreshSession(
            generation=previous.generation + 1,
            status=SessionStatus.IN_FLIGHT,
            started_at=self._clock(),
        )
        return self._session

    def handle_fetch_result(self, generation: int, result: FetchResult) -> bool:
        """Apply a settled fetch if it belongs to the live session.

        Returns True if the result was applied, False if it was dropped as
        superseded.
        """
        if generation != self._session.generation or not self._session.in_flight:
            logger.debug(
                "Dropping %s result for generation %d (current %d)",
                FetchErrorKind.SUPERSEDED.label, generation, self._session.generation,
            )
            return False

        finished = self._clock()
        if result.ok:
            self._snapshots = sort_snapshots(result.snapshots)
            self._last_error = None
            self._last_success_at = finished
            self._clamp_selection()
            status = SessionStatus.SUCCEEDED
        else:
            self._last_error = ErrorInfo.from_error(result.error)
            logger.warning(
                "Refresh generation %d failed: %s: %s",
                generation, result.error.kind.label, result.error.message,
            )
            status = SessionStatus.FAILED

        self._session = RefreshSession(
            generation=self._session.generation,
            status=status,
            started_at=self._session.started_at,
            finished_at=finished,
        )
        return True

    def current_view(self) -> DashboardView:
        return DashboardView(
            snapshots=self._snapshots,
            session=self._session,
            last_error=self._last_error,
            selected_index=self._selected,
            last_success_at=self._last_success_at,
        )

    def select_next(self) -> None:
        if self._snapshots:
            self._selected = (self._selected + 1) % len(self._snapshots)

    def select_previous(self) -> None:
        if self._snapshots:
            self._selected = (self._selected - 1) % len(self._snapshots)

    def _clamp_selection(self) -> None:
        if not self._snapshots:
            self._selected = 0
        else:
            self._selected = min(self._selected, len(self._snapshots) - 1)
