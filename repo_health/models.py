"""Data model for repository health snapshots and refresh sessions.

Snapshots are immutable; a refresh produces a whole new collection that
shares one ``as_of`` timestamp. Status is derived from the snapshot's
fields on every access and is never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import total_ordering
from typing import Iterable

from .config import DEFAULT_RECENCY_WINDOW_DAYS
from .exceptions import FetchError

DEFAULT_RECENCY_WINDOW = timedelta(days=DEFAULT_RECENCY_WINDOW_DAYS)


class RepositoryStatus(Enum):
    """Coarse health classification of a repository."""
    ACTIVE = "Active"
    QUIET = "Quiet"
    STALE = "Stale"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    RepositoryStatus.ACTIVE: "Open pull requests",
    RepositoryStatus.QUIET: "Recent activity, no open PRs",
    RepositoryStatus.STALE: "No recent activity",
}


class SessionStatus(Enum):
    """Lifecycle state of a refresh session."""
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def classify(
    open_pull_request_count: int,
    last_activity_at: datetime | None,
    now: datetime,
    window: timedelta = DEFAULT_RECENCY_WINDOW,
) -> RepositoryStatus:
    """Classify a repository from its PR load and last activity.

    Open pull requests always win over recency. Activity in the future
    (clock skew) counts as recent. Naive datetimes are treated as UTC.

    Raises:
        ValueError: If the PR count is negative.
    """
    if open_pull_request_count < 0:
        raise ValueError(f"open_pull_request_count must be >= 0, got {open_pull_request_count}")
    if open_pull_request_count > 0:
        return RepositoryStatus.ACTIVE
    if last_activity_at is not None and _as_utc(now) - _as_utc(last_activity_at) <= window:
        return RepositoryStatus.QUIET
    return RepositoryStatus.STALE


@total_ordering
@dataclass(frozen=True, eq=False)
class RepositoryIdentity:
    """Owner + name pair; compares case-insensitively like GitHub does."""
    owner: str
    name: str

    @classmethod
    def parse(cls, text: str) -> RepositoryIdentity:
        """Parse ``owner/name``.

        Raises:
            ValueError: If the text is not exactly two non-empty parts.
        """
        parts = text.strip().strip("/").split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise ValueError(f"Expected 'owner/name', got {text!r}")
        return cls(owner=parts[0].strip(), name=parts[1].strip())

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def _key(self) -> tuple[str, str]:
        return (self.owner.lower(), self.name.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryIdentity):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RepositoryIdentity):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.full_name


@total_ordering
@dataclass(frozen=True, eq=False)
class RepositorySnapshot:
    """One repository's health signals as of a single refresh.

    Equality and ordering use the identity only, so sorting a collection
    gives a stable display order regardless of fetch arrival order.
    """
    identity: RepositoryIdentity
    open_pull_request_count: int
    as_of: datetime
    last_activity_at: datetime | None = None
    primary_language: str | None = None
    star_count: int = 0
    description: str | None = None
    html_url: str = ""
    recency_window: timedelta = field(default=DEFAULT_RECENCY_WINDOW, repr=False)

    def __post_init__(self) -> None:
        if self.open_pull_request_count < 0:
            raise ValueError("open_pull_request_count must be >= 0")
        if self.star_count < 0:
            raise ValueError("star_count must be >= 0")

    @property
    def status(self) -> RepositoryStatus:
        return classify(
            self.open_pull_request_count,
            self.last_activity_at,
            self.as_of,
            self.recency_window,
        )

    @property
    def full_name(self) -> str:
        return self.identity.full_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositorySnapshot):
            return NotImplemented
        return self.identity == other.identity

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RepositorySnapshot):
            return NotImplemented
        return self.identity < other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


def sort_snapshots(snapshots: Iterable[RepositorySnapshot]) -> tuple[RepositorySnapshot, ...]:
    """Return snapshots as an immutable tuple in display order.

    Duplicate identities collapse to the last one seen.
    """
    unique = {s.identity: s for s in snapshots}
    return tuple(sorted(unique.values(), key=lambda s: s.identity))


@dataclass(frozen=True)
class RefreshSession:
    """One refresh attempt, identified by its generation."""
    generation: int
    status: SessionStatus
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def in_flight(self) -> bool:
        return self.status is SessionStatus.IN_FLIGHT


@dataclass(frozen=True)
class FetchResult:
    """Settled outcome of one fetch: either snapshots or an error."""
    snapshots: tuple[RepositorySnapshot, ...] | None = None
    error: FetchError | None = None

    def __post_init__(self) -> None:
        if (self.snapshots is None) == (self.error is None):
            raise ValueError("FetchResult needs exactly one of snapshots or error")

    @classmethod
    def success(cls, snapshots: Iterable[RepositorySnapshot]) -> FetchResult:
        return cls(snapshots=tuple(snapshots))

    @classmethod
    def failure(cls, error: FetchError) -> FetchResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
