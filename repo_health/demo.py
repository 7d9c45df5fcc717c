"""Demo fetch client: fake repositories, random latency, injected failures.

Lets the refresh machinery be exercised without a token or network. Every
``fail_every``-th fetch fails, alternating between a rate limit and a
network error.
"""

from __future__ import annotations

import random
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from .config import DEFAULT_RECENCY_WINDOW_DAYS
from .exceptions import FetchError, NetworkError, RateLimitedError
from .models import RepositoryIdentity, RepositorySnapshot

DEMO_REPOSITORIES = [
    ("acme", "api-gateway", "Go", "Edge routing and auth"),
    ("acme", "billing", "Python", "Invoices and payment reconciliation"),
    ("acme", "design-system", "TypeScript", "Shared UI components"),
    ("acme", "infra", "HCL", "Terraform for all environments"),
    ("acme", "legacy-cron", "Perl", None),
    ("acme", "mobile-app", "Kotlin", "Android client"),
    ("acme", "search", "Rust", "Indexer and query service"),
]


class DemoClient:
    """Drop-in replacement for GitHubClient.fetch_snapshots()."""

    def __init__(
        self,
        min_latency: float = 0.5,
        max_latency: float = 3.0,
        fail_every: int = 4,
        seed: int | None = None,
        sleep: Callable[[float], object] | None = None,
        clock: Callable[[], datetime] | None = None,
        recency_window_days: int = DEFAULT_RECENCY_WINDOW_DAYS,
    ):
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.fail_every = fail_every
        self.recency_window = timedelta(days=recency_window_days)
        self._rng = random.Random(seed)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tick = 0
        self._lock = threading.Lock()
        self._closed = threading.Event()
        # Default sleep wakes early once the client is closed
        self._sleep = sleep or self._closed.wait

    def close(self) -> None:
        """Make fetches still sleeping fail instead of returning data."""
        self._closed.set()

    def fetch_snapshots(self, identities: Iterable[RepositoryIdentity]) -> list[RepositorySnapshot]:
        with self._lock:
            self._tick += 1
            tick = self._tick
            delay = self._rng.uniform(self.min_latency, self.max_latency)
        self._sleep(delay)

        if self._closed.is_set():
            raise NetworkError("Demo client closed")
        if self.fail_every and tick % self.fail_every == 0:
            raise self._failure(tick)

        wanted = frozenset(identities)
        now = self._clock()
        snapshots = []
        for owner, name, language, description in DEMO_REPOSITORIES:
            identity = RepositoryIdentity(owner, name)
            if wanted and identity not in wanted:
                continue
            with self._lock:
                snapshot = self._fake_snapshot(identity, language, description, now)
            snapshots.append(snapshot)
        return snapshots

    def _failure(self, tick: int) -> FetchError:
        if (tick // self.fail_every) % 2:
            return RateLimitedError("Demo rate limit", retry_after=60.0)
        return NetworkError("Demo network failure")

    def _fake_snapshot(
        self,
        identity: RepositoryIdentity,
        language: str | None,
        description: str | None,
        now: datetime,
    ) -> RepositorySnapshot:
        prs = self._rng.choice([0, 0, 0, 1, 2, 5])
        days_ago = self._rng.choice([None, 0, 2, 12, 45, 200])
        activity = None if days_ago is None else now - timedelta(days=days_ago, hours=self._rng.randint(0, 23))
        return RepositorySnapshot(
            identity=identity,
            open_pull_request_count=prs,
            as_of=now,
            last_activity_at=activity,
            primary_language=language,
            star_count=self._rng.randint(0, 500),
            description=description,
            html_url=f"https://github.com/{identity.full_name}",
            recency_window=self.recency_window,
        )
