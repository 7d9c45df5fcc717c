"""Shared test fixtures for repo_health tests."""

from datetime import datetime, timedelta, timezone

import pytest

from repo_health.coordinator import RefreshCoordinator
from repo_health.models import RepositoryIdentity, RepositorySnapshot
from repo_health.state import AppState

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class ManualRunner:
    """Background runner that holds jobs until the test runs them."""

    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)

    def run(self, index):
        self.jobs[index]()


class ScriptedFetch:
    """Fetch function returning (or raising) scripted outcomes in call order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, identities):
        self.calls.append(identities)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_snapshot(now):
    """Factory for snapshots with sensible defaults."""

    def _make(full_name="acme/app", prs=0, days_ago=None, as_of=None, **kwargs):
        as_of = as_of or now
        activity = None if days_ago is None else as_of - timedelta(days=days_ago)
        return RepositorySnapshot(
            identity=RepositoryIdentity.parse(full_name),
            open_pull_request_count=prs,
            as_of=as_of,
            last_activity_at=activity,
            **kwargs,
        )

    return _make


@pytest.fixture
def state(now):
    return AppState(clock=lambda: now)


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def scripted_fetch():
    return ScriptedFetch


@pytest.fixture
def build_coordinator(state, runner):
    """Build a coordinator whose deliveries are applied immediately.

    Delivered (generation, result) pairs are also recorded on
    ``coordinator.delivered`` for inspection.
    """

    def _build(fetch, identities=()):
        delivered = []

        def deliver(generation, result):
            delivered.append((generation, result))
            coordinator.complete(generation, result)

        coordinator = RefreshCoordinator(
            state=state,
            fetch=fetch,
            identities=identities,
            run_in_background=runner,
            deliver=deliver,
        )
        coordinator.delivered = delivered
        return coordinator

    return _build
