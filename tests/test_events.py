"""Tests for key mapping and EventDispatcher transitions."""

import pytest

from repo_health.events import (
    EventDispatcher,
    FetchSettled,
    KeyAction,
    KeyPressed,
    Resized,
    Tick,
    action_for_key,
)
from repo_health.exceptions import RateLimitedError
from repo_health.models import FetchResult, SessionStatus


class TestKeyMapping:
    @pytest.mark.parametrize("key", ["q", "Q", "escape"])
    def test_quit_keys(self, key):
        assert KeyPressed(key).is_quit()
        assert not KeyPressed(key).is_refresh()

    @pytest.mark.parametrize("key", ["r", "R", "f5"])
    def test_refresh_keys(self, key):
        assert KeyPressed(key).is_refresh()
        assert not KeyPressed(key).is_quit()

    def test_navigation(self):
        assert action_for_key("down") is KeyAction.SELECT_NEXT
        assert action_for_key("k") is KeyAction.SELECT_PREVIOUS

    def test_unknown_key(self):
        assert action_for_key("x") is KeyAction.NONE


@pytest.fixture
def dispatcher(build_coordinator, scripted_fetch, make_snapshot):
    fetch = scripted_fetch(*([make_snapshot("acme/a"), make_snapshot("acme/b")] for _ in range(5)))
    return EventDispatcher(build_coordinator(fetch))


class TestDispatch:
    def test_refresh_key_starts_refresh(self, dispatcher, runner, state):
        assert dispatcher.dispatch(KeyPressed("r")) is True
        assert state.session.in_flight
        assert len(runner.jobs) == 1

    def test_refresh_key_while_in_flight_supersedes(self, dispatcher, runner, state):
        dispatcher.dispatch(KeyPressed("r"))
        dispatcher.dispatch(KeyPressed("f5"))
        assert state.generation == 2
        assert len(runner.jobs) == 2

    def test_tick_does_not_double_issue(self, dispatcher, runner, state):
        dispatcher.dispatch(KeyPressed("r"))
        dispatcher.dispatch(Tick())
        assert state.generation == 1
        assert len(runner.jobs) == 1

    def test_tick_starts_refresh_when_idle(self, dispatcher, runner, state):
        dispatcher.dispatch(Tick())
        assert state.generation == 1
        assert len(runner.jobs) == 1

    def test_quit_stops_loop(self, dispatcher):
        assert dispatcher.dispatch(KeyPressed("q")) is False
        assert dispatcher.should_quit
        # Nothing is processed after quit
        assert dispatcher.dispatch(KeyPressed("r")) is False

    def test_escape_quits(self, dispatcher):
        assert dispatcher.dispatch(KeyPressed("escape")) is False

    def test_resize_changes_nothing(self, dispatcher, state):
        before = state.current_view()
        assert dispatcher.dispatch(Resized(120, 40)) is True
        assert state.current_view() == before

    def test_unmapped_key_ignored(self, dispatcher, state):
        before = state.current_view()
        assert dispatcher.dispatch(KeyPressed("x")) is True
        assert state.current_view() == before

    def test_fetch_settled_applies_result(self, dispatcher, state, make_snapshot):
        dispatcher.coordinator.state.request_refresh()
        dispatcher.dispatch(FetchSettled(1, FetchResult.success([make_snapshot("acme/z")])))
        assert [s.full_name for s in state.snapshots] == ["acme/z"]

    def test_fetch_settled_failure_keeps_snapshots(self, dispatcher, runner, state):
        dispatcher.dispatch(KeyPressed("r"))
        runner.run(0)
        before = state.snapshots

        dispatcher.dispatch(KeyPressed("r"))
        dispatcher.dispatch(FetchSettled(2, FetchResult.failure(RateLimitedError("limit"))))

        assert state.snapshots == before
        assert state.session.status is SessionStatus.FAILED
        assert state.current_view().last_error.kind.label == "RateLimited"

    def test_navigation_moves_selection(self, dispatcher, runner, state):
        dispatcher.dispatch(KeyPressed("r"))
        runner.run(0)
        dispatcher.dispatch(KeyPressed("down"))
        assert state.current_view().selected.full_name == "acme/b"
        dispatcher.dispatch(KeyPressed("up"))
        assert state.current_view().selected.full_name == "acme/a"
