"""Event types and dispatch for the foreground loop.

The UI translates terminal input, resize, timer ticks and fetch
completions into these events and feeds them, one at a time and in
arrival order, to EventDispatcher.dispatch(). Dispatch never blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .coordinator import RefreshCoordinator
from .models import FetchResult

logger = logging.getLogger(__name__)


class KeyAction(Enum):
    """What a key press asks the dashboard to do."""
    REFRESH = "refresh"
    QUIT = "quit"
    SELECT_NEXT = "select_next"
    SELECT_PREVIOUS = "select_previous"
    NONE = "none"


# Keys use Textual's key names
KEY_ACTIONS = {
    "r": KeyAction.REFRESH,
    "R": KeyAction.REFRESH,
    "f5": KeyAction.REFRESH,
    "q": KeyAction.QUIT,
    "Q": KeyAction.QUIT,
    "escape": KeyAction.QUIT,
    "down": KeyAction.SELECT_NEXT,
    "j": KeyAction.SELECT_NEXT,
    "up": KeyAction.SELECT_PREVIOUS,
    "k": KeyAction.SELECT_PREVIOUS,
}


def action_for_key(key: str) -> KeyAction:
    return KEY_ACTIONS.get(key, KeyAction.NONE)


@dataclass(frozen=True)
class KeyPressed:
    key: str

    @property
    def action(self) -> KeyAction:
        return action_for_key(self.key)

    def is_quit(self) -> bool:
        return self.action is KeyAction.QUIT

    def is_refresh(self) -> bool:
        return self.action is KeyAction.REFRESH


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """Auto-refresh timer fired."""
    pass


@dataclass(frozen=True)
class FetchSettled:
    generation: int
    result: FetchResult


Event = Union[KeyPressed, Resized, Tick, FetchSettled]


class EventDispatcher:
    """Turns events into state transitions.

    dispatch() returns False once a quit event has been seen; the caller
    then stops the loop and tears down the terminal.
    """

    def __init__(self, coordinator: RefreshCoordinator):
        self.coordinator = coordinator
        self.should_quit = False

    @property
    def state(self):
        return self.coordinator.state

    def dispatch(self, event: Event) -> bool:
        if self.should_quit:
            return False

        if isinstance(event, KeyPressed):
            self._handle_key(event)
        elif isinstance(event, FetchSettled):
            self.coordinator.complete(event.generation, event.result)
        elif isinstance(event, Tick):
            if self.coordinator.refresh_if_idle() is None:
                logger.debug("Auto-refresh skipped: refresh already in flight")
        elif isinstance(event, Resized):
            # Re-render only
            pass
        else:
            logger.warning("Ignoring unknown event %r", event)

        return not self.should_quit

    def _handle_key(self, event: KeyPressed) -> None:
        action = event.action
        if action is KeyAction.QUIT:
            self.should_quit = True
        elif action is KeyAction.REFRESH:
            self.coordinator.request_refresh()
        elif action is KeyAction.SELECT_NEXT:
            self.state.select_next()
        elif action is KeyAction.SELECT_PREVIOUS:
            self.state.select_previous()
