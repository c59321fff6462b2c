"""Menu session state and the pure reducer that drives it.

The UI owns a single SessionState value. Key presses and action completions
are fed to ``reduce`` which returns the next state plus at most one effect
for the UI to carry out (start an action, or quit).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple, Union

from niri_setup.core.actions import EXIT_LABEL, ActionKind, ActionResult, ActionSpec


class Screen(enum.Enum):
    MENU = "menu"
    BUSY = "busy"
    RESULT = "result"


UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
SELECT_KEYS = frozenset({"enter"})
QUIT_KEYS = frozenset({"q", "ctrl+c", "quit"})


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ActionCompleted:
    label: str
    result: ActionResult


Event = Union[KeyEvent, ActionCompleted]


@dataclass(frozen=True)
class RunAction:
    """Start ``action`` off the UI thread with a snapshot of the log buffer."""

    action: ActionSpec
    logs: Tuple[str, ...]


@dataclass(frozen=True)
class Quit:
    return_code: int = 0


Effect = Union[RunAction, Quit]


@dataclass(frozen=True)
class SessionState:
    choices: Tuple[ActionSpec, ...]
    screen: Screen = Screen.MENU
    cursor: int = 0
    selected: Optional[str] = None
    logs: Tuple[str, ...] = ()
    message: str = ""

    @property
    def current(self) -> ActionSpec:
        return self.choices[self.cursor]

    @property
    def in_flight(self) -> Optional[ActionSpec]:
        if self.screen is Screen.MENU:
            return None
        for spec in self.choices:
            if spec.label == self.selected:
                return spec
        return None


def initial_state(choices: Sequence[ActionSpec]) -> SessionState:
    if not choices:
        raise ValueError("menu needs at least one choice")
    return SessionState(choices=tuple(choices))


def reduce(state: SessionState, event: Event) -> Tuple[SessionState, Optional[Effect]]:
    if isinstance(event, KeyEvent):
        if state.screen is not Screen.MENU:
            # No input while an action runs; there is no cancellation.
            return state, None
        return _menu_key(state, event.key)
    if isinstance(event, ActionCompleted):
        return _complete(state, event)
    return state, None


def _menu_key(state: SessionState, key: str) -> Tuple[SessionState, Optional[Effect]]:
    if key in QUIT_KEYS:
        return state, Quit()
    if key in UP_KEYS:
        return replace(state, cursor=max(state.cursor - 1, 0)), None
    if key in DOWN_KEYS:
        return replace(state, cursor=min(state.cursor + 1, len(state.choices) - 1)), None
    if key in SELECT_KEYS:
        spec = state.current
        if spec.label == EXIT_LABEL or spec.handler is None:
            return replace(state, selected=spec.label), Quit()
        screen = Screen.BUSY if spec.kind is ActionKind.INSTALL else Screen.RESULT
        new_state = replace(state, screen=screen, selected=spec.label, message=spec.progress)
        return new_state, RunAction(action=spec, logs=state.logs)
    return state, None


def _complete(state: SessionState, event: ActionCompleted) -> Tuple[SessionState, Optional[Effect]]:
    spec = state.in_flight
    if spec is None or spec.label != event.label:
        return state, None

    result = event.result
    logs = state.logs + (result.status,)
    if result.ok and spec.kind is ActionKind.INSTALL:
        logs = ()
    message = result.status if result.ok else f"Error: {result.error}\n{result.status}"
    return replace(state, screen=Screen.MENU, logs=logs, message=message), None
