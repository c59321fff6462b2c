"""Textual menu for the setup assistant.

All screen state lives in a SessionState value advanced by the pure reducer in
``niri_setup.core.state_machine``. This module only renders that value, turns
key presses into events, and runs the selected action in a worker.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from rich.console import Group
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from niri_setup.core.actions import ActionContext, ActionResult, ActionSpec, build_catalog
from niri_setup.core.config import SetupConfig
from niri_setup.core.state_machine import (
    ActionCompleted,
    Event,
    KeyEvent,
    Quit,
    RunAction,
    Screen,
    SessionState,
    initial_state,
    reduce,
)

logger = logging.getLogger(__name__)


class ActionFinished(Message):
    """Posted exactly once when a dispatched action returns."""

    def __init__(self, completed: ActionCompleted) -> None:
        super().__init__()
        self.completed = completed


class NiriSetupApp(App):
    CSS = """
    Screen { layout: vertical; padding: 1 2; }
    #title { height: 4; padding: 1 2; content-align: center middle; text-style: bold; }
    #body { height: auto; padding: 0 0; }
    #hint { dock: bottom; height: 1; }
    """

    BINDINGS = [
        Binding("up", "menu_key('up')", "Up", show=False),
        Binding("down", "menu_key('down')", "Down", show=False),
        Binding("k", "menu_key('k')", "Up", show=False),
        Binding("j", "menu_key('j')", "Down", show=False),
        Binding("enter", "menu_key('enter')", "Select", show=False),
        Binding("q", "menu_key('q')", "Quit", show=False),
        Binding("ctrl+c", "menu_key('ctrl+c')", "Quit", show=False, priority=True),
    ]

    def __init__(self, config: SetupConfig, catalog: Optional[Sequence[ActionSpec]] = None) -> None:
        super().__init__()
        self._config = config
        self._ui_theme = config.theme
        self.session: SessionState = initial_state(catalog or build_catalog(config))

    def compose(self) -> ComposeResult:
        yield Static("", id="title", markup=False)
        yield Static("", id="body", markup=False)
        yield Static("↑/↓ move  enter select  q quit", id="hint", markup=False)

    def on_mount(self) -> None:
        self.query_one("#title", Static).styles.width = self._ui_theme.view_width
        self.query_one("#body", Static).styles.width = self._ui_theme.view_width
        self._render_state()

    # ------------------------------------------------------------------
    # Event plumbing
    # ------------------------------------------------------------------
    def action_menu_key(self, key: str) -> None:
        self._dispatch(KeyEvent(key))

    async def action_quit(self) -> None:
        self._dispatch(KeyEvent("quit"))

    def on_action_finished(self, message: ActionFinished) -> None:
        self._dispatch(message.completed)

    def _dispatch(self, event: Event) -> None:
        self.session, effect = reduce(self.session, event)
        self._render_state()
        if isinstance(effect, Quit):
            self.exit(return_code=effect.return_code)
        elif isinstance(effect, RunAction):
            logger.info("Starting action %s", effect.action.label)
            self.run_worker(self._run_action(effect), exclusive=True, group="setup-action")

    async def _run_action(self, effect: RunAction) -> None:
        spec = effect.action
        ctx = ActionContext(config=self._config, logs=effect.logs)
        try:
            result = await asyncio.to_thread(spec.handler, ctx)
        except Exception as exc:
            logger.exception("Action %s raised", spec.label)
            result = ActionResult.failure(f"{spec.label} failed: {exc}")
        if result.ok:
            logger.info("Action %s finished", spec.label)
        else:
            logger.warning("Action %s failed: %s", spec.label, result.error)
        self.post_message(ActionFinished(ActionCompleted(spec.label, result)))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _render_state(self) -> None:
        state = self.session
        title = self.query_one("#title", Static)
        body = self.query_one("#body", Static)
        accent = self._ui_theme.accent

        if state.screen is Screen.MENU:
            title.update(Text(self._config.app_title, style=f"bold {accent}"))
            body.update(self._menu_renderable(state))
        elif state.screen is Screen.BUSY:
            title.update(Text(state.message, style=f"bold {accent}"))
            lines = [Text(entry, style=self._line_style(entry)) for entry in state.logs]
            lines.append(Text("Please wait...", style=self._ui_theme.log))
            body.update(Group(*lines))
        else:
            title.update(Text(self._config.app_title, style=f"bold {accent}"))
            body.update(Text(f"{state.message}\n\nPlease wait...", style=f"bold {accent}", justify="center"))

    def _line_style(self, line: str) -> str:
        if line.startswith("Warning:"):
            return self._ui_theme.warning
        return self._ui_theme.log

    def _menu_renderable(self, state: SessionState) -> Group:
        width = max(self._ui_theme.menu_item_width - 2, 1)
        rows = []
        for i, spec in enumerate(state.choices):
            if i == state.cursor:
                rows.append(Text(f"> {spec.label:<{width}}", style=f"bold {self._ui_theme.accent}"))
            else:
                rows.append(Text(f"  {spec.label:<{width}}", style=self._ui_theme.dim))
        if state.message:
            rows.append(Text(""))
            if state.message.startswith("Error:"):
                rows.append(Text(state.message, style=self._ui_theme.error))
            else:
                rows.extend(Text(line, style=self._line_style(line)) for line in state.message.split("\n"))
        return Group(*rows)


def run_textual(config: SetupConfig, catalog: Optional[Sequence[ActionSpec]] = None) -> int:
    app = NiriSetupApp(config=config, catalog=catalog)
    app.run()
    return app.return_code or 0
