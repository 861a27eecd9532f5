"""
Taskbook terminal UI.

Every key press is resolved to an Action by the key map and handed to the
view state machine; the body is then redrawn from the machine's state.
"""

from __future__ import annotations

import logging

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding

from taskbook.config import Styles
from taskbook.domain.enums import InputMode
from taskbook.ui.keymap import KeyMap
from taskbook.ui.state import ViewStateMachine
from taskbook.ui.widgets import TaskbookView

logger = logging.getLogger(__name__)

TEXT_MODES = (InputMode.ADD, InputMode.EDIT, InputMode.SEARCH)


class TaskbookApp(App):
    """Full-screen task list."""

    TITLE = "Taskbook"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        background: $surface;
    }
    """

    # Textual handles these keys itself unless they are claimed first.
    BINDINGS = [
        Binding("tab", "route_key('tab')", show=False, priority=True),
        Binding("shift+tab", "route_key('shift+tab')", show=False, priority=True),
        Binding("ctrl+c", "route_key('ctrl+c')", show=False, priority=True),
    ]

    def __init__(
        self,
        machine: ViewStateMachine,
        keymap: KeyMap,
        styles: Styles,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._machine = machine
        self._keymap = keymap
        self._styles = styles

    def compose(self) -> ComposeResult:
        yield TaskbookView(self._machine, self._keymap, self._styles, id="body")

    def on_key(self, event: events.Key) -> None:
        if self.route_key(event.key, event.character):
            event.stop()
            event.prevent_default()

    def action_route_key(self, key: str) -> None:
        self.route_key(key)

    def route_key(self, key: str, character: str | None = None) -> bool:
        machine = self._machine
        action = self._keymap.resolve(key, machine.mode, calendar=machine.in_calendar)
        if action is None and character and character != key:
            action = self._keymap.resolve(character, machine.mode, calendar=machine.in_calendar)

        if action is not None:
            logger.debug("Key %s -> %s", key, action.name)
            machine.handle(action)
        elif machine.mode in TEXT_MODES and character and character.isprintable():
            machine.insert_text(character)
        else:
            return False

        if machine.quit_requested:
            self.exit()
        else:
            self.query_one(TaskbookView).redraw()
        return True


def run(machine: ViewStateMachine, keymap: KeyMap, styles: Styles) -> None:
    """Run the TUI application."""
    app = TaskbookApp(machine, keymap, styles)
    app.run()
