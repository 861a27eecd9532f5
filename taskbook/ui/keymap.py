from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from taskbook.domain.enums import InputMode

logger = logging.getLogger(__name__)


class Action(Enum):
    QUIT = auto()
    SHOW_HELP = auto()
    TOGGLE_STATUS = auto()
    ADD_TASK = auto()
    EDIT_TASK = auto()
    DELETE_TASK = auto()
    TOGGLE_VIEW_MODE = auto()
    SHOW_DONE = auto()
    SHOW_UNDONE = auto()
    SEARCH = auto()
    PREV_DAY = auto()
    NEXT_DAY = auto()
    PREV_DAY_WITH_TASKS = auto()
    NEXT_DAY_WITH_TASKS = auto()
    JUMP_TO_TODAY = auto()
    TOGGLE_CALENDAR = auto()
    CALENDAR_LEFT = auto()
    CALENDAR_RIGHT = auto()
    CALENDAR_UP = auto()
    CALENDAR_DOWN = auto()
    CALENDAR_SELECT = auto()
    CYCLE_SORT_KEY = auto()
    CYCLE_GROUP_KEY = auto()
    TOGGLE_SORT_ORDER = auto()
    CURSOR_UP = auto()
    CURSOR_DOWN = auto()
    # Fixed keys, not configurable.
    FOCUS_NEXT = auto()
    FOCUS_PREV = auto()
    CONFIRM = auto()
    CANCEL = auto()
    BACKSPACE = auto()


@dataclass(frozen=True)
class KeyDefinition:
    name: str
    default: str
    help: str


KEY_DEFINITIONS: dict[Action, KeyDefinition] = {
    Action.SHOW_HELP: KeyDefinition("ShowHelp", "ctrl+b", "show/hide commands"),
    Action.QUIT: KeyDefinition("QuitApp", "q", "quit"),
    Action.TOGGLE_STATUS: KeyDefinition("ToggleStatus", "space", "toggle status"),
    Action.ADD_TASK: KeyDefinition("AddTask", "a", "add task"),
    Action.EDIT_TASK: KeyDefinition("EditTask", "e", "edit task"),
    Action.DELETE_TASK: KeyDefinition("DeleteTask", "d", "delete task"),
    Action.TOGGLE_VIEW_MODE: KeyDefinition(
        "ToggleViewMode", "ctrl+v", "toggle between the day's tasks and all tasks"
    ),
    Action.SHOW_DONE: KeyDefinition("ShowDoneTasks", "ctrl+d", "show only done tasks"),
    Action.SHOW_UNDONE: KeyDefinition("ShowUndoneTasks", "ctrl+u", "show only undone tasks"),
    Action.SEARCH: KeyDefinition("SearchTasks", "ctrl+f", "search tasks"),
    Action.PREV_DAY: KeyDefinition("PrevDay", "ctrl+left", "previous day"),
    Action.NEXT_DAY: KeyDefinition("NextDay", "ctrl+right", "next day"),
    Action.PREV_DAY_WITH_TASKS: KeyDefinition(
        "PrevDayWithTasks", "ctrl+shift+left", "previous day with tasks"
    ),
    Action.NEXT_DAY_WITH_TASKS: KeyDefinition(
        "NextDayWithTasks", "ctrl+shift+right", "next day with tasks"
    ),
    Action.JUMP_TO_TODAY: KeyDefinition("JumpToToday", "h", "jump to today"),
    Action.TOGGLE_CALENDAR: KeyDefinition("ToggleCalendarView", "c", "toggle calendar view"),
    Action.CALENDAR_LEFT: KeyDefinition("CalendarLeft", "left", "move left in calendar"),
    Action.CALENDAR_RIGHT: KeyDefinition("CalendarRight", "right", "move right in calendar"),
    Action.CALENDAR_UP: KeyDefinition("CalendarUp", "up", "move up in calendar"),
    Action.CALENDAR_DOWN: KeyDefinition("CalendarDown", "down", "move down in calendar"),
    Action.CALENDAR_SELECT: KeyDefinition("CalendarSelect", "enter", "select day in calendar"),
    Action.CYCLE_SORT_KEY: KeyDefinition("ToggleSortBy", "s", "cycle sort by"),
    Action.CYCLE_GROUP_KEY: KeyDefinition("ToggleGroupBy", "g", "cycle group by"),
    Action.TOGGLE_SORT_ORDER: KeyDefinition("ToggleSortOrder", "o", "toggle sort order"),
    Action.CURSOR_UP: KeyDefinition("CursorUp", "up,k", "select previous task"),
    Action.CURSOR_DOWN: KeyDefinition("CursorDown", "down,j", "select next task"),
}

CALENDAR_ACTIONS = frozenset({
    Action.CALENDAR_LEFT,
    Action.CALENDAR_RIGHT,
    Action.CALENDAR_UP,
    Action.CALENDAR_DOWN,
    Action.CALENDAR_SELECT,
})

FORM_KEYS = {
    "tab": Action.FOCUS_NEXT,
    "shift+tab": Action.FOCUS_PREV,
    "enter": Action.CONFIRM,
    "escape": Action.CANCEL,
    "backspace": Action.BACKSPACE,
}

SEARCH_KEYS = {
    "enter": Action.CONFIRM,
    "escape": Action.CANCEL,
    "backspace": Action.BACKSPACE,
}

DELETE_CONFIRM_KEYS = {
    "y": Action.CONFIRM,
    "Y": Action.CONFIRM,
    "n": Action.CANCEL,
    "N": Action.CANCEL,
    "escape": Action.CANCEL,
}

HELP_SECTIONS: tuple[tuple[str, tuple[Action, ...]], ...] = (
    (
        "Available Commands",
        (
            Action.QUIT,
            Action.SHOW_HELP,
            Action.TOGGLE_STATUS,
            Action.ADD_TASK,
            Action.EDIT_TASK,
            Action.DELETE_TASK,
            Action.TOGGLE_VIEW_MODE,
            Action.SHOW_DONE,
            Action.SHOW_UNDONE,
            Action.SEARCH,
            Action.TOGGLE_CALENDAR,
            Action.CYCLE_SORT_KEY,
            Action.CYCLE_GROUP_KEY,
            Action.TOGGLE_SORT_ORDER,
        ),
    ),
    (
        "Navigation Commands",
        (
            Action.CURSOR_UP,
            Action.CURSOR_DOWN,
            Action.PREV_DAY,
            Action.NEXT_DAY,
            Action.PREV_DAY_WITH_TASKS,
            Action.NEXT_DAY_WITH_TASKS,
        ),
    ),
    (
        "Calendar Commands",
        (
            Action.CALENDAR_LEFT,
            Action.CALENDAR_RIGHT,
            Action.CALENDAR_UP,
            Action.CALENDAR_DOWN,
            Action.CALENDAR_SELECT,
            Action.JUMP_TO_TODAY,
        ),
    ),
)


def default_key_mappings() -> dict[str, str]:
    return {definition.name: definition.default for definition in KEY_DEFINITIONS.values()}


def split_keys(value: str) -> tuple[str, ...]:
    return tuple(key.strip() for key in value.split(",") if key.strip())


class KeyMap:
    """Lookup table from physical key names to actions, built once at startup."""

    def __init__(self, bindings: Mapping[Action, tuple[str, ...]]) -> None:
        self._bindings = dict(bindings)
        self._lookup: dict[str, list[Action]] = {}
        for action, keys in self._bindings.items():
            for key in keys:
                self._lookup.setdefault(key, []).append(action)

    @classmethod
    def from_config(cls, overrides: Mapping[str, str] | None = None) -> KeyMap:
        overrides = dict(overrides or {})
        known = {definition.name for definition in KEY_DEFINITIONS.values()}
        for name in overrides.keys() - known:
            logger.warning("Ignoring key binding for unknown action %r", name)

        bindings: dict[Action, tuple[str, ...]] = {}
        for action, definition in KEY_DEFINITIONS.items():
            keys = split_keys(overrides.get(definition.name) or "")
            bindings[action] = keys or split_keys(definition.default)
        return cls(bindings)

    def keys_for(self, action: Action) -> tuple[str, ...]:
        return self._bindings.get(action, ())

    def help_key(self, action: Action) -> str:
        keys = self.keys_for(action)
        return keys[0] if keys else ""

    def resolve(self, key: str, mode: InputMode, calendar: bool = False) -> Optional[Action]:
        if mode in (InputMode.ADD, InputMode.EDIT):
            return FORM_KEYS.get(key)
        if mode is InputMode.SEARCH:
            return SEARCH_KEYS.get(key)
        if mode is InputMode.DELETE_CONFIRM:
            return DELETE_CONFIRM_KEYS.get(key)

        actions = self._lookup.get(key, [])
        if mode is InputMode.HELP:
            if key == "escape":
                return Action.CANCEL
            return next((a for a in actions if a in (Action.SHOW_HELP, Action.QUIT)), None)

        if calendar:
            if key == "escape":
                return Action.CANCEL
            for action in actions:
                if action in CALENDAR_ACTIONS:
                    return action
        if key == "slash":
            return Action.SEARCH
        return next((a for a in actions if a not in CALENDAR_ACTIONS), None)
