from __future__ import annotations

import logging

from taskbook.domain.enums import InputMode
from taskbook.ui.keymap import KEY_DEFINITIONS, Action, KeyMap, default_key_mappings, split_keys


def test_defaults_resolve_in_normal_mode():
    keymap = KeyMap.from_config()

    assert keymap.resolve("a", InputMode.NORMAL) is Action.ADD_TASK
    assert keymap.resolve("space", InputMode.NORMAL) is Action.TOGGLE_STATUS
    assert keymap.resolve("ctrl+shift+right", InputMode.NORMAL) is Action.NEXT_DAY_WITH_TASKS
    assert keymap.resolve("j", InputMode.NORMAL) is Action.CURSOR_DOWN
    assert keymap.resolve("slash", InputMode.NORMAL) is Action.SEARCH
    assert keymap.resolve("z", InputMode.NORMAL) is None


def test_calendar_keys_win_only_in_calendar():
    keymap = KeyMap.from_config()

    assert keymap.resolve("up", InputMode.NORMAL) is Action.CURSOR_UP
    assert keymap.resolve("up", InputMode.NORMAL, calendar=True) is Action.CALENDAR_UP
    assert keymap.resolve("left", InputMode.NORMAL) is None
    assert keymap.resolve("enter", InputMode.NORMAL, calendar=True) is Action.CALENDAR_SELECT
    assert keymap.resolve("escape", InputMode.NORMAL, calendar=True) is Action.CANCEL
    assert keymap.resolve("a", InputMode.NORMAL, calendar=True) is Action.ADD_TASK


def test_overrides_replace_defaults(caplog):
    with caplog.at_level(logging.WARNING):
        keymap = KeyMap.from_config({"AddTask": "n, insert", "Bogus": "x", "QuitApp": ""})

    assert keymap.keys_for(Action.ADD_TASK) == ("n", "insert")
    assert keymap.resolve("insert", InputMode.NORMAL) is Action.ADD_TASK
    assert keymap.resolve("a", InputMode.NORMAL) is None
    assert keymap.keys_for(Action.QUIT) == ("q",)
    assert "Bogus" in caplog.text


def test_fixed_keys_per_mode():
    keymap = KeyMap.from_config()

    assert keymap.resolve("tab", InputMode.ADD) is Action.FOCUS_NEXT
    assert keymap.resolve("shift+tab", InputMode.EDIT) is Action.FOCUS_PREV
    assert keymap.resolve("a", InputMode.ADD) is None
    assert keymap.resolve("backspace", InputMode.SEARCH) is Action.BACKSPACE
    assert keymap.resolve("Y", InputMode.DELETE_CONFIRM) is Action.CONFIRM
    assert keymap.resolve("n", InputMode.DELETE_CONFIRM) is Action.CANCEL
    assert keymap.resolve("escape", InputMode.HELP) is Action.CANCEL
    assert keymap.resolve("ctrl+b", InputMode.HELP) is Action.SHOW_HELP
    assert keymap.resolve("a", InputMode.HELP) is None


def test_default_mappings_cover_every_definition():
    mappings = default_key_mappings()

    assert len(mappings) == len(KEY_DEFINITIONS)
    assert mappings["ToggleCalendarView"] == "c"
    assert split_keys(" up , k ,") == ("up", "k")
