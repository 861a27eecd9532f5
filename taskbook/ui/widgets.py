from __future__ import annotations

from rich.style import Style
from rich.text import Text
from textual.widgets import Static

from taskbook.config import Styles
from taskbook.domain.entities import TaskEntity
from taskbook.domain.enums import GroupKey, InputMode, SortKey, StatusFilter, ViewMode
from taskbook.services.navigator import WEEKDAY_HEADERS
from taskbook.ui.keymap import HELP_SECTIONS, KEY_DEFINITIONS, Action, KeyMap
from taskbook.ui.state import FORM_FIELDS, ViewStateMachine

FILTER_LABELS = {
    StatusFilter.ALL: " (no filter)",
    StatusFilter.DONE: " (completed only)",
    StatusFilter.UNDONE: " (pending only)",
}

HELP_BAR = {
    InputMode.ADD: (("tab", "next field"), ("enter", "save"), ("esc", "cancel")),
    InputMode.EDIT: (("tab", "next field"), ("enter", "save"), ("esc", "cancel")),
    InputMode.DELETE_CONFIRM: (("y", "confirm"), ("n", "cancel")),
    InputMode.SEARCH: (("enter", "search"), ("esc", "cancel")),
}


def color(token: str) -> str:
    """Map a config color token to a rich color name (``"205"`` -> ``color(205)``)."""
    token = token.strip()
    return f"color({token})" if token.isdigit() else token


class Palette:
    def __init__(self, styles: Styles) -> None:
        self.border = Style(color=color(styles.border_color))
        self.accent = Style(color=color(styles.accent_color), bold=True)
        self.text = Style(color=color(styles.normal_text_color))
        self.selected = Style(
            color=color(styles.selected_text_color),
            bgcolor=color(styles.selected_bg_color),
        )
        self.banner = Style(
            color=color(styles.selected_text_color),
            bgcolor=color(styles.accent_color),
            bold=True,
        )
        self.error_banner = Style(
            color=color(styles.selected_text_color),
            bgcolor=color(styles.error_color),
            bold=True,
        )
        self.error = Style(color=color(styles.error_color))
        self.project = Style(color=color(styles.project_color))
        self.context = Style(color=color(styles.context_color))


def status_line(machine: ViewStateMachine) -> str:
    view = machine.view
    if view.view_mode is ViewMode.ALL:
        mode_part = "all tasks"
    else:
        mode_part = f"tasks due on {view.view_date.isoformat()}"

    filter_part = FILTER_LABELS[view.status_filter]
    if view.search_term:
        filter_part = f" (search filter: {view.search_term})"

    sort_part = ""
    if view.sort_key is not SortKey.DUE_DATE or view.group_key is not GroupKey.NONE:
        sort_part = f" | sorted by {view.sort_key.label} ({view.sort_order.value})"
        if view.group_key is not GroupKey.NONE:
            sort_part += f", grouped by {view.group_key.label}"

    return f"Showing {mode_part}{filter_part}{sort_part}"


def task_row(task: TaskEntity, palette: Palette) -> Text:
    row = Text("[x] " if task.status else "[ ] ")
    words = task.display_text.split(" ")
    for index, word in enumerate(words):
        if index:
            row.append(" ")
        if len(word) > 1 and word.startswith("+"):
            row.append(word, palette.project)
        elif len(word) > 1 and word.startswith("@"):
            row.append(word, palette.context)
        else:
            row.append(word)
    return row


def banner(title: str, style: Style) -> Text:
    text = Text()
    text.append(f" {title} ", style)
    return text


class TaskbookView(Static):
    """Single body widget redrawn from the state machine after every key."""

    DEFAULT_CSS = """
    TaskbookView {
        height: 1fr;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def __init__(self, machine: ViewStateMachine, keymap: KeyMap, styles: Styles, **kwargs) -> None:
        super().__init__(**kwargs)
        self._machine = machine
        self._keymap = keymap
        self._palette = Palette(styles)

    def on_mount(self) -> None:
        self.redraw()

    def redraw(self) -> None:
        self.update(self.render_state())

    def render_state(self) -> Text:
        machine = self._machine
        mode = machine.mode
        if mode is InputMode.NORMAL:
            body = self._render_calendar() if machine.in_calendar else self._render_list()
        elif mode is InputMode.ADD:
            body = self._render_form("Add New Task")
        elif mode is InputMode.EDIT:
            body = self._render_form("Edit Task")
        elif mode is InputMode.DELETE_CONFIRM:
            body = self._render_delete()
        elif mode is InputMode.SEARCH:
            body = self._render_search()
        else:
            body = self._render_help()

        if machine.error:
            body.append("\n\n")
            body.append(f"Error: {machine.error}", self._palette.error)
        body.append("\n")
        body.append_text(self._render_help_bar())
        return body

    def _render_list(self) -> Text:
        machine = self._machine
        palette = self._palette
        text = banner("Taskbook", palette.banner)
        text.append("\n\n")

        grouped = machine.view.group_key is not GroupKey.NONE
        selected = machine.selected_task
        for group in machine.groups:
            if grouped:
                text.append(f"== {group.name} ==\n", palette.accent)
            for task in group.tasks:
                row = task_row(task, palette)
                if selected is not None and task.id == selected.id:
                    row.stylize(palette.selected)
                text.append_text(row)
                text.append("\n")
            if grouped and len(machine.groups) > 1:
                text.append("\n")

        if not machine.tasks:
            text.append("No tasks\n", palette.border)
        text.append("\n")
        text.append(status_line(machine), palette.text)
        return text

    def _render_calendar(self) -> Text:
        machine = self._machine
        palette = self._palette
        month = machine.calendar.month
        text = banner(month.title, palette.banner)
        text.append("\n\n")
        text.append("".join(f"{name:<4}" for name in WEEKDAY_HEADERS), Style(bold=True))
        text.append("\n")

        today = machine.today
        for week in month.grid():
            if all(day is None for day in week):
                continue
            for day in week:
                if day is None:
                    text.append("    ")
                    continue
                style = None
                if day == machine.calendar.selected:
                    style = palette.banner
                elif day == today:
                    style = palette.selected
                elif day in machine.days_with_tasks:
                    style = palette.accent
                text.append(f"{day.day:<4}", style)
            text.append("\n")

        keys = self._keymap
        text.append("\n")
        text.append(
            "Navigate: ←→↑↓  |  "
            f"Select day: {keys.help_key(Action.CALENDAR_SELECT)}  |  "
            "Return to today: esc  |  "
            f"Exit: {keys.help_key(Action.TOGGLE_CALENDAR)}",
            palette.text,
        )
        return text

    def _render_form(self, title: str) -> Text:
        form = self._machine.form
        text = banner(title, self._palette.banner)
        text.append("\n\n")
        for index, label in enumerate(FORM_FIELDS):
            focused = index == form.focus
            text.append(f"{label}:\n")
            text.append("> " if focused else "  ", self._palette.accent)
            text.append(form.values[index])
            if focused:
                text.append("█", self._palette.accent)
            text.append("\n\n")
        return text

    def _render_delete(self) -> Text:
        task = self._machine.pending_task
        text = banner("Delete Task", self._palette.error_banner)
        text.append("\n\n")
        if task is not None:
            text.append("Are you sure you want to delete this task?\n\n")
            text.append(f"Title: {task.title}\n")
            text.append(f"Description: {task.description}\n\n")
            text.append("Press Y to confirm, N to cancel", Style(bold=True))
        return text

    def _render_search(self) -> Text:
        text = banner("Search Tasks", self._palette.banner)
        text.append("\n\nEnter search term to find tasks:\n\n")
        text.append("> ", self._palette.accent)
        text.append(self._machine.search_buffer)
        text.append("█", self._palette.accent)
        return text

    def _render_help(self) -> Text:
        text = Text()
        for index, (heading, actions) in enumerate(HELP_SECTIONS):
            if index:
                text.append("\n")
            text.append(heading, Style(bold=True))
            text.append("\n\n")
            for action in actions:
                text.append(KEY_DEFINITIONS[action].help, self._palette.text)
                text.append(": ")
                text.append(", ".join(self._keymap.keys_for(action)), self._palette.accent)
                text.append("\n")
        return text

    def _render_help_bar(self) -> Text:
        machine = self._machine
        keys = self._keymap
        entries = HELP_BAR.get(machine.mode)
        if entries is None:
            if machine.mode is InputMode.HELP:
                entries = (
                    (f"{keys.help_key(Action.SHOW_HELP)}/esc", "back"),
                    (keys.help_key(Action.QUIT), "quit"),
                )
            elif machine.in_calendar:
                entries = (
                    ("←↑↓→", "nav"),
                    (keys.help_key(Action.CALENDAR_SELECT), "select"),
                    (keys.help_key(Action.JUMP_TO_TODAY), "today"),
                    (keys.help_key(Action.TOGGLE_CALENDAR), "exit cal"),
                    (keys.help_key(Action.SHOW_HELP), "help"),
                    (keys.help_key(Action.QUIT), "quit"),
                )
            else:
                entries = tuple(
                    (keys.help_key(action), label)
                    for action, label in (
                        (Action.ADD_TASK, "add"),
                        (Action.EDIT_TASK, "edit"),
                        (Action.DELETE_TASK, "del"),
                        (Action.TOGGLE_STATUS, "toggle"),
                        (Action.TOGGLE_VIEW_MODE, "view"),
                        (Action.SEARCH, "search"),
                        (Action.TOGGLE_CALENDAR, "cal"),
                        (Action.SHOW_HELP, "help"),
                        (Action.QUIT, "quit"),
                    )
                )

        bar = Text()
        for index, (key, label) in enumerate(entries):
            if index:
                bar.append(" • ", self._palette.border)
            bar.append(key, self._palette.accent)
            bar.append(f" {label}", self._palette.text)
        return bar
