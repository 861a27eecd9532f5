from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Optional

from taskbook.domain.entities import TaskEntity, TaskGroup
from taskbook.domain.enums import InputMode, StatusFilter, ViewMode
from taskbook.domain.errors import TaskbookError, ValidationError
from taskbook.domain.filters import ViewState
from taskbook.services.navigator import CalendarMonth, DateNavigator
from taskbook.services.sorting import flatten
from taskbook.services.task_service import TaskService
from taskbook.ui.keymap import Action

logger = logging.getLogger(__name__)

FORM_FIELDS = ("Title", "Description", "Due Date (YYYY-MM-DD)")


@dataclass
class FormState:
    values: list[str] = field(default_factory=lambda: ["", "", ""])
    focus: int = 0

    @property
    def title(self) -> str:
        return self.values[0]

    @property
    def description(self) -> str:
        return self.values[1]

    @property
    def due_date(self) -> str:
        return self.values[2]

    @property
    def on_last_field(self) -> bool:
        return self.focus == len(FORM_FIELDS) - 1

    def reset(self, title: str = "", description: str = "", due_date: str = "") -> None:
        self.values = [title, description, due_date]
        self.focus = 0

    def focus_next(self) -> None:
        self.focus = (self.focus + 1) % len(FORM_FIELDS)

    def focus_prev(self) -> None:
        self.focus = (self.focus - 1) % len(FORM_FIELDS)

    def insert(self, text: str) -> None:
        self.values[self.focus] += text

    def backspace(self) -> None:
        self.values[self.focus] = self.values[self.focus][:-1]


@dataclass
class CalendarState:
    selected: date

    @property
    def month(self) -> CalendarMonth:
        return CalendarMonth.containing(self.selected)

    def move(self, days: int) -> None:
        self.selected += timedelta(days=days)


class ViewStateMachine:
    """Interactive modes and their transitions over the task list.

    Consumes Action values resolved by the key map, plus typed text while a
    form or the search prompt is open. Store failures never escape: the
    message is kept in ``error`` until the next action and the last good view
    stays in place.
    """

    def __init__(
        self,
        service: TaskService,
        navigator: Optional[DateNavigator] = None,
    ) -> None:
        self._service = service
        self._navigator = navigator or DateNavigator(service.count_matching)

        today = service.today()
        self.mode = InputMode.NORMAL
        self.view = ViewState(view_date=today)
        self.groups: list[TaskGroup] = []
        self.cursor = 0
        self.form = FormState()
        self.search_buffer = ""
        self.pending_task: Optional[TaskEntity] = None
        self.calendar = CalendarState(selected=today)
        self.days_with_tasks: set[date] = set()
        self.error: Optional[str] = None
        self.quit_requested = False
        self._list_mode = ViewMode.BY_DATE

        self._normal_actions: dict[Action, Callable[[], None]] = {
            Action.QUIT: self._quit,
            Action.SHOW_HELP: self._show_help,
            Action.ADD_TASK: self._start_add,
            Action.EDIT_TASK: self._start_edit,
            Action.DELETE_TASK: self._start_delete,
            Action.TOGGLE_STATUS: self._toggle_status,
            Action.TOGGLE_VIEW_MODE: self._toggle_view_mode,
            Action.PREV_DAY: lambda: self._shift_day(-1),
            Action.NEXT_DAY: lambda: self._shift_day(1),
            Action.PREV_DAY_WITH_TASKS: lambda: self._jump_to_day_with_tasks(-1),
            Action.NEXT_DAY_WITH_TASKS: lambda: self._jump_to_day_with_tasks(1),
            Action.JUMP_TO_TODAY: self._load_today_view,
            Action.SHOW_DONE: lambda: self._toggle_status_filter(StatusFilter.DONE),
            Action.SHOW_UNDONE: lambda: self._toggle_status_filter(StatusFilter.UNDONE),
            Action.SEARCH: self._start_search,
            Action.CYCLE_SORT_KEY: self._cycle_sort_key,
            Action.CYCLE_GROUP_KEY: self._cycle_group_key,
            Action.TOGGLE_SORT_ORDER: self._toggle_sort_order,
            Action.TOGGLE_CALENDAR: self._toggle_calendar,
            Action.CURSOR_UP: lambda: self._move_cursor(-1),
            Action.CURSOR_DOWN: lambda: self._move_cursor(1),
        }
        self._calendar_actions: dict[Action, Callable[[], None]] = {
            Action.CALENDAR_LEFT: lambda: self._move_calendar(-1),
            Action.CALENDAR_RIGHT: lambda: self._move_calendar(1),
            Action.CALENDAR_UP: lambda: self._move_calendar(-7),
            Action.CALENDAR_DOWN: lambda: self._move_calendar(7),
            Action.CALENDAR_SELECT: self._select_calendar_day,
            Action.CANCEL: self._leave_calendar,
        }

        self.reload()

    # -------------------- exposed state --------------------
    @property
    def tasks(self) -> list[TaskEntity]:
        return flatten(self.groups)

    @property
    def selected_task(self) -> Optional[TaskEntity]:
        tasks = self.tasks
        if not tasks:
            return None
        return tasks[min(self.cursor, len(tasks) - 1)]

    @property
    def today(self) -> date:
        return self._service.today()

    @property
    def in_calendar(self) -> bool:
        return self.view.view_mode is ViewMode.CALENDAR

    # -------------------- event entry points --------------------
    def handle(self, action: Action) -> None:
        self.error = None
        try:
            if self.mode is InputMode.NORMAL:
                self._handle_normal(action)
            elif self.mode in (InputMode.ADD, InputMode.EDIT):
                self._handle_form(action)
            elif self.mode is InputMode.DELETE_CONFIRM:
                self._handle_delete_confirm(action)
            elif self.mode is InputMode.SEARCH:
                self._handle_search(action)
            elif self.mode is InputMode.HELP:
                self._handle_help(action)
        except TaskbookError as exc:
            logger.warning("Action %s failed: %s", action.name, exc)
            self.error = str(exc)
            if not isinstance(exc, ValidationError):
                self.mode = InputMode.NORMAL
                self.pending_task = None

    def insert_text(self, text: str) -> None:
        if self.mode in (InputMode.ADD, InputMode.EDIT):
            self.form.insert(text)
        elif self.mode is InputMode.SEARCH:
            self.search_buffer += text

    def reload(self) -> None:
        try:
            groups = self._service.load_view(self.view)
            if self.in_calendar:
                month = self.calendar.month
                self.days_with_tasks = self._service.due_days_between(
                    month.first_day, month.last_day
                )
        except TaskbookError as exc:
            logger.warning("Reload failed: %s", exc)
            self.error = str(exc)
            return
        self.groups = groups
        self.cursor = max(0, min(self.cursor, len(self.tasks) - 1))

    # -------------------- normal mode --------------------
    def _handle_normal(self, action: Action) -> None:
        if self.in_calendar and action in self._calendar_actions:
            self._calendar_actions[action]()
            return
        handler = self._normal_actions.get(action)
        if handler is not None:
            handler()

    def _quit(self) -> None:
        self.quit_requested = True

    def _show_help(self) -> None:
        self.mode = InputMode.HELP

    def _start_add(self) -> None:
        self.mode = InputMode.ADD
        self.pending_task = None
        self.form.reset(due_date=self.view.view_date.isoformat())

    def _start_edit(self) -> None:
        task = self.selected_task
        if task is None:
            return
        self.mode = InputMode.EDIT
        self.pending_task = task
        due = task.due_date or self.view.view_date
        self.form.reset(task.title, task.description, due.isoformat())

    def _start_delete(self) -> None:
        task = self.selected_task
        if task is None:
            return
        self.mode = InputMode.DELETE_CONFIRM
        self.pending_task = task

    def _toggle_status(self) -> None:
        task = self.selected_task
        if task is None:
            return
        updated = self._service.toggle_status(task)
        # Patch the one visible row instead of reloading the whole view.
        self.groups = [
            TaskGroup(
                name=group.name,
                tasks=[updated if item.id == updated.id else item for item in group.tasks],
            )
            for group in self.groups
        ]

    def _toggle_view_mode(self) -> None:
        if self.view.view_mode is ViewMode.BY_DATE:
            self._set_view(view_mode=ViewMode.ALL)
        else:
            self._set_view(view_mode=ViewMode.BY_DATE)

    def _shift_day(self, days: int) -> None:
        if self.view.view_mode is not ViewMode.BY_DATE:
            return
        self._set_view(view_date=self.view.view_date + timedelta(days=days))

    def _jump_to_day_with_tasks(self, direction: int) -> None:
        if self.view.view_mode is not ViewMode.BY_DATE:
            return
        found = self._navigator.find_adjacent_date(self.view.view_date, direction)
        if found is None:
            return
        self._set_view(view_date=found)

    def _load_today_view(self) -> None:
        self._set_view(view_date=self._service.today(), view_mode=ViewMode.BY_DATE)

    def _toggle_status_filter(self, target: StatusFilter) -> None:
        if self.view.status_filter is target:
            self._set_view(status_filter=StatusFilter.ALL)
        else:
            self._set_view(status_filter=target)

    def _start_search(self) -> None:
        self.mode = InputMode.SEARCH
        self.search_buffer = ""

    def _cycle_sort_key(self) -> None:
        self._set_view(sort_key=self.view.sort_key.next())

    def _cycle_group_key(self) -> None:
        self._set_view(group_key=self.view.group_key.next())

    def _toggle_sort_order(self) -> None:
        self._set_view(sort_order=self.view.sort_order.flipped())

    def _move_cursor(self, delta: int) -> None:
        count = len(self.tasks)
        if count:
            self.cursor = max(0, min(self.cursor + delta, count - 1))

    def _set_view(self, **changes) -> None:
        self.view = replace(self.view, **changes)
        self.reload()

    # -------------------- calendar --------------------
    def _toggle_calendar(self) -> None:
        if self.in_calendar:
            self._set_view(view_mode=self._list_mode)
            return
        self._list_mode = self.view.view_mode
        self.calendar = CalendarState(selected=self.view.view_date)
        self._set_view(view_mode=ViewMode.CALENDAR)

    def _move_calendar(self, days: int) -> None:
        month = self.calendar.month
        self.calendar.move(days)
        if self.calendar.month != month:
            self.reload()

    def _select_calendar_day(self) -> None:
        self._set_view(view_date=self.calendar.selected, view_mode=ViewMode.BY_DATE)

    def _leave_calendar(self) -> None:
        self._load_today_view()

    # -------------------- forms --------------------
    def _handle_form(self, action: Action) -> None:
        if action is Action.FOCUS_NEXT:
            self.form.focus_next()
        elif action is Action.FOCUS_PREV:
            self.form.focus_prev()
        elif action is Action.BACKSPACE:
            self.form.backspace()
        elif action is Action.CANCEL:
            self._close_form()
        elif action is Action.CONFIRM:
            if self.form.on_last_field:
                self._submit_form()
            else:
                self.form.focus_next()

    def _submit_form(self) -> None:
        form = self.form
        default_date = self.view.view_date
        if self.mode is InputMode.ADD:
            self._service.create_from_form(
                form.title, form.description, form.due_date, default_date
            )
            self._close_form()
            self._load_today_view()
        elif self.pending_task is not None:
            self._service.update_from_form(
                self.pending_task, form.title, form.description, form.due_date, default_date
            )
            self._close_form()
            self.reload()
        else:
            self._close_form()

    def _close_form(self) -> None:
        self.mode = InputMode.NORMAL
        self.pending_task = None
        self.form.reset(due_date=self.view.view_date.isoformat())

    # -------------------- delete / search / help --------------------
    def _handle_delete_confirm(self, action: Action) -> None:
        if action is Action.CONFIRM:
            target = self.pending_task
            self.mode = InputMode.NORMAL
            self.pending_task = None
            if target is not None:
                self._service.delete_task(target.id)
                self._load_today_view()
        elif action is Action.CANCEL:
            self.mode = InputMode.NORMAL
            self.pending_task = None

    def _handle_search(self, action: Action) -> None:
        if action is Action.BACKSPACE:
            self.search_buffer = self.search_buffer[:-1]
        elif action is Action.CONFIRM:
            self.mode = InputMode.NORMAL
            logger.debug("Searching for: %s", self.search_buffer)
            self._set_view(search_term=self.search_buffer)
        elif action is Action.CANCEL:
            self.mode = InputMode.NORMAL
            self._set_view(search_term="")

    def _handle_help(self, action: Action) -> None:
        if action in (Action.CANCEL, Action.SHOW_HELP):
            self.mode = InputMode.NORMAL
        elif action is Action.QUIT:
            self.quit_requested = True
