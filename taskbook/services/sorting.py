from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from taskbook.domain.entities import TaskEntity, TaskGroup
from taskbook.domain.enums import GroupKey, SortKey, SortOrder

NO_PROJECT = "No Project"
NO_CONTEXT = "No Context"
NO_DUE_DATE = "No Due Date"

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

SORT_KEYS: dict[SortKey, Callable[[TaskEntity], Any]] = {
    SortKey.TITLE: lambda task: task.title.lower(),
    SortKey.DESCRIPTION: lambda task: task.description.lower(),
    SortKey.DUE_DATE: lambda task: task.due_date or date.min,
    SortKey.PROJECT: lambda task: task.first_project.lower(),
    SortKey.CONTEXT: lambda task: task.first_context.lower(),
    SortKey.CREATED: lambda task: task.created,
    SortKey.STATUS: lambda task: task.status,
}


def sort_tasks(tasks: Iterable[TaskEntity], key: SortKey, order: SortOrder) -> list[TaskEntity]:
    # sorted() is stable, so ties keep the order the store returned them in.
    return sorted(tasks, key=SORT_KEYS[key], reverse=order is SortOrder.DESC)


def _project_group(task: TaskEntity) -> str:
    return f"+{task.first_project}" if task.first_project else NO_PROJECT


def _context_group(task: TaskEntity) -> str:
    return f"@{task.first_context}" if task.first_context else NO_CONTEXT


def _dated(format_day: Callable[[date], str]) -> Callable[[TaskEntity], str]:
    def name(task: TaskEntity) -> str:
        if task.due_date is None:
            return NO_DUE_DATE
        return format_day(task.due_date)

    return name


def _week_name(day: date) -> str:
    iso = day.isocalendar()
    return f"Week {iso.week}, {iso.year}"


def _month_name(day: date) -> str:
    return f"{MONTH_NAMES[day.month - 1]} {day.year:04d}"


GROUP_NAMES: dict[GroupKey, Callable[[TaskEntity], str]] = {
    GroupKey.PROJECT: _project_group,
    GroupKey.CONTEXT: _context_group,
    GroupKey.DAILY: _dated(lambda day: day.isoformat()),
    GroupKey.WEEKLY: _dated(_week_name),
    GroupKey.MONTHLY: _dated(_month_name),
    GroupKey.YEARLY: _dated(lambda day: f"{day.year:04d}"),
}


def group_name(task: TaskEntity, group_key: GroupKey) -> str:
    if group_key is GroupKey.NONE:
        return ""
    return GROUP_NAMES[group_key](task)


def group_tasks(
    tasks: Iterable[TaskEntity],
    group_key: GroupKey,
    sort_key: SortKey,
    order: SortOrder,
) -> list[TaskGroup]:
    """Partition tasks into named groups, each sorted by the current sort.

    Groups are ordered by plain string comparison of their names, independent
    of the sort order, so "April 2024" comes before "March 2024".
    """
    if group_key is GroupKey.NONE:
        return [TaskGroup(name="", tasks=sort_tasks(tasks, sort_key, order))]

    buckets: dict[str, list[TaskEntity]] = {}
    for task in tasks:
        buckets.setdefault(group_name(task, group_key), []).append(task)

    return [
        TaskGroup(name=name, tasks=sort_tasks(buckets[name], sort_key, order))
        for name in sorted(buckets)
    ]


def flatten(groups: Iterable[TaskGroup]) -> list[TaskEntity]:
    return [task for group in groups for task in group.tasks]
