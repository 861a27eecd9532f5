from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .entities import TaskEntity
from .enums import GroupKey, SortKey, SortOrder, StatusFilter, ViewMode
from .tags import CONTEXT_SIGIL, PROJECT_SIGIL, encode_tags

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("title", "description", "projects", "contexts")


@dataclass(frozen=True)
class DueOn:
    day: date


@dataclass(frozen=True)
class DueBetween:
    start: date
    end: date


@dataclass(frozen=True)
class StatusIs:
    done: bool


@dataclass(frozen=True)
class Contains:
    field: str
    term: str

    def __post_init__(self) -> None:
        if self.field not in TEXT_FIELDS:
            raise ValueError(f"Unknown text field: {self.field}")


@dataclass(frozen=True)
class AnyOf:
    clauses: tuple[Contains, ...]


Clause = Union[DueOn, DueBetween, StatusIs, Contains, AnyOf]


def _field_text(task: TaskEntity, name: str) -> str:
    if name == "projects":
        return encode_tags(task.projects)
    if name == "contexts":
        return encode_tags(task.contexts)
    return getattr(task, name) or ""


def _clause_matches(clause: Clause, task: TaskEntity) -> bool:
    if isinstance(clause, DueOn):
        return task.due_date is not None and task.due_date == clause.day
    if isinstance(clause, DueBetween):
        return task.due_date is not None and clause.start <= task.due_date <= clause.end
    if isinstance(clause, StatusIs):
        return bool(task.status) == clause.done
    if isinstance(clause, Contains):
        return clause.term in _field_text(task, clause.field)
    if isinstance(clause, AnyOf):
        return any(_clause_matches(inner, task) for inner in clause.clauses)
    raise TypeError(f"Unsupported clause: {clause!r}")


@dataclass(frozen=True)
class Predicate:
    """A conjunction of clauses; the empty predicate matches every task."""

    clauses: tuple[Clause, ...] = ()

    def and_(self, clause: Clause) -> Predicate:
        return Predicate(self.clauses + (clause,))

    def matches(self, task: TaskEntity) -> bool:
        return all(_clause_matches(clause, task) for clause in self.clauses)


def search_clause(term: str) -> Optional[AnyOf]:
    if not term:
        return None
    if term.startswith(PROJECT_SIGIL) and len(term) > 1:
        return AnyOf((Contains("projects", term[1:]), Contains("description", term)))
    if term.startswith(CONTEXT_SIGIL) and len(term) > 1:
        return AnyOf((Contains("contexts", term[1:]), Contains("description", term)))
    return AnyOf((Contains("title", term), Contains("description", term)))


def build_predicate(
    view_mode: ViewMode,
    view_date: date,
    status_filter: StatusFilter,
    search_term: str,
) -> Predicate:
    predicate = Predicate()

    if view_mode is ViewMode.BY_DATE:
        predicate = predicate.and_(DueOn(view_date))

    if status_filter is StatusFilter.DONE:
        predicate = predicate.and_(StatusIs(True))
    elif status_filter is StatusFilter.UNDONE:
        predicate = predicate.and_(StatusIs(False))

    clause = search_clause(search_term)
    if clause is not None:
        predicate = predicate.and_(clause)

    logger.debug("Built predicate: %s", predicate)
    return predicate


def build_purge_predicate(
    due_on: Optional[date] = None,
    project: str = "",
    done: bool = False,
    undone: bool = False,
) -> Predicate:
    predicate = Predicate()
    if due_on is not None:
        predicate = predicate.and_(DueOn(due_on))
    if project:
        predicate = predicate.and_(Contains("projects", project))
    if done:
        predicate = predicate.and_(StatusIs(True))
    elif undone:
        predicate = predicate.and_(StatusIs(False))
    return predicate


@dataclass(frozen=True)
class ViewState:
    view_date: date
    view_mode: ViewMode = ViewMode.BY_DATE
    status_filter: StatusFilter = StatusFilter.ALL
    search_term: str = ""
    sort_key: SortKey = SortKey.DUE_DATE
    sort_order: SortOrder = SortOrder.ASC
    group_key: GroupKey = GroupKey.NONE

    def predicate(self) -> Predicate:
        return build_predicate(
            self.view_mode, self.view_date, self.status_filter, self.search_term
        )
