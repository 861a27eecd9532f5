from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taskbook.domain.entities import TaskEntity
from taskbook.domain.enums import OrderHint
from taskbook.domain.errors import NotFoundError, StorageError
from taskbook.domain.filters import AnyOf, Clause, Contains, DueBetween, DueOn, Predicate, StatusIs
from taskbook.domain.tags import decode_tags, encode_tags

from .models import TodoModel, utcnow

logger = logging.getLogger(__name__)

TEXT_COLUMNS = {
    "title": TodoModel.title,
    "description": TodoModel.description,
    "projects": TodoModel.projects,
    "contexts": TodoModel.contexts,
}

ORDERINGS = {
    OrderHint.DUE_DATE_DESC: (TodoModel.duedate.desc(), TodoModel.id.asc()),
    OrderHint.DUE_DATE_ASC: (TodoModel.duedate.asc(), TodoModel.id.asc()),
}


def _to_entity(model: TodoModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        description=model.description or "",
        status=bool(model.status),
        created=model.created,
        last_modified=model.lastmodified,
        due_date=model.duedate.date() if model.duedate else None,
        projects=decode_tags(model.projects),
        contexts=decode_tags(model.contexts),
    )


def _to_timestamp(value: Optional[date]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.combine(value, time.min)


def _clause_expression(clause: Clause):
    if isinstance(clause, DueOn):
        return func.date(TodoModel.duedate) == clause.day.isoformat()
    if isinstance(clause, DueBetween):
        return func.date(TodoModel.duedate).between(
            clause.start.isoformat(), clause.end.isoformat()
        )
    if isinstance(clause, StatusIs):
        return TodoModel.status == clause.done
    if isinstance(clause, Contains):
        # instr() keeps the match case-sensitive and treats % and _ literally.
        column = func.coalesce(TEXT_COLUMNS[clause.field], "")
        return func.instr(column, clause.term) > 0
    if isinstance(clause, AnyOf):
        return or_(*(_clause_expression(inner) for inner in clause.clauses))
    raise TypeError(f"Unsupported clause: {clause!r}")


def _apply_predicate(stmt, predicate: Predicate):
    for clause in predicate.clauses:
        stmt = stmt.where(_clause_expression(clause))
    return stmt


class TaskRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Database operation failed")
            raise StorageError(f"Database error: {exc}") from exc

    def query(
        self,
        predicate: Predicate,
        order_hint: OrderHint = OrderHint.DUE_DATE_DESC,
    ) -> list[TaskEntity]:
        with self._session() as session:
            stmt = _apply_predicate(select(TodoModel), predicate)
            stmt = stmt.order_by(*ORDERINGS[order_hint])
            tasks = [_to_entity(task) for task in session.scalars(stmt)]
        logger.debug("Loaded %d tasks from database", len(tasks))
        return tasks

    def count_matching(self, predicate: Predicate) -> int:
        with self._session() as session:
            stmt = _apply_predicate(select(func.count()).select_from(TodoModel), predicate)
            return session.scalar(stmt) or 0

    def list_due_days(self, start: date, end: date) -> set[date]:
        with self._session() as session:
            day = func.date(TodoModel.duedate)
            stmt = _apply_predicate(
                select(day).distinct(), Predicate((DueBetween(start, end),))
            )
            return {date.fromisoformat(value) for value in session.scalars(stmt) if value}

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session() as session:
            task = session.get(TodoModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, data: dict) -> TaskEntity:
        with self._session() as session:
            now = utcnow()
            task = TodoModel(
                status=bool(data.get("status", False)),
                title=data.get("title", ""),
                description=data.get("description", ""),
                duedate=_to_timestamp(data.get("due_date")),
                projects=encode_tags(data.get("projects", ())),
                contexts=encode_tags(data.get("contexts", ())),
                created=now,
                lastmodified=now,
            )
            session.add(task)
            session.commit()
            session.refresh(task)
            logger.info("Added task %s", task.id)
            return _to_entity(task)

    def update_task(self, entity: TaskEntity) -> TaskEntity:
        with self._session() as session:
            task = session.get(TodoModel, entity.id)
            if not task:
                raise NotFoundError(entity.id)
            task.status = entity.status
            task.title = entity.title
            task.description = entity.description
            task.duedate = _to_timestamp(entity.due_date)
            task.projects = encode_tags(entity.projects)
            task.contexts = encode_tags(entity.contexts)
            task.lastmodified = utcnow()
            session.commit()
            session.refresh(task)
            logger.info("Updated task %s", task.id)
            return _to_entity(task)

    def set_status(self, task_id: int, status: bool) -> TaskEntity:
        with self._session() as session:
            task = session.get(TodoModel, task_id)
            if not task:
                raise NotFoundError(task_id)
            task.status = status
            task.lastmodified = utcnow()
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def delete_task(self, task_id: int) -> int:
        with self._session() as session:
            result = session.execute(delete(TodoModel).where(TodoModel.id == task_id))
            session.commit()
            logger.info("Deleted task %s (%d row(s))", task_id, result.rowcount)
            return result.rowcount

    def purge(self, predicate: Predicate) -> int:
        with self._session() as session:
            stmt = _apply_predicate(delete(TodoModel), predicate)
            result = session.execute(stmt.execution_options(synchronize_session=False))
            session.commit()
            logger.info("Purged %d task(s)", result.rowcount)
            return result.rowcount
