from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from taskbook.domain.entities import TaskEntity
from taskbook.domain.enums import OrderHint
from taskbook.domain.errors import NotFoundError
from taskbook.domain.filters import Predicate
from taskbook.infra.db import create_db_engine, create_session_factory, init_db
from taskbook.infra.repository import TaskRepository
from taskbook.services.task_service import TaskService

TODAY = date(2024, 3, 1)


class FakeRepo:
    def __init__(self) -> None:
        self.tasks: list[TaskEntity] = []
        self._id = 1
        self._clock = datetime(2024, 1, 1, 9, 0)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def query(self, predicate: Predicate, order_hint: OrderHint = OrderHint.DUE_DATE_DESC) -> list[TaskEntity]:
        return [task for task in self.tasks if predicate.matches(task)]

    def count_matching(self, predicate: Predicate) -> int:
        return len(self.query(predicate))

    def list_due_days(self, start: date, end: date) -> set[date]:
        return {t.due_date for t in self.tasks if t.due_date and start <= t.due_date <= end}

    def get_task(self, task_id: int) -> TaskEntity | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def create_task(self, data: dict) -> TaskEntity:
        now = self._tick()
        task = TaskEntity(
            id=self._id,
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=bool(data.get("status", False)),
            created=now,
            last_modified=now,
            due_date=data.get("due_date"),
            projects=tuple(data.get("projects", ())),
            contexts=tuple(data.get("contexts", ())),
        )
        self.tasks.append(task)
        self._id += 1
        return task

    def update_task(self, entity: TaskEntity) -> TaskEntity:
        if self.get_task(entity.id) is None:
            raise NotFoundError(entity.id)
        updated = replace(entity, last_modified=self._tick())
        self.tasks = [updated if t.id == entity.id else t for t in self.tasks]
        return updated

    def set_status(self, task_id: int, status: bool) -> TaskEntity:
        task = self.get_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return self.update_task(replace(task, status=status))

    def delete_task(self, task_id: int) -> int:
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return before - len(self.tasks)

    def purge(self, predicate: Predicate) -> int:
        doomed = self.query(predicate)
        self.tasks = [t for t in self.tasks if t not in doomed]
        return len(doomed)


@pytest.fixture
def fake_repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture
def service(fake_repo: FakeRepo) -> TaskService:
    return TaskService(fake_repo, today=lambda: TODAY)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'todo.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repo(engine) -> TaskRepository:
    return TaskRepository(create_session_factory(engine))


@pytest.fixture
def db_service(repo: TaskRepository) -> TaskService:
    return TaskService(repo, today=lambda: TODAY)
