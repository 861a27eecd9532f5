from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from typing import Optional

from taskbook.domain.entities import TaskEntity, TaskGroup
from taskbook.domain.enums import OrderHint
from taskbook.domain.errors import ValidationError
from taskbook.domain.filters import Predicate, ViewState, build_purge_predicate
from taskbook.domain.tags import parse_contexts, parse_projects, strip_tags
from taskbook.infra.repository import TaskRepository
from taskbook.services.sorting import group_tasks

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_due_date(value: str, default: date) -> date:
    value = value.strip()
    if not value:
        return default
    if not DATE_PATTERN.match(value):
        raise ValidationError("invalid date format: use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"invalid date: {value}") from exc


class TaskService:
    def __init__(
        self,
        repo: TaskRepository,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repo = repo
        self._today = today

    def today(self) -> date:
        return self._today()

    def load_view(self, view: ViewState) -> list[TaskGroup]:
        tasks = self._repo.query(view.predicate())
        return group_tasks(tasks, view.group_key, view.sort_key, view.sort_order)

    def list_all(self) -> list[TaskEntity]:
        return self._repo.query(Predicate(), OrderHint.DUE_DATE_ASC)

    def count_matching(self, predicate: Predicate) -> int:
        return self._repo.count_matching(predicate)

    def due_days_between(self, start: date, end: date) -> set[date]:
        return self._repo.list_due_days(start, end)

    def create_task(self, data: dict) -> TaskEntity:
        return self._repo.create_task(self._normalize_data(data))

    def add_from_text(
        self,
        text: str,
        due_date: Optional[date] = None,
        status: bool = False,
    ) -> TaskEntity:
        text = text.strip()
        if not text:
            raise ValidationError("task text is empty")
        return self.create_task({
            "title": strip_tags(text),
            "description": text,
            "status": status,
            "due_date": due_date or self.today(),
            "projects": parse_projects(text),
            "contexts": parse_contexts(text),
        })

    def create_from_form(
        self,
        title: str,
        description: str,
        due_text: str,
        default_date: date,
    ) -> TaskEntity:
        data = self._form_data(title, description, due_text, default_date)
        return self.create_task({"status": False, **data})

    def update_from_form(
        self,
        task: TaskEntity,
        title: str,
        description: str,
        due_text: str,
        default_date: date,
    ) -> TaskEntity:
        data = self._form_data(title, description, due_text, default_date)
        return self._repo.update_task(replace(task, **data))

    def set_status(self, task_id: int, status: bool) -> TaskEntity:
        return self._repo.set_status(task_id, status)

    def toggle_status(self, task: TaskEntity) -> TaskEntity:
        return self.set_status(task.id, not task.status)

    def delete_task(self, task_id: int) -> int:
        return self._repo.delete_task(task_id)

    def purge(
        self,
        due_on: Optional[date] = None,
        project: str = "",
        done: bool = False,
        undone: bool = False,
    ) -> int:
        if done and undone:
            raise ValidationError("--done and --undone cannot be combined")
        predicate = build_purge_predicate(due_on, project, done, undone)
        return self._repo.purge(predicate)

    def _form_data(self, title: str, description: str, due_text: str, default_date: date) -> dict:
        title = title.strip()
        description = description.strip()
        if not title and not description:
            raise ValidationError("title or description is required")
        return {
            "title": title,
            "description": description,
            "due_date": parse_due_date(due_text, default_date),
            "projects": parse_projects(title, description),
            "contexts": parse_contexts(title, description),
        }

    def _normalize_data(self, data: dict) -> dict:
        normalized = dict(data)
        normalized["projects"] = tuple(normalized.get("projects") or ())
        normalized["contexts"] = tuple(normalized.get("contexts") or ())
        normalized.setdefault("description", "")
        return normalized
