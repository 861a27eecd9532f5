from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    title: str
    description: str
    status: bool
    created: datetime
    last_modified: datetime
    due_date: Optional[date]
    projects: tuple[str, ...] = ()
    contexts: tuple[str, ...] = ()

    @property
    def first_project(self) -> str:
        return self.projects[0] if self.projects else ""

    @property
    def first_context(self) -> str:
        return self.contexts[0] if self.contexts else ""

    @property
    def display_text(self) -> str:
        return self.title or self.description


@dataclass(frozen=True)
class TaskGroup:
    name: str
    tasks: list[TaskEntity] = field(default_factory=list)
