from __future__ import annotations


class TaskbookError(Exception):
    """Base class for every error the application reports to the user."""


class ValidationError(TaskbookError):
    pass


class NotFoundError(TaskbookError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StorageError(TaskbookError):
    pass
