from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from itertools import groupby
from pathlib import Path
from typing import Optional

from taskbook.domain.entities import TaskEntity
from taskbook.domain.enums import ExportType
from taskbook.domain.errors import StorageError, ValidationError
from taskbook.services.task_service import TaskService

logger = logging.getLogger(__name__)

DOTTED_HEADER = re.compile(r"^(\d{2})\.(\d{2})\.(\d{4}):")
ISO_HEADER = re.compile(r"^(\d{4})-(\d{2})-(\d{2}):")
TASK_LINE = re.compile(r"^-\s+(?:\[([ xX])\]\s*)?(.*)$")

CSV_HEADERS = [
    "id",
    "status",
    "title",
    "description",
    "due_date",
    "projects",
    "contexts",
    "created",
    "last_modified",
]


@dataclass(frozen=True)
class ImportedTask:
    text: str
    due_date: date
    status: bool


def _header_date(line: str, line_no: int) -> Optional[date]:
    dotted = DOTTED_HEADER.match(line)
    if dotted:
        day, month, year = (int(part) for part in dotted.groups())
    else:
        iso = ISO_HEADER.match(line)
        if not iso:
            return None
        year, month, day = (int(part) for part in iso.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"line {line_no}: invalid date header {line!r}") from exc


def parse_import(text: str, default_date: date) -> list[ImportedTask]:
    """Parse date-headed checklist text.

    A header line (``DD.MM.YYYY:`` or ``YYYY-MM-DD:``) sets the due date for
    the task lines that follow it. Task lines start with ``- `` and may carry
    a ``[ ]`` or ``[x]`` checkbox. Lines before the first header use
    ``default_date``; anything else is ignored.
    """
    current = default_date
    tasks: list[ImportedTask] = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        header = _header_date(line, line_no)
        if header is not None:
            current = header
            continue

        match = TASK_LINE.match(line)
        if not match:
            continue
        checkbox, body = match.groups()
        body = body.strip()
        if not body:
            continue
        tasks.append(ImportedTask(text=body, due_date=current, status=checkbox in ("x", "X")))
    return tasks


def import_tasks(service: TaskService, text: str) -> int:
    added = 0
    for item in parse_import(text, service.today()):
        service.add_from_text(item.text, due_date=item.due_date, status=item.status)
        added += 1
    logger.info("Imported %d task(s)", added)
    return added


def import_file(service: TaskService, path: Path) -> int:
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(f"Error reading file: {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Error reading file: {exc}") from exc
    return import_tasks(service, content)


def _record(task: TaskEntity) -> dict:
    return {
        "id": task.id,
        "status": task.status,
        "title": task.title,
        "description": task.description,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "projects": list(task.projects),
        "contexts": list(task.contexts),
        "created": task.created.isoformat(),
        "last_modified": task.last_modified.isoformat(),
    }


def _task_line(task: TaskEntity) -> str:
    mark = "x" if task.status else " "
    return f"- [{mark}] {task.description or task.title}"


def _export_json(tasks: list[TaskEntity]) -> str:
    return json.dumps([_record(task) for task in tasks], indent=2)


def _export_txt(tasks: list[TaskEntity]) -> str:
    undated = [task for task in tasks if task.due_date is None]
    dated = sorted((task for task in tasks if task.due_date), key=lambda task: task.due_date)

    blocks: list[str] = []
    if undated:
        blocks.append("\n".join(_task_line(task) for task in undated))
    for day, day_tasks in groupby(dated, key=lambda task: task.due_date):
        lines = [f"{day.isoformat()}:"]
        lines.extend(_task_line(task) for task in day_tasks)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def _export_csv(tasks: list[TaskEntity]) -> str:
    handle = io.StringIO()
    writer = csv.DictWriter(handle, fieldnames=CSV_HEADERS)
    writer.writeheader()
    for task in tasks:
        record = _record(task)
        record["due_date"] = record["due_date"] or ""
        record["projects"] = " ".join(f"+{name}" for name in task.projects)
        record["contexts"] = " ".join(f"@{name}" for name in task.contexts)
        writer.writerow(record)
    return handle.getvalue()


def _escape_ics(value: str) -> str:
    return value.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def _export_ics(tasks: list[TaskEntity]) -> str:
    now = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//taskbook//EN",
        "CALSCALE:GREGORIAN",
    ]
    for task in tasks:
        if not task.due_date:
            continue
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:task-{task.id}@taskbook",
                f"DTSTAMP:{now}",
                f"DTSTART;VALUE=DATE:{task.due_date.strftime('%Y%m%d')}",
                f"SUMMARY:{_escape_ics(task.title)}",
                f"DESCRIPTION:{_escape_ics(task.description)}",
                f"STATUS:{'COMPLETED' if task.status else 'NEEDS-ACTION'}",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    return "\n".join(lines)


EXPORTERS = {
    ExportType.JSON: _export_json,
    ExportType.TXT: _export_txt,
    ExportType.CSV: _export_csv,
    ExportType.ICS: _export_ics,
}


def parse_export_type(value: str) -> ExportType:
    try:
        return ExportType(value.strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown export type: {value}") from exc


def export_tasks(tasks: list[TaskEntity], export_type: ExportType) -> str:
    return EXPORTERS[export_type](tasks)


def export_file(service: TaskService, path: Path, export_type: ExportType) -> int:
    tasks = service.list_all()
    content = export_tasks(tasks, export_type)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Error writing file: {exc}") from exc
    logger.info("Exported %d task(s) to %s as %s", len(tasks), path, export_type.value)
    return len(tasks)
