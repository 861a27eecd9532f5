from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from taskbook.domain.errors import ValidationError
from taskbook.services.task_service import TaskService, parse_due_date
from taskbook.services.transfer import export_file, import_file, parse_export_type

logger = logging.getLogger(__name__)

DATABASE_COMMANDS = ("purge",)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskbook",
        description="Terminal task tracker. Without a command the interactive UI starts.",
    )
    parser.add_argument("--config", metavar="PATH", help="Path to configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    parser.add_argument("--add", metavar="TEXT", help="Add a new task (+project and @context tags allowed)")
    parser.add_argument("--date", metavar="YYYY-MM-DD", help="Due date for --add, day filter for purge")

    parser.add_argument("--database", metavar="COMMAND", help="Database command (purge)")
    parser.add_argument("--project", default="", help="Only purge tasks tagged with this project")
    parser.add_argument("--done", action="store_true", help="Only purge done tasks")
    parser.add_argument("--undone", action="store_true", help="Only purge undone tasks")
    parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    parser.add_argument("--import", dest="import_file", metavar="FILE", help="Import tasks from file")
    parser.add_argument("--export", dest="export_file", metavar="FILE", help="Export tasks to file")
    parser.add_argument("--type", default="json", help="Export file type (json, txt, csv, ics)")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def has_command(args: argparse.Namespace) -> bool:
    return bool(args.add or args.database or args.import_file or args.export_file)


def run_command(
    args: argparse.Namespace,
    service: TaskService,
    prompt: Callable[[str], str] = input,
) -> int:
    """Run the one-shot command named in ``args``; TaskbookError propagates."""
    if args.add:
        return _add(args, service)
    if args.database:
        return _database(args, service, prompt)
    if args.import_file:
        return _import(args, service)
    if args.export_file:
        return _export(args, service)
    return 0


def _add(args: argparse.Namespace, service: TaskService) -> int:
    due = parse_due_date(args.date or "", service.today())
    task = service.add_from_text(args.add, due_date=due)
    print(f"Added task {task.id}: {task.display_text} (due {due.isoformat()})")
    return 0


def _database(
    args: argparse.Namespace,
    service: TaskService,
    prompt: Callable[[str], str],
) -> int:
    if args.database not in DATABASE_COMMANDS:
        raise ValidationError(f"Unknown database command: {args.database}")
    if args.done and args.undone:
        raise ValidationError("--done and --undone cannot be combined")

    due_on = parse_due_date(args.date, service.today()) if args.date else None

    if not args.yes:
        try:
            answer = prompt("Are you sure you want to delete these tasks? (y/N): ")
        except EOFError:
            answer = ""
        if answer.strip().lower() not in ("y", "yes"):
            print("Operation cancelled.")
            return 0

    deleted = service.purge(due_on=due_on, project=args.project, done=args.done, undone=args.undone)
    print(f"Successfully deleted {deleted} task(s)")
    return 0


def _import(args: argparse.Namespace, service: TaskService) -> int:
    added = import_file(service, Path(args.import_file).expanduser())
    print(f"Successfully imported {added} task(s) from {args.import_file}")
    return 0


def _export(args: argparse.Namespace, service: TaskService) -> int:
    export_type = parse_export_type(args.type)
    count = export_file(service, Path(args.export_file).expanduser(), export_type)
    print(f"Successfully exported {count} task(s) to {args.export_file}")
    return 0


def report_error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1
