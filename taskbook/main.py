from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from taskbook.cli import has_command, parse_args, report_error, run_command
from taskbook.config import load_settings
from taskbook.domain.errors import TaskbookError
from taskbook.infra.db import create_db_engine, create_session_factory, init_db
from taskbook.infra.logging import setup_logging
from taskbook.infra.repository import TaskRepository
from taskbook.services.task_service import TaskService

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
    except TaskbookError as exc:
        return report_error(f"loading config: {exc}")

    one_shot = has_command(args)
    setup_logging(settings, verbose=args.verbose, console=one_shot)
    logger.info("Using database %s", settings.database_url)

    engine = create_db_engine(settings.database_url)
    try:
        init_db(engine)
    except SQLAlchemyError as exc:
        logger.exception("Database initialisation failed")
        return report_error(f"connecting to database: {exc}")

    service = TaskService(TaskRepository(create_session_factory(engine)))
    try:
        if one_shot:
            return run_command(args, service)
        return _run_ui(service, settings)
    except TaskbookError as exc:
        logger.error("Command failed: %s", exc)
        return report_error(str(exc))
    finally:
        engine.dispose()


def _run_ui(service: TaskService, settings) -> int:
    from taskbook.ui.app import run
    from taskbook.ui.keymap import KeyMap
    from taskbook.ui.state import ViewStateMachine

    keymap = KeyMap.from_config(settings.keymap)
    run(ViewStateMachine(service), keymap, settings.styles)
    return 0


if __name__ == "__main__":
    sys.exit(main())
