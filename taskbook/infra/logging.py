from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from taskbook.config import Settings


def setup_logging(settings: Settings, verbose: bool = False, console: bool = False) -> None:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskbook.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [file_handler]

    # The full-screen UI owns the terminal, so only one-shot commands log to it.
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
        handlers.append(console_handler)

    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level.upper(),
        handlers=handlers,
        force=True,
    )
    logging.getLogger(__name__).debug("Verbose logging enabled")
