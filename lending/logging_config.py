"""Process-wide logging for the lending service.

`setup_logging` attaches two handlers to the root logger: a size-rotated
`lending.log` in DATA_DIR that keeps DEBUG and above, and a Rich console
handler at the configured level. Library code only calls `get_logger`.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOG_FILE_NAME = "lending.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_logging_initialized = False


def _log_dir() -> Path:
    # Mirrors config.DATA_DIR; importing config here would be circular.
    env = os.environ.get("DATA_DIR")
    return Path(env) if env else Path(__file__).resolve().parents[1]


def setup_logging(log_level: str = "INFO") -> None:
    """Install file and console handlers once; later calls are no-ops."""
    global _logging_initialized

    if _logging_initialized:
        return

    console_level = getattr(logging, log_level.upper(), logging.INFO)

    log_dir = _log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console_handler = RichHandler(
        console=Console(theme=Theme({"logging.level.info": "bold cyan"})),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(console_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # uvicorn.access stays at INFO; app._AccessFilter trims successful lines.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _logging_initialized = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
