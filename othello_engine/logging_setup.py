from __future__ import annotations

import logging
import pathlib
import sys
import threading
import time
import traceback
from typing import Optional, Union

import orjson

LOG_FILE_NAME = "othello-engine.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(process)d:%(threadName)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_path() -> pathlib.Path:
    return pathlib.Path.cwd() / LOG_FILE_NAME


def setup_logging(
    overwrite: bool = True,
    level: Union[int, str] = logging.INFO,
    log_path: Optional[pathlib.Path] = None,
    to_file: bool = True,
) -> None:
    """Configure root logging once per process.

    - Writes to a log file (overwritten on first setup if overwrite is True)
    - Adds a STDERR handler for immediate visibility
    - Installs sys.excepthook and threading excepthook
    - Captures warnings via logging
    """
    root_logger = logging.getLogger()
    if getattr(root_logger, "_oe_logging_configured", False):
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handlers: list[logging.Handler] = []
    if to_file:
        file_mode = "w" if overwrite else "a"
        file_handler = logging.FileHandler(log_path or get_log_path(), mode=file_mode, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handlers.append(stderr_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    root_logger._oe_logging_configured = True  # type: ignore[attr-defined]

    logging.captureWarnings(True)

    sys.excepthook = _log_unhandled_exception  # type: ignore[assignment]
    threading.excepthook = _log_thread_exception  # type: ignore[assignment]


def _log_unhandled_exception(exc_type, exc_value, exc_tb) -> None:  # type: ignore[no-untyped-def]
    logger = logging.getLogger("unhandled")
    tb_str = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    logger.critical("Unhandled exception:\n%s", tb_str)


def _log_thread_exception(args) -> None:  # type: ignore[no-untyped-def]
    logger = logging.getLogger("thread")
    tb_str = "".join(traceback.format_exception(args.exc_type, args.exc_value, args.exc_traceback))
    logger.critical("Unhandled thread exception in %s:\n%s", getattr(args, "thread", None), tb_str)


def log_event(module: str, event: str, **kwargs) -> None:
    """Structured event logging through the central logger.

    Emits a single JSON line on the `event.<module>` logger.
    """
    logger = logging.getLogger(f"event.{module}")
    if not logger.isEnabledFor(logging.INFO):
        return
    payload = {"ts": time.time(), "module": module, "event": event}
    payload.update(kwargs)
    try:
        line = orjson.dumps(payload).decode("utf-8")
    except TypeError:
        logging.getLogger("event").exception("failed to serialise event: %s", {"module": module, "event": event})
        return
    logger.info(line)
