"""
Where workbench messages go.

Panels report generations, copies and skipped actions at INFO, dispatch
details at DEBUG and failed computations with their traceback at ERROR.
`setup_logging` sends all of it to stdout and, if asked, to a log file.
"""
from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)


def setup_logging(
    level: int = logging.INFO,
    log_file: str | None = None,
    *,
    name: str = "workbench",
) -> logging.Logger:
    """Route the workbench's action log to the console and optionally a file.

    Safe to call on every Streamlit rerun: handlers from an earlier call are
    closed and replaced. The file is appended to, so a rerun keeps what the
    previous run wrote.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    _attach(logger, logging.StreamHandler(sys.stdout), level)
    if log_file:
        _attach(logger, logging.FileHandler(log_file, mode="a", encoding="utf-8"), level)

    logger.debug("logging to stdout%s", f" and {log_file}" if log_file else "")
    return logger
