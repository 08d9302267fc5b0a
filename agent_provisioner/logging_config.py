"""
Logging configuration for the CLI entrypoint.

Called once by ``agent_provisioner.__main__``. Library modules only do
``logger = logging.getLogger(__name__)`` and never configure handlers.

Levels are resolved in precedence order:
    CLI flag  >  AGENT_PROVISIONER_LOG_LEVEL env var  >  settings file  >  WARNING
"""

from __future__ import annotations

import logging
import os
import sys

from agent_provisioner.constants import LOG_FILE_ENV, LOG_LEVEL_ENV

_FMT_MINIMAL = "%(message)s"

_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(flag_level: str | None, settings_level: str | None = None) -> str:
    if flag_level:
        return flag_level
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        return env_level
    return settings_level or "WARNING"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path. Falls back to
            ``AGENT_PROVISIONER_LOG_FILE``; file output is always DEBUG.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level
    log_file = log_file or os.environ.get(LOG_FILE_ENV)
    if log_file:
        effective_level = logging.DEBUG
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(file_handler)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
