"""Logging bootstrap for the cmd-workbench process.

The TUI owns the terminal for the whole life of the process (also when it is
served through textual-serve), so records go to a rotating file only.

// [LAW:single-enforcer] Handler wiring for the cmd_workbench logger happens here only.
// [LAW:one-source-of-truth] Level and file path are resolved once and returned as LoggingRuntime.

Environment:
    CMD_WORKBENCH_LOG_LEVEL  level name, default INFO
    CMD_WORKBENCH_LOG_FILE   explicit log file
    CMD_WORKBENCH_LOG_DIR    directory for per-session files when no file is given
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "cmd_workbench"

_ENV_PREFIX = "CMD_WORKBENCH_LOG_"
_DEFAULT_DIR = "~/.local/share/cmd-workbench/logs"
_MAX_BYTES = 20 * 1024 * 1024
_BACKUP_COUNT = 5
_RECORD_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None


def _env(name: str, default: str = "") -> str:
    return os.environ.get(_ENV_PREFIX + name, "").strip() or default


def resolve_level(raw: str) -> int:
    """Level number for a name such as "debug"; unknown names mean INFO."""
    level = logging.getLevelName(raw.strip().upper() or "INFO")
    return level if isinstance(level, int) else logging.INFO


def log_file_path(session_name: str) -> Path:
    explicit = _env("FILE")
    if explicit:
        return Path(explicit)
    log_dir = Path(os.path.expanduser(_env("DIR", _DEFAULT_DIR)))
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", session_name).strip("-_") or "session"
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return log_dir / f"{slug}-{stamp}-{os.getpid()}.log"


def configure(session_name: str = "workbench") -> LoggingRuntime:
    """Attach the rotating file handler to the cmd_workbench logger.

    Idempotent: later calls return the first runtime unchanged.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level = resolve_level(_env("LEVEL", "INFO"))
    path = log_file_path(session_name)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_RECORD_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(handler)

    # websockets and textual log through the root logger; only WARNING+ gets through.
    root = logging.getLogger()
    if root.level < logging.WARNING:
        root.setLevel(logging.WARNING)
    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=logging.getLevelName(level), level=level, file_path=str(path))
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME


def reset() -> None:
    """Drop handlers and forget the runtime. Tests only."""
    global _RUNTIME
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _RUNTIME = None
