"""Logging for tastecore.

Everything logs under the ``tastecore`` logger: one console handler on the
real stderr and one file at ``<log dir>/tastecore.log``. The HTTP server uses
the same console format for uvicorn's own loggers and writes one line per
request through `log_request`.
"""

from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

LOGGER_NAME = "tastecore"
LOG_FILE_NAME = "tastecore.log"

CONSOLE_FORMAT = "%(level_prefix)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
REQUEST_FORMAT = "%s %s -> %s (%.1f ms)"

# Marks the handlers installed here so reconfiguring leaves foreign ones alone.
_OWNED = "_tastecore_owned"

_LOGGER = logging.getLogger(f"{LOGGER_NAME}.logging")


class LevelPrefixFormatter(logging.Formatter):
    """Console formatter exposing an emoji per level as ``%(level_prefix)s``."""

    PREFIXES: Mapping[int, str] = MappingProxyType(
        {
            logging.DEBUG: "🐛",
            logging.INFO: "ℹ️",
            logging.WARNING: "⚠️",
            logging.ERROR: "❌",
            logging.CRITICAL: "💥",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        record.level_prefix = self.PREFIXES.get(record.levelno, "")
        return super().format(record)


def debug_enabled() -> bool:
    return bool(os.environ.get("TASTECORE_DEBUG"))


def get_data_dir() -> Path:
    configured = os.environ.get("TASTECORE_DATA_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "tastecore"


def get_log_dir() -> Path:
    configured = os.environ.get("TASTECORE_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return get_data_dir() / "logs"


def get_log_path() -> Path:
    return get_log_dir() / LOG_FILE_NAME


def _own(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED, True)
    return handler


def _build_handlers() -> list[logging.Handler]:
    # sys.__stderr__ outlives any stream swapped in by test or TUI harnesses.
    console = logging.StreamHandler(stream=sys.__stderr__)
    console.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    console.setFormatter(LevelPrefixFormatter(CONSOLE_FORMAT))
    handlers: list[logging.Handler] = [_own(console)]

    path = get_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("File logging disabled, cannot open %s: %s", path, exc)
        return handlers
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    handlers.append(_own(file_handler))
    return handlers


def configure_logging(*, reset: bool = False) -> logging.Logger:
    """Install the console and file handlers on the ``tastecore`` logger.

    Calling it again is a no-op unless `reset` is set, which rebuilds the
    handlers from the current environment (log dir, debug flag).
    """
    logger = logging.getLogger(LOGGER_NAME)
    owned = [handler for handler in logger.handlers if getattr(handler, _OWNED, False)]
    if owned and not reset:
        return logger

    for handler in owned:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    for handler in _build_handlers():
        logger.addHandler(handler)
    return logger


def log_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    elapsed_ms: float,
) -> None:
    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(level, REQUEST_FORMAT, method, path, status_code, elapsed_ms)


def uvicorn_log_config() -> dict[str, Any]:
    """`logging.config.dictConfig` schema routing uvicorn's loggers through our console format."""
    level = "DEBUG" if debug_enabled() else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": f"{__name__}.LevelPrefixFormatter",
                "fmt": CONSOLE_FORMAT,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            name: {"handlers": ["console"], "level": level, "propagate": False}
            for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
        },
    }


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append `exc` with its traceback to the log file; returns the file or None."""
    path = get_log_path()
    lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
    entry = (
        f"[{datetime.now().isoformat()}] {context} failed: {type(exc).__name__}: {exc}\n"
        f"{''.join(lines)}\n"
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(entry)
    except OSError as log_exc:
        _LOGGER.warning("Failed to write %s: %s", path, log_exc)
        return None
    return path
