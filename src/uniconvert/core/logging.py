"""Logging setup for uniconvert commands.

Every command writes JSON lines to a rotating file in the workspace ``logs``
directory. ``--verbose`` additionally mirrors records to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FILE_MARKER = "_uniconvert_file"
_CONSOLE_MARKER = "_uniconvert_console"
_FALLBACK_DIRNAME = "uniconvert-logs"

# Attributes present on every LogRecord; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """Render a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return ``name``'s logger wired to a JSON file, plus the file path.

    Calling this repeatedly for the same logger reuses its handlers.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    handler, path = _file_handler(
        logger,
        _prepare_log_file(_prepare_log_dir(log_dir), log_name),
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    _set_console(logger, enabled=verbose)
    return logger, path


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _file_handler(
    logger: logging.Logger,
    path: Path,
    *,
    max_bytes: int,
    backup_count: int,
) -> tuple[logging.Handler, Path]:
    for existing in logger.handlers:
        if getattr(existing, _FILE_MARKER, False):
            return existing, Path(getattr(existing, "baseFilename", path))

    try:
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except PermissionError:
        path = _prepare_log_file(_fallback_log_dir(), path.name)
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    logger.addHandler(handler)
    return handler, path


def _set_console(logger: logging.Logger, *, enabled: bool) -> None:
    consoles = [
        handler
        for handler in logger.handlers
        if getattr(handler, _CONSOLE_MARKER, False)
    ]
    if not enabled:
        for handler in consoles:
            logger.removeHandler(handler)
            handler.close()
        return
    if consoles:
        return
    console = logging.StreamHandler(stream=sys.stderr)
    console.setLevel(logging.DEBUG)
    console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    setattr(console, _CONSOLE_MARKER, True)
    logger.addHandler(console)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _jsonable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _prepare_log_dir(log_dir: Path) -> Path:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        return _fallback_log_dir()
    try:
        log_dir.chmod(0o700)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return log_dir


def _prepare_log_file(log_dir: Path, filename: str) -> Path:
    path = log_dir / filename
    try:
        path.touch(exist_ok=True)
    except PermissionError:  # pragma: no cover - depends on filesystem
        path = _fallback_log_dir() / filename
        path.touch(exist_ok=True)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _fallback_log_dir() -> Path:
    fallback = Path(tempfile.gettempdir()) / _FALLBACK_DIRNAME
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback
