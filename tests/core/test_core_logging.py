from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from uniconvert.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler
        for handler in logger.handlers
        if getattr(handler, "_uniconvert_console", False)
    ]


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "uniconvert.test",
        log_dir=log_dir,
        level="INFO",
        filename="test.log",
    )

    logger.debug("hidden below level")
    logger.info(
        "Converted item", extra={"identity": "abc", "target": "csv"}
    )

    class _Opaque:
        def __repr__(self):  # noqa: D401
            return "opaque"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "Failed to convert item",
            extra={
                "paths": [Path(log_dir), 1],
                "counts": {"failed": 1},
                "obj": _Opaque(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2

    first = json.loads(lines[0])
    assert first["message"] == "Converted item"
    assert first["level"] == "INFO"
    assert first["logger"] == "uniconvert.test"
    assert first["extra"] == {"identity": "abc", "target": "csv"}
    assert "timestamp" in first

    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["paths"] == [str(log_dir), 1]
    assert last["extra"]["counts"] == {"failed": 1}
    assert last["extra"]["obj"] == "opaque"

    _close(logger)


def test_default_filename_uses_last_name_segment(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "uniconvert.convert_test", log_dir=tmp_path
    )

    assert log_path == tmp_path / "convert_test.log"
    _close(logger)


def test_verbose_logs_debug_to_file(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "uniconvert.test_debug",
        log_dir=tmp_path,
        level="ERROR",
        verbose=True,
        filename="debug.log",
    )

    logger.debug("detail")
    for handler in logger.handlers:
        handler.flush()

    assert "detail" in log_path.read_text(encoding="utf-8")
    _close(logger)


def test_console_handler_toggle(tmp_path):
    name = "uniconvert.test_toggle"

    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=False, filename="toggle.log"
    )
    assert not _console_handlers(logger)

    _close(logger)


def test_repeated_configuration_reuses_file_handler(tmp_path):
    name = "uniconvert.test_reuse"
    logger, first = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )
    _, second = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )

    file_handlers = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_uniconvert_file", False)
    ]
    assert len(file_handlers) == 1
    assert first == second
    _close(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(fallback))

    logger, log_path = core_logging.configure_logger(
        "uniconvert.test_blocked", log_dir=target, filename="blocked.log"
    )

    assert log_path.parent == fallback / "uniconvert-logs"
    assert log_path.exists()
    _close(logger)


def test_configure_logger_rotating_handler_fallback(tmp_path, monkeypatch):
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    fallback_dir.mkdir()
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(
        core_logging, "_fallback_log_dir", lambda: fallback_dir
    )

    logger, log_path = core_logging.configure_logger(
        "uniconvert.test_rotating_fallback",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2
    _close(logger)


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level(" warning ") == logging.WARNING
