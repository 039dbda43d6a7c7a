"""Log formatters and setup_logging."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from heritage360.core.logging import _ContainerFormatter, _JsonFormatter, setup_logging


def _record(msg: str = "Lesson completed user=%s", args: tuple = ("u1",), level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="heritage360.services.progress_service",
        level=level,
        pathname="progress_service.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "heritage360.services.progress_service"
    assert parsed["message"] == "Lesson completed user=u1"
    assert "timestamp" in parsed


def test_json_formatter_promotes_learning_context() -> None:
    record = _record()
    record.request_id = "req-1"  # type: ignore[attr-defined]
    record.user_id = "u1"  # type: ignore[attr-defined]
    record.course_id = "ethiopian-heritage-101"  # type: ignore[attr-defined]
    record.lesson_id = "ethiopian-heritage-101-l1"  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "req-1"
    assert parsed["user_id"] == "u1"
    assert parsed["course_id"] == "ethiopian-heritage-101"
    assert parsed["lesson_id"] == "ethiopian-heritage-101-l1"
    assert "status_code" not in parsed


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record(msg="failed", args=())
        record.exc_info = sys.exc_info()
    parsed = json.loads(_JsonFormatter().format(record))
    assert "RuntimeError: boom" in parsed["exception"]


def test_container_formatter_adds_location_for_warnings() -> None:
    formatter = _ContainerFormatter()
    info_line = formatter.format(_record())
    warn_line = formatter.format(_record(level=logging.WARNING))
    assert "[progress_service.py:42]" not in info_line
    assert "[progress_service.py:42]" in warn_line


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
def test_setup_logging_json_mode() -> None:
    setup_logging("debug", json_format=True)
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, _JsonFormatter)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


@pytest.mark.usefixtures("restore_root_logger")
def test_setup_logging_unknown_level_falls_back_to_info() -> None:
    setup_logging("chatty")
    assert logging.getLogger().level == logging.INFO
