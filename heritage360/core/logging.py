"""Logging configuration for the learning service.

LOGS AND METRICS
------------------
The service reports what it does through two signals:

  1. LOGS: "what happened to this learner"
     "Lesson completed user=u1 course=aksum lesson=aksum-l2 score=80".
     Good for answering a support ticket ("my badge never showed up").
     Bad for "how many completions per minute right now?", because you
     would be counting lines.

  2. METRICS: "what happened, in numbers"
     lessons_completed_total, progress_conflicts_total{outcome}, request
     latency histograms.  Good for dashboards and alerts.  Bad for
     explaining one learner's history.

This module handles logs.  See heritage360/core/metrics.py for metrics.

WHY TWO FORMATTERS
--------------------
  _ContainerFormatter: human-readable, single-line, for local dev.
    WARNING and above carry a [file:line] suffix so rejected operations
    (unknown lesson, certificate not eligible) point at their source.

  _JsonFormatter: machine-parseable, for production (LOG_JSON=true).
    Log aggregators parse JSON natively, and the context attached by
    RequestContextMiddleware and ProgressService becomes top-level keys:

      {"level": "INFO", "user_id": "u1", "course_id": "aksum", ...}

    "Every event for learner u1 on course aksum" is then a filter
    (user_id == "u1" AND course_id == "aksum"), not a regex over
    free text.

WHAT GETS LOGGED WHERE
------------------------
  INFO     state transitions: enrolled, lesson completed, achievement
           unlocked, certificate issued/revoked, quiz graded
  WARNING  rejected operations and save conflicts that gave up
  DEBUG    lesson starts and token validation (high volume)

Third-party loggers (uvicorn, httpx, sqlalchemy.engine) are capped at
WARNING so per-query SQL echo never drowns the learning events.
"""

from __future__ import annotations

import json
import logging
import sys


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    WARNING and above get a [filename:lineno] suffix; exceptions are
    appended when the caller passes exc_info.
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # .NNN goes before the +0000 offset
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "user_id",
        "course_id",
        "lesson_id",
        "status_code",
        "duration_ms",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: debug/info/warning/error; unknown names fall back to info.
        json_format: emit JSON lines instead of the human-readable format.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in (
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpcore",
        "httpx",
        "sqlalchemy.engine",
    ):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
