"""Process-wide metrics reporting and log-file setup."""

from __future__ import annotations

import abc
import datetime
import logging
import os
import threading
from collections.abc import Sequence

__all__ = [
    "MetricsReporter",
    "set_metrics_reporter",
    "metrics_count",
    "metrics_gauge",
    "setup_logger",
]


class MetricsReporter(abc.ABC):
    """Sends counters and gauges to a monitoring system."""

    @abc.abstractmethod
    def count(self, metric: str, tags: Sequence[str], value: int) -> None:
        """Record a counter value for ``metric`` with the given tags."""

    @abc.abstractmethod
    def gauge(self, metric: str, tags: Sequence[str], value: int) -> None:
        """Record a gauge value for ``metric`` with the given tags."""


_REPORTER: MetricsReporter | None = None
_LOCK = threading.Lock()


def set_metrics_reporter(reporter: MetricsReporter) -> bool:
    """Install the process-wide reporter.

    The reporter can be set only once; later calls leave the first one in
    place and return False.
    """
    global _REPORTER
    with _LOCK:
        if _REPORTER is not None:
            return False
        _REPORTER = reporter
        return True


def metrics_count(tags: Sequence[str], metric: str, val: int) -> None:
    """Report a counter through the installed reporter, if there is one."""
    reporter = _REPORTER
    if reporter is not None:
        reporter.count(metric, tags, val)


def metrics_gauge(tags: Sequence[str], metric: str, val: int) -> None:
    """Report a gauge through the installed reporter, if there is one."""
    reporter = _REPORTER
    if reporter is not None:
        reporter.gauge(metric, tags, val)


_LEVEL_NAMES = {
    logging.CRITICAL: "ERROR",
    logging.ERROR: "ERROR",
    logging.WARNING: "WARN",
    logging.INFO: "INFO",
    logging.DEBUG: "DEBUG",
}


class _LineFormatter(logging.Formatter):
    """Formats records as ``[date][time:nanos][target][LEVEL] message``."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.datetime.fromtimestamp(record.created)
        level = _LEVEL_NAMES.get(record.levelno, record.levelname)
        line = (
            f"[{stamp:%Y-%m-%d}][{stamp:%H:%M:%S}:{stamp.microsecond * 1000:09d}]"
            f"[{record.name}][{level}] {record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logger(filename: str | os.PathLike[str]) -> logging.Handler:
    """Send INFO and above from every logger to ``filename``.

    Returns the installed handler so that callers can remove it again.
    """
    handler = logging.FileHandler(os.fspath(filename), encoding="utf-8")
    handler.setFormatter(_LineFormatter())
    handler.setLevel(logging.INFO)
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)
    return handler