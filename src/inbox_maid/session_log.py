"""Append-only, best-effort session log file."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .constants import LOG_DIR, LOG_FILE_PREFIX
from .models import SessionCounters

INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR

_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger("inbox_maid.session")
_logger.setLevel(logging.INFO)
_logger.propagate = False


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    """Return today's log file path, adding a time suffix if it already exists."""
    now = now or datetime.now()
    path = log_dir / f"{LOG_FILE_PREFIX}_{now:%Y%m%d}.log"
    if path.exists():
        path = log_dir / f"{LOG_FILE_PREFIX}_{now:%Y%m%d_%H%M%S}.log"
    return path


class _QuietFileHandler(logging.FileHandler):
    """FileHandler that drops records it cannot write instead of reporting them."""

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        pass


class SessionLog:
    """Session log written through the shared ``inbox_maid.session`` logger.

    Only one session writes at a time: opening a new log detaches the
    previous one. Failure to create or write the file never propagates,
    the workflow must keep going without a log.
    """

    def __init__(self, log_dir: Path | None = None, enabled: bool = True) -> None:
        self.path: Path | None = None
        self._handler: logging.Handler | None = None
        if not enabled:
            return

        log_dir = Path(log_dir or LOG_DIR)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            path = log_file_path(log_dir)
            handler = _QuietFileHandler(path, encoding="utf-8", delay=True)
        except OSError:
            return

        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        for previous in list(_logger.handlers):
            previous.close()
            _logger.removeHandler(previous)
        _logger.addHandler(handler)
        self._handler = handler
        self.path = path

    @property
    def active(self) -> bool:
        return self._handler is not None and self._handler in _logger.handlers

    def record(self, message: str, level: int = INFO) -> None:
        if not self.active:
            return
        try:
            _logger.log(level, message)
        except Exception:  # noqa: BLE001
            pass

    def info(self, message: str) -> None:
        self.record(message, INFO)

    def warning(self, message: str) -> None:
        self.record(message, WARNING)

    def error(self, message: str) -> None:
        self.record(message, ERROR)

    def write_summary(self, counters: SessionCounters) -> None:
        """Append the end-of-session totals block."""
        self.info(
            "Session summary: "
            f"unsubscribed={counters.unsubscribed} "
            f"deleted_without_unsubscribing={counters.deleted} "
            f"errors={counters.errors} "
            f"ended_at={datetime.now():%Y-%m-%d %H:%M:%S}"
        )

    def close(self) -> None:
        if self._handler is None:
            return
        self._handler.close()
        _logger.removeHandler(self._handler)
        self._handler = None
