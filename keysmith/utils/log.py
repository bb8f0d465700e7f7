"""Logging utilities for Keysmith."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


# Attributes every LogRecord carries; anything else came in through ``extra``.
_LOG_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Appends ``extra`` fields as JSON and stamps records in UTC."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return timestamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _LOG_RECORD_FIELDS and not k.startswith("_")}
        if not context:
            return message
        return f"{message} | {json.dumps(context, sort_keys=True, default=str)}"


class KeysmithLogger:
    """Logger for Keysmith.

    Records go to stderr at ``KEYSMITH_LOG_LEVEL`` (WARNING by default) and,
    once :meth:`attach_file_handler` is called, to a daily log file at DEBUG.
    """

    def __init__(self, name: str = "keysmith"):
        self.logger = logging.getLogger(name)
        level_name = os.getenv("KEYSMITH_LOG_LEVEL", "WARNING").upper()
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        if not self.logger.handlers:
            stderr_handler = logging.StreamHandler(sys.stderr)
            stderr_handler.setLevel(getattr(logging, level_name, logging.WARNING))
            stderr_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
            self.logger.addHandler(stderr_handler)

        self._file_handler: Optional[logging.FileHandler] = None

    def attach_file_handler(self, log_file: Path) -> Path:
        """Send records to ``log_file``, replacing any earlier log file."""
        if self._file_handler is not None:
            if Path(self._file_handler.baseFilename) == log_file.resolve():
                return log_file
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()

        log_file.parent.mkdir(parents=True, exist_ok=True)
        self._file_handler = logging.FileHandler(log_file, encoding="utf-8")
        self._file_handler.setLevel(logging.DEBUG)
        self._file_handler.setFormatter(StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s"))
        self.logger.addHandler(self._file_handler)
        return log_file

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)


_logger: Optional[KeysmithLogger] = None


def get_logger() -> KeysmithLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = KeysmithLogger()
    return _logger


def default_log_dir() -> Path:
    """Directory holding Keysmith's log files."""
    base = os.getenv("KEYSMITH_CONFIG_DIR")
    root = Path(base).expanduser() if base else Path.home() / ".keysmith"
    return root / "logs"


def init_logger(log_dir: Optional[Path] = None) -> KeysmithLogger:
    """Initialize the global logger, optionally writing to ``log_dir``."""
    logger = get_logger()
    if log_dir is not None:
        log_file = log_dir / f"keysmith_{datetime.now().strftime('%Y%m%d')}.log"
        logger.attach_file_handler(log_file)
        logger.debug(f"[logging] File logging enabled at {log_file}")
    return logger
