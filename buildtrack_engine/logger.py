"""
Structured JSON logging for tracked runs.

Every record carries the ID of the build run it belongs to, plus any fields
bound for that run (start time, history location), so the lines of one
build can be pulled out of a shared log file. A human-readable mirror goes
to the console. If the JSON file cannot be opened the logger keeps working
on the console alone.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs"""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": getattr(record, "run_id", self.run_id),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "thread": record.threadName,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(getattr(record, "extra_data", {}))
        return json.dumps(log_data, ensure_ascii=False, default=str)


def new_run_id() -> str:
    """Timestamp plus a short UUID suffix, e.g. ``20261019_101500-1a2b3c4d``."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}-{str(uuid.uuid4())[:8]}"


class ProductionLogger:
    """
    Run-correlated logger with structured JSON output and log rotation.

    - JSON lines to ``<log_dir>/<json_file>`` for machine parsing
    - Human-readable lines on the console
    - Keyword arguments to the level methods become JSON fields
    - ``start_run`` switches to a new run ID; ``bind`` adds fields to every
      record until the next run starts
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_level: str = "INFO",
        log_dir: Path | str = Path("logs"),
        json_file: str = "buildtrack.log",
    ):
        self.run_id = run_id or new_run_id()
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir)
        self.json_file = json_file
        self.context: Dict[str, Any] = {}
        self.file_logging = False
        self._setup_logging()

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.json_file

    def _setup_logging(self) -> None:
        """Console handler always; rotating JSON file handler when the path is writable"""
        self.logger = logging.getLogger(f"buildtrack.{self.run_id}")
        self.logger.setLevel(self.log_level)

        # Prevent duplicate handlers if logger already exists
        if self.logger.handlers:
            return

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(run_id)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                defaults={"run_id": self.run_id},
            )
        )
        console_handler.setLevel(self.log_level)
        self.logger.addHandler(console_handler)
        self.logger.propagate = False

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_handler = RotatingFileHandler(
                self.log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=10,
            )
        except OSError as e:
            self.warning(
                f"JSON log file unavailable, logging to console only: {e}",
                log_path=str(self.log_path),
            )
            return

        json_handler.setFormatter(JSONFormatter(self.run_id))
        json_handler.setLevel(self.log_level)
        self.logger.addHandler(json_handler)
        self.file_logging = True

    def start_run(self, run_id: Optional[str] = None, **context: Any) -> str:
        """Begin a new build run: fresh run ID and bound context."""
        self.run_id = run_id or new_run_id()
        self.context = dict(context)
        return self.run_id

    def bind(self, **context: Any) -> None:
        self.context.update(context)

    def log_event(self, level: str, message: str, exc_info=None, **kwargs) -> None:
        """
        Log structured event with additional context

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            message: Human-readable log message
            exc_info: Exception tuple to attach, as from ``sys.exc_info()``
            **kwargs: Additional structured data to include in JSON
        """
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=getattr(logging, level.upper()),
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=exc_info,
        )
        record.run_id = self.run_id
        record.extra_data = {**self.context, **kwargs}
        self.logger.handle(record)

    def debug(self, message: str, **kwargs) -> None:
        self.log_event("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log_event("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log_event("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log_event("ERROR", message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback"""
        self.log_event("ERROR", message, exc_info=sys.exc_info(), **kwargs)

    def get_run_id(self) -> str:
        return self.run_id

    def close(self) -> None:
        """Close all handlers and cleanup"""
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)


def get_logger(
    run_id: Optional[str] = None,
    log_level: str = "INFO",
    log_dir: Path | str = Path("logs"),
    json_file: str = "buildtrack.log",
) -> ProductionLogger:
    """
    Factory function to get a configured production logger

    Args:
        run_id: Optional run ID. Generated if not provided.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory receiving the JSON log file
        json_file: File name of the rotating JSON log

    Returns:
        Configured ProductionLogger instance
    """
    return ProductionLogger(
        run_id=run_id, log_level=log_level, log_dir=log_dir, json_file=json_file
    )
