"""Logging configuration for the grabber validation framework."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import IO, Optional
import json
from datetime import datetime

_RESERVED_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    )
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging (CI and batch certification)."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, separators=(",", ":"), default=str)


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = False,
    json_format: Optional[bool] = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Setup logging for the grabber validation framework.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (defaults to logs/)
        enable_console: Enable console logging
        enable_file: Enable file logging
        json_format: Use JSON format for logs; None decides from
            GRABBER_VALIDATION_ENVIRONMENT
        max_file_size_mb: Maximum size per log file in MB
        backup_count: Number of backup files to keep
        stream: Console stream (defaults to stdout)
    """
    if level is None:
        level = os.getenv("GRABBER_VALIDATION_LOG_LEVEL", "INFO")
    level = level.upper()

    if json_format is None:
        json_format = (
            os.getenv("GRABBER_VALIDATION_ENVIRONMENT", "development").lower()
            == "ci"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    root_logger.handlers.clear()

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    if enable_console:
        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if enable_file:
        if log_dir is None:
            log_dir = os.getenv("GRABBER_VALIDATION_LOG_DIR", "logs")
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        main_handler = logging.handlers.RotatingFileHandler(
            log_path / "grabber_validation.log",
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        main_handler.setLevel(getattr(logging, level))
        main_handler.setFormatter(formatter)
        root_logger.addHandler(main_handler)

    _setup_module_loggers()


def _setup_module_loggers() -> None:
    """Apply per-area level overrides from the environment."""
    for logger_name in ["process", "checks", "runner"]:
        env_var = f"GRABBER_VALIDATION_LOG_LEVEL_{logger_name.upper()}"
        level = os.getenv(env_var, None)
        if level:
            logger = logging.getLogger(f"grabber_validation.{logger_name}")
            logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str) -> logging.Logger:
    """Get logger for specific module."""
    if not name.startswith("grabber_validation."):
        name = f"grabber_validation.{name}"
    return logging.getLogger(name)
