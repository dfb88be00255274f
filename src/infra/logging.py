"""Centralized logging configuration utilities."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from .env import get_bool, get_int

_CONFIGURED = False
_NOISY_LOGGERS = ("matplotlib", "PIL", "urllib3")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """Adds run metadata to each structured log line."""

    def __init__(self, run_id: str | None, environment: str | None) -> None:
        super().__init__()
        self._run_id = run_id
        self._environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", "alertgraph")
        log_record.setdefault("run_id", self._run_id)
        log_record.setdefault("environment", self._environment)
        log_record.setdefault("logger", record.name)
        log_record.setdefault("level", record.levelname)


def configure_logging(*, run_id: str | None = None, environment: str | None = None) -> None:
    """Configure console logging, plus a rotating JSON file unless disabled."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
        },
    }
    if get_bool(os.environ, "LOG_FILE_ENABLED", True):
        log_dir = Path(os.environ.get("LOG_DIR", "storage/logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "level": level,
            "when": "midnight",
            "backupCount": get_int(os.environ, "LOG_RETENTION_DAYS", 7),
            "filename": str(log_dir / "alertgraph.log"),
            "encoding": "utf-8",
            "formatter": "json",
        }

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": ServiceJsonFormatter,
                "run_id": run_id,
                "environment": environment,
            },
            "console": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
        "root": {
            "level": level,
            "handlers": list(handlers),
        },
    }

    logging.config.dictConfig(logging_config)
    _CONFIGURED = True


__all__ = ["configure_logging", "ServiceJsonFormatter"]
