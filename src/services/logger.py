"""
Logger Service Module
Root logger setup: colored console, rotating app/error log files, optional JSON lines
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import colorlog

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

DEFAULTS: dict[str, Any] = {
    "log_dir": "./logs",
    "log_level": "INFO",
    "console_level": "INFO",
    "file_level": "DEBUG",
    "max_bytes": 5 * 1024 * 1024,
    "backup_count": 3,
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "date_format": "%Y-%m-%d %H:%M:%S",
    "colored_output": True,
    "console_output": True,
    "json_logs": False,
}


def _level(name: str | None, fallback: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), fallback) if name else fallback


class LoggerService:
    """
    Owns the root logger's handlers

    Handlers:
    - console (stdout), colored through colorlog unless colored_output is off
    - app.log, every record at file_level and above
    - errors.log, ERROR and above
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = dict(DEFAULTS)
        self.config.update({key: value for key, value in (config or {}).items() if value is not None})
        self.loggers: dict[str, logging.Logger] = {}
        self.log_dir = self._writable_log_dir(Path(self.config["log_dir"]))
        self._install_handlers()

    @staticmethod
    def _writable_log_dir(preferred: Path) -> Path:
        """preferred if it can be created and written, else ./logs"""
        try:
            preferred.mkdir(parents=True, exist_ok=True)
            if os.access(preferred, os.W_OK):
                return preferred
        except OSError:
            pass
        fallback = Path("./logs")
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback

    def _plain_formatter(self) -> logging.Formatter:
        if self.config.get("json_logs"):
            return JsonFormatter()
        return logging.Formatter(self.config["format"], datefmt=self.config["date_format"])

    def _install_handlers(self):
        root = logging.getLogger()
        root.setLevel(logging.DEBUG)
        root.handlers = []

        if self.config.get("console_output", True):
            root.addHandler(self._console_handler())
        root.addHandler(self._file_handler("app.log", _level(self.config["file_level"], logging.DEBUG)))
        root.addHandler(self._file_handler("errors.log", logging.ERROR))

    def _console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(_level(self.config.get("console_level") or self.config.get("log_level")))
        if self.config.get("colored_output"):
            handler.setFormatter(
                colorlog.ColoredFormatter(
                    "%(log_color)s" + self.config["format"],
                    datefmt=self.config["date_format"],
                    log_colors=LOG_COLORS,
                )
            )
        else:
            handler.setFormatter(self._plain_formatter())
        return handler

    def _file_handler(self, filename: str, level: int) -> logging.Handler:
        try:
            handler: logging.Handler = RotatingFileHandler(
                self.log_dir / filename,
                maxBytes=self.config["max_bytes"],
                backupCount=self.config["backup_count"],
                encoding="utf-8",
            )
        except OSError:
            # Read-only filesystem: keep logging, just not to disk
            handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(self._plain_formatter())
        return handler

    def get_logger(self, name: str) -> logging.Logger:
        return self.loggers.setdefault(name, logging.getLogger(name))

    def set_level(self, level: str, logger_name: str | None = None):
        """Set level on one named logger, or on the root logger"""
        logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))

    def cleanup(self):
        """Close and detach every root handler"""
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        self.loggers.clear()


class JsonFormatter(logging.Formatter):
    """One JSON object per record; attributes passed via extra= are included"""

    _STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(
            {key: value for key, value in record.__dict__.items() if key not in self._STANDARD_ATTRS}
        )
        return json.dumps(payload, default=str)


# Process-wide service
_logger_service: LoggerService | None = None


def setup_logging(config: dict | None = None) -> logging.Logger:
    """
    Configure logging once per process and return the root logger

    Settings come from config.LOGGING / config.FILES, updated by config.
    Later calls return the root logger unchanged.
    """
    global _logger_service

    if _logger_service is not None:
        return logging.getLogger()

    from config import config as app_config

    settings = {
        "log_dir": str(app_config.FILES["log_dir"]),
        "log_level": app_config.LOGGING["level"],
        "console_level": app_config.LOGGING["level"],
        "max_bytes": app_config.LOGGING["max_bytes"],
        "backup_count": app_config.LOGGING["backup_count"],
        "format": app_config.LOGGING["format"],
        "date_format": app_config.LOGGING["date_format"],
        "console_output": app_config.LOGGING["console_output"],
    }
    settings.update(config or {})

    _logger_service = LoggerService(settings)
    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    if _logger_service is None:
        setup_logging()
    return _logger_service.get_logger(name)


def cleanup_logging():
    """Tear down handlers; the next setup_logging() call configures again"""
    global _logger_service

    if _logger_service is not None:
        _logger_service.cleanup()
        _logger_service = None
