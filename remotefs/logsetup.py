"""Installation of log handlers for console and file output."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .config_logging import (
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE_EXT,
    DEFAULT_LOG_FILE_NAME,
    LOG_FILTER_TARGET,
    LogFormat,
    LogLevel,
    LogRotation,
    LogTarget,
    LoggingConfig,
)
from .errors import LoggingError

logging.addLevelName(LogLevel.TRACE.level_number, "TRACE")

_LEVEL_LABELS = {"WARNING": "WARN", "CRITICAL": "ERROR"}
_ANSI_COLORS = {
    "TRACE": "\x1b[35m",
    "DEBUG": "\x1b[34m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[31m",
}
_ANSI_RESET = "\x1b[0m"
_ROTATION_WHEN = {
    LogRotation.MINUTELY: "M",
    LogRotation.HOURLY: "H",
    LogRotation.DAILY: "midnight",
}


class LogWriter(Protocol):
    """Something that can create a handler for log output."""

    ansi: bool

    def create_handler(self) -> logging.Handler: ...


@dataclass
class ConsoleLog:
    """Log output to standard output."""

    ansi: bool = True

    def create_handler(self) -> logging.Handler:
        return logging.StreamHandler(sys.stdout)


@dataclass
class FileLog:
    """Log output to a file, optionally rotated by time."""

    directory: Path = field(default_factory=lambda: Path(DEFAULT_LOG_DIR))
    file_name: Path = field(default_factory=lambda: Path(DEFAULT_LOG_FILE_NAME))
    file_ext: str = DEFAULT_LOG_FILE_EXT
    rotation: LogRotation = LogRotation.NEVER
    ansi: bool = False

    @classmethod
    def from_config(cls, config: LoggingConfig) -> FileLog:
        """Build from the logging configuration, filling unset values with defaults."""
        return cls(
            directory=Path(config.log_dir) if config.log_dir is not None else Path(DEFAULT_LOG_DIR),
            file_name=(
                Path(config.log_file)
                if config.log_file is not None
                else Path(DEFAULT_LOG_FILE_NAME)
            ),
            rotation=config.log_rotation if config.log_rotation is not None else LogRotation.NEVER,
        )

    def path(self) -> Path:
        """Path of the active log file."""
        return self.directory / f"{self.file_name}.{self.file_ext}"

    def create_handler(self) -> logging.Handler:
        """Open the log file; fall back to the console if that is impossible."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            when = _ROTATION_WHEN.get(self.rotation)
            if when is None:
                return logging.FileHandler(self.path(), encoding="utf-8")
            return logging.handlers.TimedRotatingFileHandler(
                self.path(), when=when, encoding="utf-8"
            )
        except OSError:
            return ConsoleLog(ansi=True).create_handler()


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        label = _LEVEL_LABELS.get(record.levelname, record.levelname)
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": label,
            "fields": {"message": record.getMessage()},
            "target": record.name,
        }
        if record.exc_info:
            payload["fields"]["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class _AnsiFormatter(logging.Formatter):
    def __init__(self, inner: logging.Formatter) -> None:
        super().__init__()
        self._inner = inner

    def format(self, record: logging.LogRecord) -> str:
        text = self._inner.format(record)
        color = _ANSI_COLORS.get(record.levelname)
        return f"{color}{text}{_ANSI_RESET}" if color else text


def build_formatter(log_format: LogFormat) -> logging.Formatter:
    """Return a formatter producing the requested layout."""
    match log_format:
        case LogFormat.FULL:
            return logging.Formatter("%(asctime)s %(levelname)8s %(name)s: %(message)s")
        case LogFormat.COMPACT:
            return logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        case LogFormat.PRETTY:
            return logging.Formatter(
                "  %(asctime)s %(levelname)s %(name)s\n"
                "    %(message)s\n"
                "    at %(pathname)s:%(lineno)d\n"
            )
        case LogFormat.JSON:
            return _JsonFormatter()
    raise ValueError(f"unknown log format {log_format!r}")


@dataclass
class LogLayer:
    """The configured writers and the handlers built from them."""

    writers: list[LogWriter] = field(default_factory=list)
    handlers: list[logging.Handler] = field(default_factory=list)

    def add(self, writer: LogWriter) -> None:
        self.writers.append(writer)

    def build_handlers(self, log_format: LogFormat) -> list[logging.Handler]:
        """Create one formatted handler per writer and return the new handlers."""
        built: list[logging.Handler] = []
        for writer in self.writers:
            handler = writer.create_handler()
            formatter = build_formatter(log_format)
            if writer.ansi:
                formatter = _AnsiFormatter(formatter)
            handler.setFormatter(formatter)
            built.append(handler)
        self.handlers.extend(built)
        return built

    def clear(self) -> None:
        """Forget all writers and close all handlers."""
        self.writers.clear()
        for handler in self.handlers:
            handler.close()
        self.handlers.clear()


@dataclass
class Logging:
    """Installed logging; keep it alive while logging is needed, then close it."""

    targets: list[LogTarget]
    log_format: LogFormat
    level: LogLevel
    layer: LogLayer

    @classmethod
    def from_config(cls, config: LoggingConfig) -> Logging:
        """Install handlers for the configured targets on the package logger.

        Raises LoggingError if handlers are already installed.
        """
        layer = LogLayer()
        for target in config.log_targets:
            match target:
                case LogTarget.NONE:
                    layer.clear()
                    break
                case LogTarget.CONSOLE:
                    layer.add(ConsoleLog(ansi=True))
                case LogTarget.FILE:
                    layer.add(FileLog.from_config(config))
                case LogTarget.ALL:
                    layer.add(FileLog.from_config(config))
                    layer.add(ConsoleLog())

        handlers = layer.build_handlers(config.log_format)
        if handlers:
            logger = logging.getLogger(LOG_FILTER_TARGET)
            if logger.handlers:
                layer.clear()
                raise LoggingError(
                    LoggingError.Kind.INIT_FAILED,
                    "a global logger has already been installed",
                )
            logger.setLevel(config.log_level.level_number)
            for handler in handlers:
                logger.addHandler(handler)

        return cls(
            targets=list(config.log_targets),
            log_format=config.log_format,
            level=config.log_level,
            layer=layer,
        )

    def close(self) -> None:
        """Remove and close the installed handlers."""
        logger = logging.getLogger(LOG_FILTER_TARGET)
        if self.layer.handlers:
            for handler in self.layer.handlers:
                logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)
        self.layer.clear()

    def __enter__(self) -> Logging:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()