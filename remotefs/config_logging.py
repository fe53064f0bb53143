"""Logging configuration: targets, format, level and file rotation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from .util import normalize_optional_path, parse_flexible_list

DEFAULT_LOG_DIR = "./logs"
DEFAULT_LOG_FILE_NAME = "remote_fs_server"
DEFAULT_LOG_FILE_EXT = "log"
DEFAULT_LOG_FILE_ROT = "never"
LOG_FILTER_TARGET = "remotefs"

E = TypeVar("E", bound=Enum)


class LogTarget(Enum):
    """Where log records are written."""

    NONE = "none"
    CONSOLE = "console"
    FILE = "file"
    ALL = "all"

    @classmethod
    def parse(cls, text: str) -> LogTarget:
        """Parse a target name, ignoring case and surrounding spaces."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ValueError(f"Target invalid: {text}") from None

    def __str__(self) -> str:
        return self.value


_TARGET_ORDER = list(LogTarget)


class LogFormat(Enum):
    FULL = "full"
    COMPACT = "compact"
    PRETTY = "pretty"
    JSON = "json"


class LogLevel(Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    def filter_directive(self) -> str:
        """Return the filter directive for this level."""
        return f"{LOG_FILTER_TARGET}={self.value}"

    @property
    def level_number(self) -> int:
        """The matching numeric level of the standard logging module."""
        return _LEVEL_NUMBERS[self]


_LEVEL_NUMBERS = {
    LogLevel.TRACE: logging.DEBUG - 5,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LogRotation(Enum):
    MINUTELY = "minutely"
    HOURLY = "hourly"
    DAILY = "daily"
    NEVER = "never"

    @classmethod
    def parse(cls, text: str) -> LogRotation:
        """Parse a rotation name; unknown names mean no rotation."""
        try:
            return cls(text.lower())
        except ValueError:
            return cls.NEVER


def _enum_value(enum_cls: type[E], raw: Any) -> E:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValueError(f"unknown {enum_cls.__name__} variant {raw!r}") from None


def _parse_target(text: str) -> LogTarget:
    return LogTarget(text)


@dataclass
class LoggingConfig:
    """Logging settings after all configuration sources are merged."""

    log_targets: list[LogTarget] = field(default_factory=lambda: [LogTarget.ALL])
    log_format: LogFormat = LogFormat.FULL
    log_level: LogLevel = LogLevel.INFO
    log_dir: Path | None = field(default_factory=lambda: Path(DEFAULT_LOG_DIR))
    log_file: Path | None = field(default_factory=lambda: Path(DEFAULT_LOG_FILE_NAME))
    log_rotation: LogRotation | None = LogRotation.NEVER

    def finalize(self) -> None:
        """Normalize paths, deduplicate targets and apply file defaults."""
        self.log_dir = normalize_optional_path(self.log_dir)
        self.log_file = normalize_optional_path(self.log_file)

        targets = sorted(set(self.log_targets), key=_TARGET_ORDER.index)
        if LogTarget.NONE in targets:
            targets = []
        if LogTarget.ALL in targets:
            targets = [LogTarget.ALL]
        self.log_targets = targets

        if LogTarget.ALL in targets or LogTarget.FILE in targets:
            if self.log_dir is None:
                self.log_dir = Path(DEFAULT_LOG_DIR)
            if self.log_file is None:
                self.log_file = Path(DEFAULT_LOG_FILE_NAME)
            if self.log_rotation is None:
                self.log_rotation = LogRotation.NEVER
        else:
            self.log_dir = None
            self.log_file = None
            self.log_rotation = None

    def validate(self) -> None:
        """Check consistency; every combination is currently accepted."""
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "log_targets": [t.value for t in self.log_targets],
            "log_format": self.log_format.value,
            "log_level": self.log_level.value,
            "log_dir": None if self.log_dir is None else str(self.log_dir),
            "log_file": None if self.log_file is None else str(self.log_file),
            "log_rotation": None if self.log_rotation is None else self.log_rotation.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggingConfig:
        if not isinstance(data, Mapping):
            raise TypeError("logging configuration must be a mapping")
        for key in ("log_targets", "log_format", "log_level"):
            if key not in data:
                raise ValueError(f"missing field {key!r}")
        raw_targets = parse_flexible_list(data["log_targets"], _parse_target)
        targets = [_enum_value(LogTarget, t) for t in raw_targets]
        log_dir = data.get("log_dir")
        log_file = data.get("log_file")
        rotation = data.get("log_rotation")
        return cls(
            log_targets=targets,
            log_format=_enum_value(LogFormat, data["log_format"]),
            log_level=_enum_value(LogLevel, data["log_level"]),
            log_dir=None if log_dir is None else Path(log_dir),
            log_file=None if log_file is None else Path(log_file),
            log_rotation=None if rotation is None else _enum_value(LogRotation, rotation),
        )


@dataclass
class LoggingCliArgs:
    """Logging options given on the command line; ``None`` means not given."""

    log_targets: list[LogTarget] | None = None
    log_format: LogFormat | None = None
    log_level: LogLevel | None = None
    log_dir: Path | None = None
    log_file: Path | None = None
    log_rotation: LogRotation | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return only the options that were given, ready to be merged."""
        result: dict[str, Any] = {}
        if self.log_targets is not None:
            result["log_targets"] = [t.value for t in self.log_targets]
        for name in ("log_format", "log_level", "log_rotation"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value.value
        for name in ("log_dir", "log_file"):
            value = getattr(self, name)
            if value is not None:
                result[name] = str(value)
        return result