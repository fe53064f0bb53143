"""Server configuration merged from defaults, a file, the environment and the CLI."""

from __future__ import annotations

import base64
import binascii
import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from .config_logging import LoggingCliArgs, LoggingConfig
from .errors import ConfigError

ENV_PREFIX = "RFS"
JWT_PREFIX = "JWT"
ENV_SEPARATOR = "__"
DEFAULT_DATABASE_PATH = "database/db.sqlite"
DEFAULT_CONFIG_FILE = "server_config.toml"
DEFAULT_SERVER_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_FILESYSTEM_ROOT = "/remote_fs"

_MAX_PORT = 65535


@dataclass
class RfsConfig:
    """Complete server configuration."""

    server_host: str = DEFAULT_SERVER_HOST
    server_port: int = DEFAULT_PORT
    filesystem_root: Path = field(default_factory=lambda: Path(DEFAULT_FILESYSTEM_ROOT))
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "server_host": self.server_host,
            "server_port": self.server_port,
            "filesystem_root": str(self.filesystem_root),
            "logging": self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RfsConfig:
        if not isinstance(data, Mapping):
            raise TypeError("configuration must be a mapping")
        for key in ("server_host", "server_port", "filesystem_root", "logging"):
            if key not in data:
                raise ValueError(f"missing field {key!r}")
        try:
            port = int(data["server_port"])
        except (TypeError, ValueError):
            raise ValueError(f"invalid server_port {data['server_port']!r}") from None
        if not 0 <= port <= _MAX_PORT:
            raise ValueError(f"server_port {port} out of range")
        return cls(
            server_host=str(data["server_host"]),
            server_port=port,
            filesystem_root=Path(data["filesystem_root"]),
            logging=LoggingConfig.from_dict(data["logging"]),
        )

    def finalize(self) -> None:
        self.logging.finalize()

    def validate(self) -> None:
        """Raise ValueError if the configuration is inconsistent."""
        try:
            self.logging.validate()
        except ValueError as err:
            raise ValueError(f"[Logging] {err}") from err

    @classmethod
    def load(cls, args: RfsCliArgs, environ: Mapping[str, str] | None = None) -> RfsConfig:
        """Merge defaults, config file, environment and CLI (lowest to highest)."""
        env = os.environ if environ is None else environ
        merged = cls().to_dict()
        _deep_merge(merged, _read_config_file(Path(args.config_file)))
        _deep_merge(merged, env_overrides(env, ENV_PREFIX, ENV_SEPARATOR))
        _deep_merge(merged, args.to_dict())
        try:
            config = cls.from_dict(merged)
        except (TypeError, ValueError) as err:
            raise ConfigError(
                ConfigError.Kind.INVALID_CONFIG,
                f"Failed to deserialize configuration: {err}",
            ) from err
        config.finalize()
        try:
            config.validate()
        except ValueError as err:
            raise ConfigError(ConfigError.Kind.INVALID_CONFIG, err) from err
        return config


@dataclass
class RfsCliArgs:
    """Options of the ``run`` command; ``None`` means not given."""

    config_file: Path = field(default_factory=lambda: Path(DEFAULT_CONFIG_FILE))
    server_host: str | None = None
    server_port: int | None = None
    filesystem_root: Path | None = None
    logging: LoggingCliArgs = field(default_factory=LoggingCliArgs)

    def to_dict(self) -> dict[str, Any]:
        """Return the given options as configuration overrides."""
        result: dict[str, Any] = {}
        if self.server_host is not None:
            result["server_host"] = self.server_host
        if self.server_port is not None:
            result["server_port"] = self.server_port
        if self.filesystem_root is not None:
            result["filesystem_root"] = str(self.filesystem_root)
        result["logging"] = self.logging.to_dict()
        return result


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        elif isinstance(value, Mapping):
            base[key] = _deep_merge({}, value)
        else:
            base[key] = value
    return base


def _read_config_file(path: Path) -> dict[str, Any]:
    candidates = [path] if path.suffix else [path.with_suffix(s) for s in (".toml", ".json")]
    for candidate in candidates:
        if not candidate.is_file():
            continue
        suffix = candidate.suffix.lower()
        try:
            text = candidate.read_text(encoding="utf-8")
            if suffix == ".toml":
                data = tomllib.loads(text)
            elif suffix == ".json":
                data = json.loads(text)
            else:
                raise ValueError(f"unsupported configuration format {suffix!r}")
        except (OSError, ValueError) as err:
            raise ConfigError(
                ConfigError.Kind.OTHER, f"Failed to build configuration: {err}"
            ) from err
        if not isinstance(data, dict):
            raise ConfigError(
                ConfigError.Kind.OTHER,
                "Failed to build configuration: top level is not a table",
            )
        return data
    return {}


def env_overrides(
    environ: Mapping[str, str], prefix: str, separator: str
) -> dict[str, Any]:
    """Collect ``PREFIX<sep>A<sep>B=value`` variables into ``{"a": {"b": value}}``.

    Matching of the prefix is case-insensitive and keys are lowercased.
    """
    head = (prefix + separator).lower()
    sep = separator.lower()
    result: dict[str, Any] = {}
    for key, value in environ.items():
        lowered = key.lower()
        if not lowered.startswith(head):
            continue
        path = lowered[len(head):].split(sep)
        if not all(path):
            continue
        node = result
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[path[-1]] = value
    return result


def _strip_none(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_strip_none(v) for v in value]
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    return value


def format_toml(value: Any) -> str:
    """Serialize a configuration object or mapping as TOML, dropping unset values."""
    data = value.to_dict() if hasattr(value, "to_dict") else value
    try:
        return tomli_w.dumps(_strip_none(data))
    except (TypeError, ValueError) as err:
        raise ValueError(f"Failed to serialize to TOML: {err}") from err


def load_jwt_key(environ: Mapping[str, str] | None = None) -> bytes:
    """Read and base64-decode the ``JWT__KEY`` environment variable."""
    env = os.environ if environ is None else environ
    key = env_overrides(env, JWT_PREFIX, ENV_SEPARATOR).get("key")
    if not isinstance(key, str):
        raise ConfigError(
            ConfigError.Kind.ENV_VAR,
            'Missing JWT_KEY value in environment file because of missing '
            'configuration field "key".',
        )
    try:
        return base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ConfigError(ConfigError.Kind.ENV_VAR, f"Invalid JWT key: {err}") from err