"""Commands that write a default configuration file or an environment template."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import DEFAULT_CONFIG_FILE, ENV_PREFIX, ENV_SEPARATOR, RfsConfig, format_toml
from .errors import CommandError
from .util import normalize_path

_PLACEHOLDER = "..."


def _quote(value: object) -> str:
    return json.dumps(str(value))


def _failed(message: str) -> CommandError:
    return CommandError(CommandError.Kind.EXECUTION_FAILED, message)


def _extension(path: Path) -> str | None:
    """Return the extension of the final component, treating dot-files as having none."""
    name = path.name
    if not name or name == "..":
        return None
    before, dot, after = name.rpartition(".")
    if not dot or before == "":
        return None
    return after


def ensure_extension(path: str | os.PathLike[str], ext: str) -> Path:
    """Return ``path`` with extension ``ext``.

    A path that already has ``ext`` is returned unchanged, a path without an
    extension gets it appended, and a path with another extension raises
    CommandError.
    """
    p = Path(path)
    current = _extension(p)
    if current is not None:
        if current == ext:
            return p
        raise _failed(
            f"File {_quote(p)} has a different extension ({_quote(current)}) "
            f"than the required one (.{ext})"
        )
    if not p.name:
        return p
    return p.with_name(f"{p.name}.{ext}")


@dataclass
class TomlConfigGenerator:
    """Write the default configuration as a TOML file."""

    output: Path = field(default_factory=lambda: Path(DEFAULT_CONFIG_FILE))
    force: bool = False
    default: bool = False

    def execute(self) -> Path:
        """Write the file and return where it was written.

        Raises CommandError if the file exists and ``force`` is not set.
        """
        output = ensure_extension(normalize_path(self.output), "toml")
        if output.exists() and not self.force:
            raise _failed(
                f"File {_quote(output)} already exists. Use --force to replace it."
            )
        try:
            text = format_toml(RfsConfig())
        except ValueError as err:
            raise _failed(f"Failed to generate default TOML: {err}") from err
        try:
            output.write_text(text, encoding="utf-8")
        except OSError as err:
            raise _failed(f"Failed to write {_quote(output)} to file: {err}") from err
        print(f"Default configuration successfully generated at: {_quote(output)}")
        return output


def _leaf_text(node: Any) -> str:
    if node is None:
        return _PLACEHOLDER
    if isinstance(node, bool):
        return "true" if node else "false"
    if isinstance(node, (int, float)):
        return str(node)
    if isinstance(node, str):
        return node
    return _PLACEHOLDER


@dataclass
class EnvVarGenerator:
    """Produce a template of the supported environment variables."""

    output: Path | None = None
    prefix: str = ENV_PREFIX
    separator: str = ENV_SEPARATOR

    def _walk(self, node: Any, path: str | None) -> str:
        if isinstance(node, Mapping):
            return "".join(
                self._walk(
                    node[key],
                    str(key) if path is None else f"{path}{self.separator}{key}",
                )
                for key in sorted(node)
            )
        if isinstance(node, (list, tuple)):
            joined = ",".join(self._walk(item, None) for item in node)
            return joined if path is None else f"{path.upper()}={joined}\n"
        text = _leaf_text(node)
        return text if path is None else f"{path.upper()}={text}\n"

    def render(self) -> str:
        """Return the template text for the default configuration."""
        header = "# Supported Environment Variables:\n"
        return header + self._walk(RfsConfig().to_dict(), self.prefix)

    def execute(self) -> Path | None:
        """Write the template to ``output`` (as ``.env``) or print it.

        Returns the written path, or ``None`` when printed.
        """
        text = self.render()
        if self.output is None:
            print(text)
            return None
        output_path = ensure_extension(normalize_path(self.output), "env")
        try:
            output_path.write_text(text, encoding="utf-8")
        except OSError as err:
            raise _failed(
                f"Failed to write environment template to {_quote(output_path)}: {err}"
            ) from err
        print(
            "Environment variable template successfully generated at: "
            f"{_quote(output_path)}"
        )
        return output_path