"""Command-line entry point of the remote filesystem server."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, MutableMapping, Sequence
from pathlib import Path

from .commands import EnvVarGenerator, TomlConfigGenerator
from .config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_DATABASE_PATH,
    ENV_PREFIX,
    ENV_SEPARATOR,
    load_jwt_key,
)
from .errors import CommandError, ConfigError, RfsServerError

DOTENV_FILE = ".env"
DATABASE_PATH_ENV = "DATABASE_PATH"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _load_dotenv(path: Path, environ: MutableMapping[str, str]) -> None:
    """Add ``KEY=VALUE`` lines of ``path`` to ``environ`` without overriding.

    A missing or unreadable file is ignored.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        environ.setdefault(key, _unquote(value.strip()))


def _run_toml_gen(args: argparse.Namespace) -> None:
    TomlConfigGenerator(
        output=Path(args.output), force=args.force, default=args.default
    ).execute()


def _run_env_gen(args: argparse.Namespace) -> None:
    output = None if args.output is None else Path(args.output)
    EnvVarGenerator(output=output, prefix=args.prefix, separator=args.separator).execute()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser of the server."""
    parser = argparse.ArgumentParser(
        prog="remotefs-server", description="Remote Filesystem Server"
    )
    parser.add_argument(
        "-d",
        "--database-path",
        default=os.environ.get(DATABASE_PATH_ENV, DEFAULT_DATABASE_PATH),
        help="Path to the database file",
    )
    commands = parser.add_subparsers(dest="command", title="Commands")

    toml_gen = commands.add_parser(
        "toml-gen", help="Generate a default configuration file"
    )
    toml_gen.add_argument(
        "-o",
        "--output",
        default=DEFAULT_CONFIG_FILE,
        help="Output path for the generated configuration file",
    )
    toml_gen.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing file if it exists",
    )
    toml_gen.add_argument(
        "-d",
        "--default",
        action="store_true",
        help="Whether to include default values in the generated configuration file",
    )
    toml_gen.set_defaults(handler=_run_toml_gen)

    env_gen = commands.add_parser(
        "env-gen", help="Generate environment variable template"
    )
    env_gen.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path for the generated environment variable template",
    )
    env_gen.add_argument(
        "-p", "--prefix", default=ENV_PREFIX, help="Prefix for environment variables"
    )
    env_gen.add_argument(
        "-s",
        "--separator",
        default=ENV_SEPARATOR,
        help="Separator for nested fields in environment variables",
    )
    env_gen.set_defaults(handler=_run_env_gen)
    return parser


def _report(error: RfsServerError) -> int:
    print(f"Error: {error}", file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server command line and return the exit status."""
    _load_dotenv(Path(DOTENV_FILE), os.environ)
    parser = build_parser()
    args = parser.parse_args(argv)

    handler: Callable[[argparse.Namespace], None] | None = getattr(args, "handler", None)
    if args.command is None or handler is None:
        parser.print_help()
        return 0

    try:
        load_jwt_key()
    except ConfigError as err:
        return _report(RfsServerError(f"Failed to load JWT key: {err}"))

    try:
        handler(args)
    except CommandError as err:
        return _report(RfsServerError(err))
    return 0


if __name__ == "__main__":
    sys.exit(main())