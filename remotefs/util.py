"""Path helpers and lenient list parsing for configuration values."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

T = TypeVar("T")


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Return ``path`` with ``.`` components dropped and ``..`` resolved lexically.

    A ``..`` removes the previous component; at the root or at the start of
    a relative path it is simply discarded.
    """
    p = Path(path)
    anchor = p.anchor
    parts = p.parts[1:] if anchor else p.parts
    kept: list[str] = []
    for part in parts:
        if part == ".":
            continue
        if part == "..":
            if kept:
                kept.pop()
            continue
        kept.append(part)
    return Path(anchor, *kept) if anchor else Path(*kept)


def normalize_optional_path(path: str | os.PathLike[str] | None) -> Path | None:
    """Normalize ``path`` unless it is ``None``."""
    return None if path is None else normalize_path(path)


def _convert_item(item: Any, convert: Callable[[str], T]) -> T:
    if isinstance(item, str):
        return convert(item)
    return item


def parse_flexible_list(value: Any, convert: Callable[[str], T]) -> list[T]:
    """Build a list from a comma-separated string, a sequence or a numbered map.

    Strings are split on commas and each trimmed piece is passed to
    ``convert``; an empty string gives an empty list. For sequences and
    mappings (whose keys are discarded) string elements are converted and
    other elements are kept as they are.
    """
    if isinstance(value, str):
        if not value:
            return []
        return [convert(piece.strip()) for piece in value.split(",")]
    if isinstance(value, Mapping):
        return [_convert_item(item, convert) for item in value.values()]
    if isinstance(value, (list, tuple)):
        return [_convert_item(item, convert) for item in value]
    raise TypeError("expected a sequence, a comma-separated string, or a map")