"""File attributes, permissions and timestamps exchanged with the server."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

_I64_MAX = 2**63 - 1
_U32_MAX = 2**32 - 1
_NANOS = 1_000_000_000
_MASK_RE = re.compile(r"\+?[0-9]+", re.ASCII)


class FileType(Enum):
    """Kind of filesystem entry."""

    NAMED_PIPE = "NamedPipe"
    CHAR_DEVICE = "CharDevice"
    BLOCK_DEVICE = "BlockDevice"
    DIRECTORY = "Directory"
    REGULAR_FILE = "RegularFile"
    SYMLINK = "Symlink"
    SOCKET = "Socket"

    @classmethod
    def from_code(cls, value: int) -> FileType:
        """Return the type for a numeric tag; raise ValueError if unknown."""
        for member, code in _FILE_TYPE_CODES.items():
            if code == value:
                return member
        raise ValueError("Invalid FileType")

    def to_code(self) -> int:
        return _FILE_TYPE_CODES[self]


_FILE_TYPE_CODES = {member: code for code, member in enumerate(FileType)}


@dataclass(frozen=True)
class PermissionType:
    """Read, write and execute bits for one class of users."""

    read: bool = False
    write: bool = False
    execute: bool = False

    def to_bits(self) -> int:
        return (0b100 if self.read else 0) | (0b010 if self.write else 0) | (
            0b001 if self.execute else 0
        )

    @classmethod
    def from_bits(cls, value: int) -> PermissionType:
        """Decode the low three bits of ``value``."""
        return cls(
            read=bool(value & 0b100),
            write=bool(value & 0b010),
            execute=bool(value & 0b001),
        )


@dataclass(frozen=True)
class Permission:
    """Owner, group and other permissions packed as ``user<<6 | group<<3 | other``."""

    user: PermissionType
    group: PermissionType
    other: PermissionType

    def to_mode(self) -> int:
        return (self.user.to_bits() << 6) | (self.group.to_bits() << 3) | self.other.to_bits()

    @classmethod
    def from_mode(cls, value: int) -> Permission:
        return cls(
            user=PermissionType.from_bits(value >> 6),
            group=PermissionType.from_bits(value >> 3),
            other=PermissionType.from_bits(value),
        )


class Operation(Enum):
    """Access being checked."""

    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"
    OWNER_ONLY = "owner_only"

    @classmethod
    def from_mask(cls, mask: int) -> Operation:
        """Map an access mask (4, 2 or 1) to an operation."""
        match mask:
            case 4:
                return cls.READ
            case 2:
                return cls.WRITE
            case 1:
                return cls.EXECUTE
        raise ValueError("Invalid mask")


def parse_mask(mask: str) -> int:
    """Parse a mask query value as an unsigned 32-bit integer."""
    if not _MASK_RE.fullmatch(mask):
        raise ValueError("Invalid mask")
    value = int(mask)
    if value > _U32_MAX:
        raise ValueError("Invalid mask")
    return value


@dataclass(frozen=True, order=True)
class Timestamp:
    """Seconds and nanoseconds since the Unix epoch."""

    sec: int
    nsec: int = 0

    @classmethod
    def from_epoch(cls, seconds: float) -> Timestamp:
        """Build from seconds since the epoch; times before it become zero."""
        if seconds <= 0:
            return cls(0, 0)
        if isinstance(seconds, int):
            return cls(min(seconds, _I64_MAX), 0)
        sec = math.floor(seconds)
        nsec = round((seconds - sec) * _NANOS)
        if nsec >= _NANOS:
            sec += 1
            nsec -= _NANOS
        return cls(min(sec, _I64_MAX), nsec)

    def to_epoch(self) -> float:
        return self.sec + self.nsec / _NANOS

    def to_dict(self) -> dict[str, int]:
        return {"sec": self.sec, "nsec": self.nsec}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Timestamp:
        try:
            return cls(sec=int(data["sec"]), nsec=int(data["nsec"]))
        except KeyError as err:
            raise ValueError(f"missing field {err.args[0]!r}") from None


@dataclass
class FileAttr:
    """Attributes of a file as reported to clients."""

    size: int
    blocks: int
    atime: Timestamp
    mtime: Timestamp
    ctime: Timestamp
    kind: FileType
    perm: int
    nlink: int
    uid: int
    gid: int
    rdev: int
    blksize: int

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Timestamp):
                value = value.to_dict()
            elif isinstance(value, FileType):
                value = value.value
            result[f.name] = value
        return result


_SETATTR_TIMES = frozenset({"atime", "mtime", "ctime", "crtime", "chgtime", "bkuptime"})


@dataclass
class SetAttr:
    """Attribute changes requested by a client; ``None`` means unchanged."""

    mode: int | None = None
    uid: int | None = None
    gid: int | None = None
    size: int | None = None
    atime: Timestamp | None = None
    mtime: Timestamp | None = None
    ctime: Timestamp | None = None
    crtime: Timestamp | None = None
    chgtime: Timestamp | None = None
    bkuptime: Timestamp | None = None
    flags: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SetAttr:
        if not isinstance(data, Mapping):
            raise TypeError("expected a mapping")
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = data.get(f.name)
            if raw is None:
                continue
            values[f.name] = Timestamp.from_dict(raw) if f.name in _SETATTR_TIMES else int(raw)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.to_dict() if isinstance(value, Timestamp) else value
        return result


@dataclass
class Stats:
    """Filesystem statistics."""

    blocks: int
    bfree: int
    bavail: int
    files: int
    ffree: int
    bsize: int
    namelen: int
    frsize: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)