"""Request and response bodies exchanged between the client and the server."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .attributes import FileAttr, FileType, SetAttr, Timestamp

_ATTR_INTS = ("size", "blocks", "perm", "nlink", "uid", "gid", "rdev", "blksize")
_ATTR_TIMES = ("atime", "mtime", "ctime")


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} must be a mapping")
    return data


def _attributes_from_dict(data: Any) -> FileAttr:
    """Build file attributes from their JSON form."""
    data = _require_mapping(data, "attributes")
    try:
        values: dict[str, Any] = {name: int(data[name]) for name in _ATTR_INTS}
        for name in _ATTR_TIMES:
            values[name] = Timestamp.from_dict(_require_mapping(data[name], name))
        values["kind"] = FileType(data["kind"])
    except KeyError as err:
        raise ValueError(f"missing field {err.args[0]!r}") from None
    return FileAttr(**values)


class ItemType(Enum):
    """Kind of a directory entry."""

    FILE = "file"
    SYMLINK = "symlink"
    DIRECTORY = "directory"


@dataclass
class SerializableFSItem:
    """A directory entry with its attributes."""

    name: str
    item_type: ItemType
    attributes: FileAttr

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SerializableFSItem:
        data = _require_mapping(data, "item")
        try:
            name = data["name"]
            item_type = ItemType(data["item_type"])
            attributes = _attributes_from_dict(data["attributes"])
        except KeyError as err:
            raise ValueError(f"missing field {err.args[0]!r}") from None
        if not isinstance(name, str):
            raise ValueError("item name must be a string")
        return cls(name=name, item_type=item_type, attributes=attributes)


@dataclass
class ReadFileRequest:
    offset: int
    size: int

    def to_dict(self) -> dict[str, int]:
        return {"offset": self.offset, "size": self.size}


@dataclass
class WriteFile:
    """A write whose data travels as base64 text."""

    offset: int
    data: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "offset": self.offset,
            "data": base64.b64encode(self.data).decode("ascii"),
        }


@dataclass
class RenameRequest:
    old_path: str
    new_path: str
    flags: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"old_path": self.old_path, "new_path": self.new_path, "flags": self.flags}


@dataclass
class SetAttrRequest:
    setattr: SetAttr

    def to_dict(self) -> dict[str, Any]:
        return {"setattr": self.setattr.to_dict()}


@dataclass
class WriteSymlink:
    target: str

    def to_dict(self) -> dict[str, str]:
        return {"target": self.target}


@dataclass
class LoginRequest:
    username: str
    password: str = field(repr=False)

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}


@dataclass
class LoginResponse:
    token: str = field(repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoginResponse:
        data = _require_mapping(data, "login response")
        if "token" not in data:
            raise ValueError("missing field 'token'")
        token = data["token"]
        if not isinstance(token, str):
            raise ValueError("token must be a string")
        return cls(token=token)


@dataclass
class Xattributes:
    """An extended attribute value, sent as a list of byte values."""

    xattributes: bytes

    def to_dict(self) -> dict[str, list[int]]:
        return {"xattributes": list(self.xattributes)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Xattributes:
        data = _require_mapping(data, "xattributes")
        if "xattributes" not in data:
            raise ValueError("missing field 'xattributes'")
        raw = data["xattributes"]
        if not isinstance(raw, list):
            raise ValueError("xattributes must be a list of bytes")
        return cls(xattributes=bytes(raw))


@dataclass
class ListXattributes:
    names: list[str]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListXattributes:
        data = _require_mapping(data, "xattribute list")
        if "names" not in data:
            raise ValueError("missing field 'names'")
        names = data["names"]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError("names must be a list of strings")
        return cls(names=list(names))