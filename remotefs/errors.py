"""Error types raised by the server components and their API representation."""

from __future__ import annotations

import errno
from collections.abc import Mapping
from enum import Enum
from typing import Any


class ApiErrorKind(Enum):
    """Error categories reported to API clients."""

    UNAUTHORIZED = "Unauthorized"
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_A_DIRECTORY = "NotADirectory"
    IS_A_DIRECTORY = "IsADirectory"
    DIRECTORY_NOT_EMPTY = "DirectoryNotEmpty"
    PERMISSION_DENIED = "PermissionDenied"
    OPERATION_NOT_PERMITTED = "OperationNotPermitted"
    STORAGE_FULL = "StorageFull"
    OUT_OF_MEMORY = "OutOfMemory"
    INVALID_INPUT = "InvalidInput"
    FILE_TOO_LARGE = "FileTooLarge"
    UNSUPPORTED = "Unsupported"
    CROSS_DEVICE_LINK = "CrossDeviceLink"
    IO_ERROR = "IoError"
    TEXT_FILE_BUSY = "TextFileBusy"
    RESOURCE_BUSY = "ResourceBusy"
    TRY_AGAIN = "TryAgain"
    INTERNAL_ERROR = "InternalError"


class ApiError(Exception):
    """An error carried in an API response as ``{"type": ..., "message": ...}``."""

    def __init__(self, kind: ApiErrorKind, message: object) -> None:
        self.kind = kind
        self.message = str(message)
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.kind.value, "message": self.message}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ApiError:
        try:
            kind = ApiErrorKind(data["type"])
            message = data["message"]
        except (KeyError, ValueError, TypeError) as err:
            raise ValueError(f"invalid API error payload: {err}") from None
        if not isinstance(message, str):
            raise ValueError("invalid API error payload: message is not a string")
        return cls(kind, message)


class _KindedError(Exception):
    """Base for errors whose kind's value is the message template."""

    def __init__(self, kind: Enum, message: object = "") -> None:
        self.kind = kind
        self.message = str(message)
        super().__init__(kind.value.format(self.message))


class CommandError(_KindedError):
    """A command-line command failed."""

    class Kind(Enum):
        INVALID_COMMAND = "Invalid command: {}"
        MISSING_ARGUMENT = "Missing argument: {}"
        EXECUTION_FAILED = "Execution failed: {}"
        OTHER = "{}"


class ConfigError(_KindedError):
    """Configuration could not be loaded or is invalid."""

    class Kind(Enum):
        ENV_VAR = "Failed loading environment variables: {}"
        ARGS_PARSE = "Failed parsing CLI arguments"
        INVALID_PATH = "Invalid path: {}"
        INVALID_CONFIG = "Invalid configuration: {}"
        OTHER = "{}"


class LoggingError(_KindedError):
    """Logging could not be set up."""

    class Kind(Enum):
        INIT_FAILED = "Failed to initialize logger: {}"
        INVALID_VALUE = "Invalid logging value: {}"


class StorageError(_KindedError):
    """A filesystem or storage operation failed."""

    class Kind(Enum):
        IO = "I/O error: {}"
        NOT_FOUND = "Not Found: {}"
        INVALID_PATH = "Invalid Path: {}"
        ALREADY_EXISTS = "Already exists: {}"
        PERMISSION_DENIED = "Permission denied"
        DIRECTORY_NOT_EMPTY = "Directory not empty: {}"
        UNSUPPORTED_OPERATION = "Operation not supported: {}"
        CONVERSION_FAILED = "Conversion failed"
        METADATA_ERROR = "Metadata error: {}"
        OTHER = "{}"


class AuthenticationError(_KindedError):
    """Authentication was refused."""

    class Kind(Enum):
        UNAUTHORIZED = "Unauthorized: {}"
        NOT_FOUND = "Not found: {}"


class DatabaseError(_KindedError):
    """A database operation failed."""

    class Kind(Enum):
        CREATION_ERROR = "Database creation error: {}"
        CONNECTION_ERROR = "Connection error: {}"
        MIGRATION_ERROR = "Migration error: {}"
        QUERY_ERROR = "Query error: {}"
        OTHER = "{}"


_SERVER_PREFIXES: tuple[tuple[type[Exception], str], ...] = (
    (CommandError, "Command error: "),
    (ConfigError, "Config error: "),
    (LoggingError, "Logging error: "),
    (StorageError, "Storage error: "),
    (DatabaseError, "Database error: "),
    (AuthenticationError, "Authentication error: "),
)


class RfsServerError(Exception):
    """Top-level server error wrapping one of the more specific errors."""

    def __init__(self, error: BaseException | str) -> None:
        self.error = error
        prefix = next((p for t, p in _SERVER_PREFIXES if isinstance(error, t)), "")
        super().__init__(f"{prefix}{error}")


def _storage_to_api(error: StorageError) -> ApiError:
    kind, msg = StorageError.Kind, error.message
    match error.kind:
        case kind.IO:
            return ApiError(ApiErrorKind.IO_ERROR, msg)
        case kind.NOT_FOUND:
            return ApiError(ApiErrorKind.NOT_FOUND, msg)
        case kind.INVALID_PATH:
            return ApiError(ApiErrorKind.INVALID_INPUT, f"Invalid path: {msg}")
        case kind.ALREADY_EXISTS:
            return ApiError(ApiErrorKind.ALREADY_EXISTS, msg)
        case kind.PERMISSION_DENIED:
            return ApiError(ApiErrorKind.PERMISSION_DENIED, "Permission denied")
        case kind.UNSUPPORTED_OPERATION:
            return ApiError(ApiErrorKind.UNSUPPORTED, msg)
        case kind.DIRECTORY_NOT_EMPTY:
            return ApiError(ApiErrorKind.DIRECTORY_NOT_EMPTY, msg)
        case kind.CONVERSION_FAILED:
            return ApiError(ApiErrorKind.INTERNAL_ERROR, "Conversion failed")
        case kind.METADATA_ERROR:
            return ApiError(ApiErrorKind.INTERNAL_ERROR, f"Metadata error: {msg}")
        case _:
            return ApiError(ApiErrorKind.INTERNAL_ERROR, f"Other storage error: {msg}")


_DATABASE_API_PREFIXES = {
    DatabaseError.Kind.CREATION_ERROR: "Database creation error: ",
    DatabaseError.Kind.CONNECTION_ERROR: "Database connection error: ",
    DatabaseError.Kind.MIGRATION_ERROR: "Database migration error: ",
    DatabaseError.Kind.QUERY_ERROR: "Database query error: ",
    DatabaseError.Kind.OTHER: "Database other error: ",
}


def to_api_error(error: Exception) -> ApiError:
    """Convert a storage, authentication or database error to an ApiError."""
    if isinstance(error, ApiError):
        return error
    if isinstance(error, StorageError):
        return _storage_to_api(error)
    if isinstance(error, AuthenticationError):
        if error.kind is AuthenticationError.Kind.UNAUTHORIZED:
            return ApiError(ApiErrorKind.UNAUTHORIZED, error.message)
        return ApiError(ApiErrorKind.NOT_FOUND, error.message)
    if isinstance(error, DatabaseError):
        prefix = _DATABASE_API_PREFIXES[error.kind]
        return ApiError(ApiErrorKind.INTERNAL_ERROR, f"{prefix}{error.message}")
    raise TypeError(f"cannot convert {type(error).__name__} to an API error")


_UNSUPPORTED_ERRNOS = frozenset(
    getattr(errno, name) for name in ("ENOTSUP", "EOPNOTSUPP") if hasattr(errno, name)
)


def storage_error_from_os(error: OSError) -> StorageError:
    """Classify an operating-system error as a StorageError."""
    kind = StorageError.Kind
    if isinstance(error, FileNotFoundError):
        result = StorageError(kind.NOT_FOUND, error)
    elif isinstance(error, FileExistsError):
        result = StorageError(kind.ALREADY_EXISTS, error)
    elif isinstance(error, PermissionError):
        result = StorageError(kind.PERMISSION_DENIED)
    elif error.errno == errno.ENOTEMPTY:
        result = StorageError(kind.DIRECTORY_NOT_EMPTY, error)
    elif error.errno in _UNSUPPORTED_ERRNOS:
        result = StorageError(kind.UNSUPPORTED_OPERATION, error)
    else:
        result = StorageError(kind.IO, error)
    result.__cause__ = error
    return result