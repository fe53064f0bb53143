"""HTTP client for the remote filesystem API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from .attributes import FileAttr, SetAttr, Stats
from .errors import ApiError
from .network_models import (
    ListXattributes,
    LoginRequest,
    LoginResponse,
    ReadFileRequest,
    RenameRequest,
    SerializableFSItem,
    SetAttrRequest,
    WriteSymlink,
    Xattributes,
    _attributes_from_dict,
)
from .token_store import AuthMiddleware, TokenStore

APP_V1_BASE_URL = "/api/v1"

_log = logging.getLogger(__name__)
_TRANSIENT_STATUSES = frozenset({408, 429})
_RETRY_BASE_DELAY = 0.5
_RETRY_MAX_DELAY = 30.0
_STATS_FIELDS = ("blocks", "bfree", "bavail", "files", "ffree", "bsize", "namelen", "frsize")

T = TypeVar("T")


class NetworkError(Exception):
    """A request to the server could not be completed."""


class ServerError(NetworkError):
    """The server answered with an error."""

    def __init__(self, error: ApiError) -> None:
        self.error = error
        super().__init__(f"server error: {error}")


class UnexpectedResponse(NetworkError):
    """The server's answer could not be understood."""


def _encode(component: str) -> str:
    return quote(component, safe="")


def _is_transient(status: int) -> bool:
    return status >= 500 or status in _TRANSIENT_STATUSES


def _stats_from_dict(data: Any) -> Stats:
    if not isinstance(data, dict):
        raise TypeError("stats must be an object")
    try:
        return Stats(**{name: int(data[name]) for name in _STATS_FIELDS})
    except KeyError as err:
        raise ValueError(f"missing field {err.args[0]!r}") from None


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


class RemoteClient:
    """Asynchronous client of the remote filesystem server."""

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 3,
    ) -> None:
        self.base_url = f"{base_url.rstrip('/')}/{APP_V1_BASE_URL.lstrip('/')}"
        self.token_store = TokenStore()
        self._auth = AuthMiddleware(self.token_store)
        self._max_retries = max_retries
        self._http = httpx.AsyncClient(transport=transport)

    def __repr__(self) -> str:
        return f"RemoteClient(base_url={self.base_url!r})"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> RemoteClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _url(self, api: str, path: str) -> str:
        url = f"{self.base_url}/{api}/{_encode(path)}"
        _log.debug("fetching %s", url)
        return url

    def _short_url(self, api: str) -> str:
        url = f"{self.base_url}/{api}"
        _log.debug("fetching %s", url)
        return url

    def _long_url(self, api: str, path: str, group: str, obj: str | None = None) -> str:
        url = f"{self.base_url}/{api}/{_encode(path)}/{group}"
        if obj is not None:
            url = f"{url}/{obj}"
        _log.debug("fetching %s", url)
        return url

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = self._auth.apply(dict(kwargs.pop("headers", None) or {}))
        attempt = 0
        while True:
            try:
                response = await self._http.request(method, url, headers=headers, **kwargs)
            except httpx.TransportError as err:
                if attempt >= self._max_retries:
                    raise NetworkError(f"request to {url} failed: {err}") from err
            except httpx.HTTPError as err:
                raise NetworkError(f"request to {url} failed: {err}") from err
            else:
                if not _is_transient(response.status_code) or attempt >= self._max_retries:
                    return response
            delay = min(_RETRY_BASE_DELAY * 2**attempt, _RETRY_MAX_DELAY)
            attempt += 1
            _log.debug("retrying %s %s in %.2fs (attempt %d)", method, url, delay, attempt)
            await asyncio.sleep(delay)

    @staticmethod
    def _handle(response: httpx.Response, extractor: Callable[[httpx.Response], T]) -> T:
        if not response.is_success:
            try:
                error = ApiError.from_dict(response.json())
            except (ValueError, TypeError) as err:
                _log.error("Failed to parse error JSON: %s", err)
                raise UnexpectedResponse("Failed to parse remote error") from err
            raise ServerError(error)
        try:
            return extractor(response)
        except (ValueError, TypeError, KeyError) as err:
            raise UnexpectedResponse(str(err)) from err

    async def health_check(self) -> None:
        response = await self._send("GET", self._short_url("health"))
        self._handle(response, lambda r: None)

    async def login(self, username: str, password: str) -> str:
        """Log in, remember the returned token and return it."""
        body = LoginRequest(username, password).to_dict()
        response = await self._send("POST", self._short_url("auth/login"), json=body)
        login = self._handle(response, lambda r: LoginResponse.from_dict(r.json()))
        self.token_store.set_token(login.token)
        _log.info("Login successful")
        return login.token

    async def logout(self) -> None:
        response = await self._send("POST", self._short_url("auth/logout"))
        self._handle(response, lambda r: None)
        self.token_store.clear_token()

    async def get_attributes(self, path: str) -> FileAttr:
        response = await self._send("GET", self._url("attributes", path))
        return self._handle(response, lambda r: _attributes_from_dict(r.json()))

    async def set_attributes(self, path: str, new_attributes: SetAttr) -> FileAttr:
        body = SetAttrRequest(new_attributes).to_dict()
        response = await self._send("PUT", self._url("attributes", path), json=body)
        return self._handle(response, lambda r: _attributes_from_dict(r.json()))

    async def get_x_attributes(self, path: str, name: str) -> bytes | None:
        """Return the attribute value, or ``None`` when the server has none."""
        url = self._long_url("xattributes", path, "names", name)
        response = await self._send("GET", url)

        def extract(r: httpx.Response) -> bytes | None:
            if r.status_code == httpx.codes.NO_CONTENT:
                return None
            return Xattributes.from_dict(r.json()).xattributes

        return self._handle(response, extract)

    async def set_x_attributes(self, path: str, name: str, value: bytes) -> None:
        url = self._long_url("xattributes", path, "names", name)
        response = await self._send("PUT", url, json=Xattributes(bytes(value)).to_dict())
        self._handle(response, lambda r: None)

    async def list_x_attributes(self, path: str) -> list[str]:
        response = await self._send("GET", self._long_url("xattributes", path, "names"))
        return self._handle(response, lambda r: ListXattributes.from_dict(r.json()).names)

    async def remove_x_attributes(self, path: str, name: str) -> None:
        url = self._long_url("xattributes", path, "names", name)
        response = await self._send("DELETE", url)
        self._handle(response, lambda r: None)

    async def get_permissions(self, path: str, mask: int) -> None:
        """Raise ServerError unless access ``mask`` is granted on ``path``."""
        response = await self._send(
            "GET", self._url("permissions", path), params={"mask": str(mask)}
        )
        self._handle(response, lambda r: None)

    async def get_stats(self, path: str) -> Stats:
        response = await self._send("GET", self._url("stats", path))
        return self._handle(response, lambda r: _stats_from_dict(r.json()))

    async def list_path(self, path: str) -> list[SerializableFSItem]:
        response = await self._send("GET", self._url("list", path))

        def extract(r: httpx.Response) -> list[SerializableFSItem]:
            items = r.json()
            if not isinstance(items, list):
                raise TypeError("expected a list of items")
            return [SerializableFSItem.from_dict(item) for item in items]

        return self._handle(response, extract)

    async def read_file(self, path: str, offset: int, size: int) -> bytes:
        body = ReadFileRequest(offset, size).to_dict()
        response = await self._send("GET", self._url("files", path), json=body)
        return self._handle(response, lambda r: r.content)

    async def write_file(self, path: str, offset: int, data: bytes) -> FileAttr:
        response = await self._send(
            "PUT",
            self._url("files", path),
            params={"offset": str(offset)},
            headers={"Content-Type": "application/octet-stream"},
            content=bytes(data),
        )
        return self._handle(response, lambda r: _attributes_from_dict(r.json()))

    async def mkdir(self, path: str) -> FileAttr:
        response = await self._send("POST", self._url("mkdir", path))
        return self._handle(response, lambda r: _attributes_from_dict(r.json()))

    async def rename(self, old_path: str, new_path: str, flags: int = 0) -> None:
        body = RenameRequest(old_path, new_path, flags).to_dict()
        response = await self._send("PUT", self._short_url("rename"), json=body)
        self._handle(response, lambda r: None)

    async def remove(self, path: str) -> None:
        response = await self._send("DELETE", self._url("files", path))
        self._handle(response, lambda r: None)

    async def create_symlink(self, path: str, target: str) -> FileAttr:
        body = WriteSymlink(target).to_dict()
        response = await self._send("POST", self._url("symlink", path), json=body)
        return self._handle(response, lambda r: _attributes_from_dict(r.json()))

    async def read_symlink(self, path: str) -> str:
        response = await self._send("GET", self._url("symlink", path))
        return self._handle(response, lambda r: _string(r.json()))