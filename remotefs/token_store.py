"""Shared storage of the session token and its attachment to requests."""

from __future__ import annotations

import threading
from collections.abc import MutableMapping

AUTH_SCHEME = "Bearer"


class TokenStore:
    """Thread-safe holder of the current session token, shared by reference."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._token: str | None = None

    def set_token(self, token: str) -> None:
        with self._lock:
            self._token = token

    def clear_token(self) -> None:
        with self._lock:
            self._token = None

    def read(self) -> str | None:
        with self._lock:
            return self._token

    def __repr__(self) -> str:
        return "TokenStore(********)"


class AuthMiddleware:
    """Adds an ``Authorization`` header when a token is stored."""

    def __init__(self, token_store: TokenStore) -> None:
        self.token_store = token_store

    def apply(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the bearer token on ``headers`` if one is stored and return them."""
        token = self.token_store.read()
        if token is not None:
            headers["Authorization"] = f"{AUTH_SCHEME} {token}"
        return headers