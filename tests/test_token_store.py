from remotefs.token_store import AuthMiddleware, TokenStore


def test_store_starts_empty():
    assert TokenStore().read() is None


def test_set_and_clear():
    store = TokenStore()
    store.set_token("token")
    assert store.read() == "token"
    store.clear_token()
    assert store.read() is None


def test_repr_hides_token():
    store = TokenStore()
    store.set_token("secret")
    assert "secret" not in repr(store)


def test_apply_adds_bearer_header():
    store = TokenStore()
    store.set_token("token")
    headers = AuthMiddleware(store).apply({"Accept": "application/json"})
    assert headers["Authorization"] == "Bearer token"
    assert headers["Accept"] == "application/json"


def test_apply_without_token_leaves_headers():
    headers = AuthMiddleware(TokenStore()).apply({"Accept": "text/plain"})
    assert headers == {"Accept": "text/plain"}


def test_middleware_sees_later_updates():
    store = TokenStore()
    middleware = AuthMiddleware(store)
    assert "Authorization" not in middleware.apply({})
    store.set_token("token")
    assert middleware.apply({})["Authorization"] == "Bearer token"
    store.clear_token()
    assert "Authorization" not in middleware.apply({})