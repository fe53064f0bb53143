import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from remotefs.attributes import FileAttr, FileType, SetAttr, Stats, Timestamp
from remotefs.errors import ApiErrorKind
from remotefs.network_models import ItemType
from remotefs.remote_client import (
    NetworkError,
    RemoteClient,
    ServerError,
    UnexpectedResponse,
)


def sample_attr():
    return FileAttr(
        size=3,
        blocks=1,
        atime=Timestamp(1, 0),
        mtime=Timestamp(2, 0),
        ctime=Timestamp(3, 0),
        kind=FileType.REGULAR_FILE,
        perm=0o644,
        nlink=1,
        uid=1000,
        gid=1000,
        rdev=0,
        blksize=4096,
    )


class Server:
    """Records requests and answers each with the next queued response."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def last(self):
        return self.requests[-1]


def client_for(server, max_retries=0):
    return RemoteClient("http://server/", transport=httpx.MockTransport(server), max_retries=max_retries)


@pytest.mark.asyncio
async def test_health_check_url():
    server = Server(httpx.Response(200))
    async with client_for(server) as client:
        await client.health_check()
    assert server.last.url.path == "/api/v1/health"
    assert server.last.method == "GET"


@pytest.mark.asyncio
async def test_login_sets_token_and_logout_clears():
    password = "password"
    server = Server(httpx.Response(200, json={"token": "token"}))
    async with client_for(server) as client:
        assert await client.login("alice", password) == "token"
        assert json.loads(server.last.content) == {"username": "alice", "password": password}
        await client.health_check()
        assert server.last.headers["Authorization"] == "Bearer token"
        await client.logout()
        assert client.token_store.read() is None
        await client.health_check()
        assert "Authorization" not in server.last.headers


@pytest.mark.asyncio
async def test_get_attributes_encodes_path():
    attr = sample_attr()
    server = Server(httpx.Response(200, json=attr.to_dict()))
    async with client_for(server) as client:
        result = await client.get_attributes("/dir/file.txt")
    assert result == attr
    assert server.last.url.raw_path.decode() == "/api/v1/attributes/%2Fdir%2Ffile.txt"


@pytest.mark.asyncio
async def test_server_error_is_parsed():
    server = Server(httpx.Response(404, json={"type": "NotFound", "message": "missing"}))
    async with client_for(server) as client:
        with pytest.raises(ServerError) as info:
            await client.get_attributes("/x")
    assert info.value.error.kind is ApiErrorKind.NOT_FOUND
    assert info.value.error.message == "missing"


@pytest.mark.asyncio
async def test_unparseable_error_body():
    server = Server(httpx.Response(400, text="oops"))
    async with client_for(server) as client:
        with pytest.raises(UnexpectedResponse):
            await client.remove("/x")


@pytest.mark.asyncio
async def test_bad_success_body():
    server = Server(httpx.Response(200, json={"size": 1}))
    async with client_for(server) as client:
        with pytest.raises(UnexpectedResponse):
            await client.mkdir("/d")


@pytest.mark.asyncio
async def test_get_x_attributes_no_content_and_value():
    server = Server(httpx.Response(204), httpx.Response(200, json={"xattributes": list(b"v1")}))
    async with client_for(server) as client:
        assert await client.get_x_attributes("/f", "user.tag") is None
        assert server.last.url.path.endswith("/names/user.tag")
        assert await client.get_x_attributes("/f", "user.tag") == b"v1"


@pytest.mark.asyncio
async def test_set_and_remove_x_attributes():
    server = Server(httpx.Response(200))
    async with client_for(server) as client:
        await client.set_x_attributes("/f", "user.tag", b"ab")
        assert server.last.method == "PUT"
        assert json.loads(server.last.content) == {"xattributes": list(b"ab")}
        await client.remove_x_attributes("/f", "user.tag")
        assert server.last.method == "DELETE"


@pytest.mark.asyncio
async def test_list_x_attributes():
    server = Server(httpx.Response(200, json={"names": ["user.a"]}))
    async with client_for(server) as client:
        assert await client.list_x_attributes("/f") == ["user.a"]
    assert server.last.url.path.endswith("/names")


@pytest.mark.asyncio
async def test_get_permissions_sends_mask():
    server = Server(httpx.Response(200))
    async with client_for(server) as client:
        await client.get_permissions("/f", 4)
    assert server.last.url.params["mask"] == "4"


@pytest.mark.asyncio
async def test_permission_denied():
    server = Server(httpx.Response(403, json={"type": "PermissionDenied", "message": "no"}))
    async with client_for(server) as client:
        with pytest.raises(ServerError) as info:
            await client.get_permissions("/f", 2)
    assert info.value.error.kind is ApiErrorKind.PERMISSION_DENIED


@pytest.mark.asyncio
async def test_read_file_sends_json_body():
    server = Server(httpx.Response(200, content=b"abc"))
    async with client_for(server) as client:
        assert await client.read_file("/f", 5, 3) == b"abc"
    assert server.last.method == "GET"
    assert json.loads(server.last.content) == {"offset": 5, "size": 3}


@pytest.mark.asyncio
async def test_write_file_sends_octets():
    attr = sample_attr()
    server = Server(httpx.Response(200, json=attr.to_dict()))
    async with client_for(server) as client:
        assert await client.write_file("/f", 9, b"xyz") == attr
    request = server.last
    assert request.method == "PUT"
    assert request.url.params["offset"] == "9"
    assert request.content == b"xyz"
    assert request.headers["Content-Type"] == "application/octet-stream"


@pytest.mark.asyncio
async def test_set_attributes_body():
    attr = sample_attr()
    change = SetAttr(mode=0o600)
    server = Server(httpx.Response(200, json=attr.to_dict()))
    async with client_for(server) as client:
        assert await client.set_attributes("/f", change) == attr
    assert json.loads(server.last.content) == {"setattr": change.to_dict()}


@pytest.mark.asyncio
async def test_rename_body():
    server = Server(httpx.Response(200))
    async with client_for(server) as client:
        await client.rename("/a", "/b", 1)
    assert server.last.url.path.endswith("/rename")
    assert json.loads(server.last.content) == {"old_path": "/a", "new_path": "/b", "flags": 1}


@pytest.mark.asyncio
async def test_symlinks():
    attr = sample_attr()
    server = Server(httpx.Response(200, json=attr.to_dict()), httpx.Response(200, json="/target"))
    async with client_for(server) as client:
        assert await client.create_symlink("/link", "/target") == attr
        assert json.loads(server.last.content) == {"target": "/target"}
        assert await client.read_symlink("/link") == "/target"


@pytest.mark.asyncio
async def test_list_path_and_stats():
    attr = sample_attr()
    stats = Stats(10, 5, 4, 100, 50, 4096, 255, 4096)
    server = Server(
        httpx.Response(200, json=[{"name": "a", "item_type": "directory", "attributes": attr.to_dict()}]),
        httpx.Response(200, json=stats.to_dict()),
    )
    async with client_for(server) as client:
        items = await client.list_path("/")
        assert [(i.name, i.item_type, i.attributes) for i in items] == [("a", ItemType.DIRECTORY, attr)]
        assert await client.get_stats("/") == stats


@pytest.mark.asyncio
async def test_transient_error_is_retried():
    attr = sample_attr()
    server = Server(httpx.Response(503), httpx.Response(200, json=attr.to_dict()))
    with patch("remotefs.remote_client.asyncio.sleep", new=AsyncMock()) as sleep:
        async with client_for(server, max_retries=1) as client:
            assert await client.get_attributes("/f") == attr
    assert len(server.requests) == 2
    assert sleep.await_count == 1


@pytest.mark.asyncio
async def test_connection_error_raises_network_error():
    server = Server(httpx.ConnectError("refused"))
    async with client_for(server) as client:
        with pytest.raises(NetworkError):
            await client.health_check()
    assert len(server.requests) == 1