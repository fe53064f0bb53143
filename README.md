# remotefs

Pieces of a remote filesystem whose files live on an HTTP server:

- `remotefs.remote_client.RemoteClient` – an async client for the storage API
  under `/api/v1`: health check, login and logout, attributes, extended
  attributes, permission checks, statistics, directory listings, reads,
  writes, directories, renames, removal and symlinks.
- `remotefs.rw_buffer` – `ReadBuffer` and `WriteBuffer`, single-region
  buffers that serve repeated reads and collect appending writes.
- `remotefs.attributes` – `FileType`, `PermissionType`, `Permission`,
  `Operation`, `Timestamp`, `FileAttr`, `SetAttr` and `Stats`, with their
  numeric and dictionary encodings, plus `parse_mask`.
- `remotefs.network_models` – the request and response bodies used by the
  client.
- `remotefs.token_store` – `TokenStore` and `AuthMiddleware`, which hold the
  session token and add the `Authorization: Bearer …` header.
- `remotefs.config`, `remotefs.config_logging` – server configuration
  (`RfsConfig`, `RfsCliArgs`, `LoggingConfig`) merged from defaults, a
  configuration file, environment variables and command-line values.
- `remotefs.logsetup` – `Logging.from_config` installs console and/or file
  handlers on the `remotefs` logger.
- `remotefs.commands` – `TomlConfigGenerator` and `EnvVarGenerator`.
- `remotefs.errors` – the error classes and the `ApiError` payload
  `{"type": ..., "message": ...}`.
- `remotefs.util` – `normalize_path`, `normalize_optional_path` and
  `parse_flexible_list`.

## Installation

```
pip install remotefs
```

With the test requirements:

```
pip install "remotefs[test]"
```

## Using the client

```python
import asyncio

from remotefs.remote_client import RemoteClient, ServerError


async def demo():
    async with RemoteClient("http://localhost:8080") as client:
        try:
            await client.health_check()
            password = "password"
            await client.login("alice", password)

            attrs = await client.write_file("/notes.txt", 0, b"hello")
            data = await client.read_file("/notes.txt", 0, 5)
            entries = await client.list_path("/")
            await client.logout()
        except ServerError as err:
            print("server refused:", err.error)


asyncio.run(demo())
```

A response with an error status raises `ServerError`, whose `error` attribute
is the server's `ApiError`; a response that cannot be decoded raises
`UnexpectedResponse`; a request that cannot be sent raises `NetworkError`,
the base of both. Transport failures and 5xx, 408 and 429 answers are retried
with exponential back-off, up to `max_retries` times (3 by default). After
`login`, the token is stored in `client.token_store` and sent with every
request until `logout`. A custom `httpx` transport may be passed as
`transport`.

## Buffers

```python
from remotefs.rw_buffer import ReadBuffer, WriteBuffer

reads = ReadBuffer(4096, 0.1)          # capacity in bytes, time-to-live in seconds
reads.fill("/a.bin", 0, b"abcdef")
reads.read("/a.bin", 2, 3)             # b"cde"; b"" on a miss or once expired

writes = WriteBuffer(4096)
writes.write("/a.bin", 0, b"abc")      # returns the number of bytes accepted
writes.is_appending("/a.bin", 3)       # True
path, offset, data = writes.content()
writes.clean()
```

## Permissions and attributes

```python
from remotefs.attributes import FileType, Operation, Permission, Timestamp

Permission.from_mode(0o754).to_mode()  # 0o754
FileType.from_code(3)                  # FileType.DIRECTORY
Operation.from_mask(4)                 # Operation.READ
Timestamp.from_epoch(1.5)              # Timestamp(sec=1, nsec=500000000)
```

## Configuration

`RfsConfig.load(args, environ)` merges, from lowest to highest priority: the
built-in defaults, the configuration file named by `args.config_file` (TOML,
or JSON; a missing file is ignored), environment variables such as
`RFS__SERVER_PORT` or `RFS__LOGGING__LOG_LEVEL`, and the values set on
`RfsCliArgs`. It raises `ConfigError` when the result is invalid.
`load_jwt_key()` reads and base64-decodes `JWT__KEY`.

## Server command line

The `remotefs-server` command writes configuration templates:

```
remotefs-server toml-gen --output server_config.toml
remotefs-server env-gen --output server.env
```

`toml-gen` writes the default configuration as TOML and refuses to replace an
existing file unless `--force` is given; `env-gen` writes the matching list of
`RFS__…` environment variables (prefix and separator set by `--prefix` and
`--separator`), or prints it when no output path is given. A path without an
extension gets `.toml` or `.env`; a different extension is an error.

Before running a subcommand the command reads `KEY=VALUE` lines from `.env` in
the current directory (without overriding variables already set) and requires
a base64 `JWT__KEY` variable; without it, it reports an error and exits with
status 1. Run `remotefs-server --help` for every option.

## What this package does not do

It contains no storage server: there is no command to start serving files, no
user accounts or user-management commands, and no database; the
`--database-path` option is accepted but not used. It does not mount a
filesystem either; `RemoteClient` and the buffers are the parts a mounting
layer would build on.