import base64
import tomllib
from pathlib import Path

import pytest

from remotefs.config import (
    DEFAULT_PORT,
    DEFAULT_SERVER_HOST,
    RfsCliArgs,
    RfsConfig,
    env_overrides,
    format_toml,
    load_jwt_key,
)
from remotefs.config_logging import LoggingConfig, LogLevel, LogTarget
from remotefs.errors import ConfigError


@pytest.fixture
def args(tmp_path):
    return RfsCliArgs(config_file=tmp_path / "missing.toml")


def test_load_defaults(args):
    cfg = RfsConfig.load(args, environ={})
    assert cfg.server_host == DEFAULT_SERVER_HOST
    assert cfg.server_port == DEFAULT_PORT
    assert cfg.logging.log_targets == [LogTarget.ALL]
    assert cfg.logging.log_dir == Path("logs")


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text('server_port = 9000\n[logging]\nlog_level = "debug"\n')
    cfg = RfsConfig.load(RfsCliArgs(config_file=path), environ={})
    assert cfg.server_port == 9000
    assert cfg.logging.log_level is LogLevel.DEBUG


def test_precedence_cli_over_env_over_file(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text("server_port = 9000\n")
    env = {"RFS__SERVER_PORT": "9100"}
    assert RfsConfig.load(RfsCliArgs(config_file=path), environ=env).server_port == 9100
    cli = RfsCliArgs(config_file=path, server_port=9200)
    assert RfsConfig.load(cli, environ=env).server_port == 9200


def test_env_targets_string(args):
    cfg = RfsConfig.load(args, environ={"RFS__LOGGING__LOG_TARGETS": "console"})
    assert cfg.logging.log_targets == [LogTarget.CONSOLE]
    assert cfg.logging.log_dir is None


def test_invalid_port_is_config_error(args):
    with pytest.raises(ConfigError) as info:
        RfsConfig.load(args, environ={"RFS__SERVER_PORT": "notaport"})
    assert info.value.kind is ConfigError.Kind.INVALID_CONFIG


def test_invalid_level_in_file(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text('[logging]\nlog_level = "loud"\n')
    with pytest.raises(ConfigError):
        RfsConfig.load(RfsCliArgs(config_file=path), environ={})


def test_unsupported_file_format(tmp_path):
    path = tmp_path / "server.yaml"
    path.write_text("server_port: 1\n")
    with pytest.raises(ConfigError) as info:
        RfsConfig.load(RfsCliArgs(config_file=path), environ={})
    assert info.value.kind is ConfigError.Kind.OTHER


def test_env_overrides_nests_and_filters():
    env = {
        "RFS__LOGGING__LOG_LEVEL": "debug",
        "rfs__server_host": "h",
        "OTHER": "x",
        "RFSX__A": "y",
    }
    assert env_overrides(env, "RFS", "__") == {
        "logging": {"log_level": "debug"},
        "server_host": "h",
    }


def test_format_toml_round_trip():
    cfg = RfsConfig()
    parsed = tomllib.loads(format_toml(cfg))
    assert RfsConfig.from_dict(parsed) == cfg


def test_format_toml_drops_none():
    cfg = RfsConfig(logging=LoggingConfig(log_dir=None))
    parsed = tomllib.loads(format_toml(cfg))
    assert "log_dir" not in parsed["logging"]
    assert parsed["server_host"] == cfg.server_host


def test_cli_args_to_dict_skips_unset():
    cli = RfsCliArgs(server_host="example.com")
    assert cli.to_dict() == {"server_host": "example.com", "logging": {}}


def test_load_jwt_key_decodes():
    encoded = base64.b64encode(b"secret").decode()
    assert load_jwt_key({"JWT__KEY": encoded}) == b"secret"


def test_load_jwt_key_missing():
    with pytest.raises(ConfigError, match="Missing JWT_KEY"):
        load_jwt_key({})


def test_load_jwt_key_invalid_base64():
    with pytest.raises(ConfigError):
        load_jwt_key({"JWT__KEY": "not base64!"})