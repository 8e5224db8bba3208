"""
test_config.py - TOML config loading and object construction.
"""

from pathlib import Path

import pytest

from hgmirror_core.authoring import Author, AuthoringMappingMode
from hgmirror_core.config import (
    CONFIG_FILE_NAME,
    HgOptions,
    MirrorConfig,
    find_config,
    load_config,
    load_config_optional,
)
from hgmirror_core.errors import ConfigError, ValidationError
from hgmirror_core.glob import Glob


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


FULL_CONFIG = """
[hg]
executable = "/usr/local/bin/hg"
timeout_seconds = 30
storage_root = "/var/cache/hgmirror"
max_concurrent_commands = 2

[origin]
url = "https://my-server.org/copybara"
ref = "default"

[origin_files]
include = ["src/**"]
exclude = ["src/gen/**"]

[authoring]
default = "Copy <copy@bara.com>"
mode = "whitelisted"
allowlist = ["jane@example.com"]
"""


def test_load_full_config(tmp_path: Path):
    config = load_config(_write(tmp_path / CONFIG_FILE_NAME, FULL_CONFIG))

    assert config.hg.executable == "/usr/local/bin/hg"
    assert config.hg.timeout_seconds == 30
    assert config.hg.storage_path() == Path("/var/cache/hgmirror")
    assert config.hg.max_concurrent_commands == 2

    origin = config.build_origin()
    assert origin.label_name == "HgOrigin{url = https://my-server.org/copybara}"
    assert origin.ref == "default"

    authoring = config.build_authoring()
    assert authoring.mode is AuthoringMappingMode.WHITELISTED
    assert authoring.default_author == Author("Copy", "copy@bara.com")
    assert authoring.allowlist == frozenset({"jane@example.com"})

    path_filter = config.build_path_filter()
    assert path_filter == Glob(["src/**"], exclude=["src/gen/**"])


def test_defaults_without_file(tmp_path: Path):
    config = load_config_optional(tmp_path)

    assert config == MirrorConfig()
    assert config.origin_files.include == ["**"]
    assert config.build_authoring().mode is AuthoringMappingMode.PASS_THRU


def test_executable_env_override(monkeypatch):
    monkeypatch.setenv("HGMIRROR_HG", "/opt/hg/bin/hg")

    assert HgOptions().executable == "/opt/hg/bin/hg"


def test_find_config_walks_up(tmp_path: Path):
    config_path = _write(tmp_path / CONFIG_FILE_NAME, "[origin]\nurl = 'x'\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config(nested) == config_path
    assert load_config_optional(nested).origin.url == "x"


def test_missing_file_is_config_error(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.toml")


def test_invalid_toml_is_config_error(tmp_path: Path):
    path = _write(tmp_path / CONFIG_FILE_NAME, "[origin\nurl = ")

    with pytest.raises(ConfigError, match="Failed to parse TOML"):
        load_config(path)


@pytest.mark.parametrize(
    "content",
    [
        "[hg]\ntimeout_seconds = 0\n",
        "[hg]\nmax_concurrent_commands = 0\n",
        "[hg]\nexecutable = '  '\n",
        "[origin]\nbranch = 'x'\n",
        "[unknown]\nkey = 1\n",
    ],
)
def test_schema_errors_are_config_errors(tmp_path: Path, content: str):
    path = _write(tmp_path / CONFIG_FILE_NAME, content)

    with pytest.raises(ConfigError, match="Invalid config structure"):
        load_config(path)


def test_empty_url_is_validation_error(tmp_path: Path):
    config = load_config(_write(tmp_path / CONFIG_FILE_NAME, "[origin]\nurl = ''\n"))

    with pytest.raises(ValidationError, match="Invalid empty field 'url'"):
        config.build_origin()


def test_url_override(tmp_path: Path):
    config = MirrorConfig()

    assert config.build_origin("https://example.org/r").url == "https://example.org/r"


def test_bad_default_author_is_validation_error():
    config = MirrorConfig.model_validate({"authoring": {"default": "no email", "mode": "USE_DEFAULT"}})

    with pytest.raises(ValidationError):
        config.build_authoring()


def test_path_filter_overrides():
    config = MirrorConfig()

    assert config.build_path_filter(["a/**"], ["a/b/**"]) == Glob(["a/**"], exclude=["a/b/**"])
