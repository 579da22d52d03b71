from pathlib import Path

import pytest

from mdsite.config import (
    DEFAULT_CONFIG,
    ConfigError,
    SiteConfig,
    load_config,
    resolve_config,
)


def test_defaults(tmp_path):
    config = resolve_config({}, cwd=tmp_path)
    assert config == SiteConfig(
        input_dir=Path("input"),
        output_dir=Path("output"),
        templates_dir=Path("templates"),
        serve=False,
        host="0.0.0.0",
        port=8000,
        watcher="poll",
        verbose=False,
    )


def test_config_file_is_picked_up_from_cwd(tmp_path):
    (tmp_path / "mdsite.yaml").write_text(
        "input_dir: content\nport: 9000\nunknown: ignored\n", encoding="utf-8"
    )
    assert load_config(cwd=tmp_path) == {"input_dir": "content", "port": 9000}
    config = resolve_config({}, cwd=tmp_path)
    assert config.input_dir == Path("content")
    assert config.port == 9000


def test_cli_overrides_win(tmp_path):
    (tmp_path / "mdsite.yaml").write_text("port: 9000\nhost: 127.0.0.1\n", encoding="utf-8")
    config = resolve_config({"port": 7000, "host": None}, cwd=tmp_path)
    assert config.port == 7000
    assert config.host == "127.0.0.1"


def test_non_mapping_file_is_ignored(tmp_path):
    (tmp_path / "mdsite.yaml").write_text("- a\n- b\n", encoding="utf-8")
    assert load_config(cwd=tmp_path) == {}


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_explicit_invalid_yaml_is_an_error(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("port: [", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_invalid_values_are_rejected():
    with pytest.raises(ConfigError):
        SiteConfig.from_mapping({"watcher": "inotify"})
    with pytest.raises(ConfigError):
        SiteConfig.from_mapping({"port": "eighty"})


def test_default_keys_match_site_config_fields():
    assert set(DEFAULT_CONFIG) == set(SiteConfig.__dataclass_fields__)
