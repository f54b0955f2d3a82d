import os

import pytest
import toml
import yaml

from globwatcher import config
from globwatcher.config import WatcherOptions
from globwatcher.errors import ConfigError


def test_load_config(tmp_path):
    # Create a temporary config file.
    config_data = {
        "watcher": {"lock_duration": 250, "ignore": ["**/*.tmp"]},
        "watch_groups": {"configs_dir": "watch_groups.yaml"},
    }
    config_file = tmp_path / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    loaded_config = config.load_config(str(config_file))
    assert loaded_config["watcher"]["lock_duration"] == 250
    assert loaded_config["watch_groups"]["configs_dir"] == "watch_groups.yaml"


def test_load_config_from_env_dir(tmp_path, monkeypatch):
    (tmp_path / "config.toml").write_text('[logging]\nlevel = "DEBUG"\n')
    monkeypatch.setenv(config.ENV_CONFIG_DIR_VAR, str(tmp_path))
    assert config.load_config()["logging"]["level"] == "DEBUG"


def test_missing_default_config_is_empty(tmp_path, monkeypatch):
    monkeypatch.delenv(config.ENV_CONFIG_DIR_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    assert config.load_config() == {}


def test_missing_explicit_config_raises(tmp_path):
    with pytest.raises(ConfigError):
        config.load_config(str(tmp_path / "nope.toml"))


def test_invalid_toml_raises(tmp_path):
    bad = tmp_path / "config.toml"
    bad.write_text("[watcher\nlock_duration = ")
    with pytest.raises(ConfigError):
        config.load_config(str(bad))


def test_load_watch_groups_config(tmp_path):
    # Create a temporary watch groups YAML file.
    watch_groups_data = {
        "watch_groups": [
            {"name": "Test Group", "patterns": ["src/**/*.py"]}
        ]
    }
    yaml_file = tmp_path / "watch_groups.yaml"
    with open(yaml_file, "w") as f:
        yaml.dump(watch_groups_data, f)

    loaded_groups = config.load_watch_groups_config(str(yaml_file))
    assert "watch_groups" in loaded_groups
    assert loaded_groups["watch_groups"][0]["name"] == "Test Group"


def test_load_watch_groups_from_directory(tmp_path):
    groups_dir = tmp_path / "groups"
    groups_dir.mkdir()
    for name in ("b", "a"):
        with open(groups_dir / f"{name}.yml", "w") as f:
            yaml.dump({"watch_groups": [{"name": name, "patterns": "*.txt"}]}, f)
    (groups_dir / "README.txt").write_text("ignored")

    loaded = config.load_watch_groups_configs(str(groups_dir))
    assert [g["name"] for g in loaded["watch_groups"]] == ["a", "b"]


def test_defaults():
    options = WatcherOptions()
    assert options.lock_duration == 1000
    assert options.verbose is False
    assert options.cooldown_seconds == 1.0
    assert options.ignore == []
    assert options.persistent is True


@pytest.mark.parametrize("values", [
    {"lock_duration": -1},
    {"lock_duration": "fast"},
    {"lock_duration": True},
    {"poll_interval": 0},
    {"lockDuration": 10},
    {"recursive": True},
])
def test_invalid_options(values):
    with pytest.raises(ConfigError):
        WatcherOptions.from_mapping(values)


def test_from_mapping_overrides_and_ignore_string():
    options = WatcherOptions.from_mapping({"lock_duration": 10, "ignore": "*.tmp"}, lock_duration=20)
    assert options.lock_duration == 20
    assert options.ignore == ["*.tmp"]


def test_watcher_options_from_config_skips_unset_overrides():
    cfg = {"watcher": {"lock_duration": 300, "verbose": True}}
    options = config.watcher_options_from_config(cfg, lock_duration=None, verbose=False)
    assert options.lock_duration == 300
    assert options.verbose is False


def test_split_watch_group():
    base = WatcherOptions(lock_duration=500)
    name, patterns, options = config.split_watch_group(
        {"name": "docs", "patterns": "docs/*.md", "verbose": True}, base
    )
    assert name == "docs"
    assert patterns == ["docs/*.md"]
    assert options.lock_duration == 500
    assert options.verbose is True


@pytest.mark.parametrize("group", [{"name": "empty"}, {"patterns": "*", "bogus": 1}, "not a mapping"])
def test_split_watch_group_errors(group):
    with pytest.raises(ConfigError):
        config.split_watch_group(group)
