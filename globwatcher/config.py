import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional

import toml
import yaml

from globwatcher.errors import ConfigError

DEFAULT_CONFIG_PATH = "./config.toml"
ENV_CONFIG_DIR_VAR = "GLOBWATCHER_CONFIG_DIR"


@dataclass(frozen=True)
class WatcherOptions:
    """
    Options for a GlobWatcher instance.

    Attributes:
        lock_duration: Cooldown in milliseconds after an accepted notification.
        verbose: Log internals at INFO instead of DEBUG.
        cwd: Directory relative patterns are resolved against.
        ignore: Glob patterns excluded from the resolved file set.
        only_files: Drop directories matched by the patterns.
        symlinks: Keep matches that are symbolic links.
        encoding: Encoding used to decode byte filenames from the observer.
        persistent: Keep the process alive while watchers are attached.
        polling: Use watchdog's polling observer instead of the native one.
        poll_interval: Seconds between polls when ``polling`` is set.
    """

    lock_duration: int = 1000
    verbose: bool = False
    cwd: Optional[str] = None
    ignore: List[str] = field(default_factory=list)
    only_files: bool = True
    symlinks: bool = True
    encoding: str = "utf-8"
    persistent: bool = True
    polling: bool = False
    poll_interval: float = 1.0

    def __post_init__(self):
        if isinstance(self.lock_duration, bool) or not isinstance(self.lock_duration, int):
            raise ConfigError(f"lock_duration must be an integer, got {self.lock_duration!r}")
        if self.lock_duration < 0:
            raise ConfigError("lock_duration must not be negative")
        if not isinstance(self.poll_interval, (int, float)) or self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be a positive number, got {self.poll_interval!r}")
        if isinstance(self.ignore, str):
            object.__setattr__(self, "ignore", [self.ignore])
        else:
            object.__setattr__(self, "ignore", list(self.ignore or []))

    @property
    def cooldown_seconds(self) -> float:
        return self.lock_duration / 1000.0

    @classmethod
    def option_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]] = None, **overrides) -> "WatcherOptions":
        """
        Build options from a mapping, e.g. a ``[watcher]`` TOML section.

        Args:
            mapping: Option values keyed by option name.
            **overrides: Values taking precedence over ``mapping``.

        Returns:
            WatcherOptions: The validated options.

        Raises:
            ConfigError: If an option name is unknown or a value is invalid.
        """
        values = dict(mapping or {})
        values.update(overrides)
        unknown = sorted(set(values) - set(cls.option_names()))
        if unknown:
            raise ConfigError(f"Unknown watcher option(s): {', '.join(unknown)}")
        return cls(**values)

    def merged(self, **overrides) -> "WatcherOptions":
        """Return a copy with ``overrides`` applied."""
        unknown = sorted(set(overrides) - set(self.option_names()))
        if unknown:
            raise ConfigError(f"Unknown watcher option(s): {', '.join(unknown)}")
        return replace(self, **overrides)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(cli_config_path=None):
    """
    Load configuration from a TOML file.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable GLOBWATCHER_CONFIG_DIR (looking for config.toml).
      3. Default to ./config.toml, which may be absent.

    Returns:
        dict: The configuration settings.
    """
    if cli_config_path:
        config_path = cli_config_path
    elif os.environ.get(ENV_CONFIG_DIR_VAR):
        config_path = os.path.join(os.environ[ENV_CONFIG_DIR_VAR], "config.toml")
    else:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return {}
        config_path = DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_data = toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e

    return config_data


def watcher_options_from_config(cfg, **overrides):
    """
    Build WatcherOptions from the ``[watcher]`` section of a loaded config.

    Overrides whose value is None are skipped so unset CLI flags do not
    clobber configured values.
    """
    section = cfg.get("watcher", {}) if cfg else {}
    if not isinstance(section, dict):
        raise ConfigError("The [watcher] section must be a table")
    return WatcherOptions.from_mapping(
        section, **{k: v for k, v in overrides.items() if v is not None}
    )


def load_watch_groups_config(watch_groups_path):
    """
    Load watch groups configuration from a YAML file.

    Args:
        watch_groups_path (str): Path to the YAML configuration file.

    Returns:
        dict: Watch groups configuration.
    """
    if not os.path.exists(watch_groups_path):
        raise ConfigError(
            f"Watch groups configuration file not found: {watch_groups_path}"
        )
    with open(watch_groups_path, "r") as f:
        try:
            groups_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid watch groups file {watch_groups_path}: {e}") from e
    return groups_config or {"watch_groups": []}


def load_watch_groups_configs(path):
    """
    Load watch groups configuration from a YAML file or a directory containing YAML files.
    If a directory is provided, all .yaml/.yml files are loaded and aggregated
    in file name order.

    Args:
        path (str): Path to a YAML file or directory.

    Returns:
        dict: Aggregated watch groups configuration with key 'watch_groups'.
    """
    if os.path.isdir(path):
        aggregated = {"watch_groups": []}
        for filename in sorted(os.listdir(path)):
            if filename.endswith((".yaml", ".yml")):
                data = load_watch_groups_config(os.path.join(path, filename))
                if data and "watch_groups" in data:
                    aggregated["watch_groups"].extend(data["watch_groups"])
        return aggregated
    else:
        return load_watch_groups_config(path)


def split_watch_group(group, base_options=None):
    """
    Split a watch group entry into its patterns and options.

    Args:
        group (dict): A ``watch_groups`` entry with ``name``, ``patterns`` and
            optional option overrides.
        base_options (WatcherOptions): Defaults the group's overrides apply to.

    Returns:
        tuple: (name, patterns, WatcherOptions)
    """
    if not isinstance(group, dict):
        raise ConfigError(f"Watch group entries must be mappings, got {group!r}")
    settings = dict(group)
    name = settings.pop("name", "Unnamed")
    patterns = settings.pop("patterns", None)
    if not patterns:
        raise ConfigError(f"Watch group '{name}' has no patterns")
    if isinstance(patterns, str):
        patterns = [patterns]
    base_options = base_options or WatcherOptions()
    return name, list(patterns), base_options.merged(**settings)
