"""
config
======

Launcher settings and their YAML representation.  The defaults
reproduce the classic harness launch: build ``proxy_engine`` with
cargo, flush neighbors with ``ip``, elevate with ``sudo -E`` and log
at ``info`` for the proxy, the proxy engine and the e2d2 packet
framework.

A YAML file may override any of the settings:

```yaml
target: proxy_engine
backtrace: true
log_levels:
  proxy_engine: debug
elevate_command: [sudo, -E]
```

``log_levels`` is merged over the defaults so a file only needs to
list the subsystems it changes.  The launcher only ever reads these
files; nothing is written back.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

#: File picked up from the working directory when ``--config`` is not given.
DEFAULT_CONFIG_FILENAME = "proxylaunch.yaml"


def _default_log_levels() -> Dict[str, str]:
    return {"tcp_proxy": "info", "proxy_engine": "info", "e2d2": "info"}


@dataclass
class LaunchConfig:
    """Effective settings for one launcher invocation."""

    target: str = "proxy_engine"
    build_command: List[str] = field(default_factory=lambda: ["cargo", "build"])
    message_format: str = "--message-format=json"
    elevate_command: List[str] = field(default_factory=lambda: ["sudo", "-E"])
    flush_command: List[str] = field(
        default_factory=lambda: ["ip", "-s", "-s", "neigh", "flush", "all"]
    )
    backtrace: bool = True
    log_levels: Dict[str, str] = field(default_factory=_default_log_levels)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchConfig":
        config = cls()
        for key, value in data.items():
            if key not in _VALIDATORS:
                raise ConfigError(f"Unknown configuration key: {key}")
            _VALIDATORS[key](key, value)
            if key == "log_levels":
                config.log_levels.update({str(k): _level(k, v) for k, v in value.items()})
            else:
                setattr(config, key, list(value) if isinstance(value, list) else value)
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def set_log_level(self, subsystem: str, level: str) -> None:
        self.log_levels[subsystem] = level


def _level(subsystem: Any, value: Any) -> str:
    # YAML 1.1 reads an unquoted ``off`` as false
    if value is False:
        return "off"
    if isinstance(value, bool):
        raise ConfigError(
            f"Invalid log level for {subsystem}: quote the value in the config file"
        )
    return str(value)


def _expect_str(key: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{key}' must be a non-empty string")


def _expect_bool(key: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false")


def _expect_command(key: str, value: Any) -> None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")


def _expect_required_command(key: str, value: Any) -> None:
    _expect_command(key, value)
    if not value:
        raise ConfigError(f"'{key}' must not be empty")


def _expect_mapping(key: str, value: Any) -> None:
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping of subsystem to level")


_VALIDATORS = {
    "target": _expect_str,
    "build_command": _expect_required_command,
    "message_format": _expect_str,
    # An empty elevation command runs everything as the current user.
    "elevate_command": _expect_command,
    "flush_command": _expect_required_command,
    "backtrace": _expect_bool,
    "log_levels": _expect_mapping,
}


def load_config(filename: str) -> LaunchConfig:
    """Read a YAML configuration file.

    Raises ``FileNotFoundError`` if the file is missing and
    ``ConfigError`` if its contents are not a valid configuration.
    """
    with open(filename, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {filename}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{filename} must contain a mapping at the top level")
    return LaunchConfig.from_dict(data)


def resolve_config(filename: Optional[str] = None) -> LaunchConfig:
    """Return the configuration for this invocation.

    An explicit ``filename`` must exist.  Without one, the default file
    in the working directory is used when present and the built-in
    defaults otherwise.
    """
    if filename:
        try:
            return load_config(filename)
        except FileNotFoundError as exc:
            raise ConfigError(f"Configuration file not found: {filename}") from exc
    default = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILENAME)
    try:
        return load_config(default)
    except FileNotFoundError:
        # No config present; use defaults
        return LaunchConfig()


def dump_config(config: LaunchConfig) -> str:
    return yaml.safe_dump(config.to_dict(), sort_keys=False)
