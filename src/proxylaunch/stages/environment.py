"""
environment
===========

Stage that prepares the environment of the build and proxy processes.
The proxy reads two variables:

* ``RUST_BACKTRACE`` – ``1`` to print full stack traces on panic.
* ``RUST_LOG`` – per-subsystem log filter, e.g.
  ``tcp_proxy=info,proxy_engine=info,e2d2=info``.

The settings are held in a `LaunchEnvironment` and only rendered into
variables when the stage hands the subprocess environment to the
context.  The launcher's own ``os.environ`` is left untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from ..config import LaunchConfig
from ..errors import ConfigError
from ..stage_base import BaseStage, LaunchContext, LaunchState

logger = logging.getLogger(__name__)

LOG_LEVELS = ("error", "warn", "info", "debug", "trace", "off")


def is_valid_subsystem(name: str) -> bool:
    """Return True if ``name`` can appear as one ``RUST_LOG`` directive."""
    return bool(name) and not any(c in name for c in ",=") and not any(c.isspace() for c in name)


@dataclass
class LaunchEnvironment:
    """Diagnostic settings for the child process."""

    backtrace: bool = True
    log_levels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: LaunchConfig) -> "LaunchEnvironment":
        levels: Dict[str, str] = {}
        for subsystem, level in config.log_levels.items():
            if not is_valid_subsystem(subsystem):
                raise ConfigError(
                    f"Invalid subsystem name '{subsystem}': "
                    "must be non-empty without ',', '=' or whitespace"
                )
            normalized = str(level).strip().lower()
            if normalized not in LOG_LEVELS:
                raise ConfigError(
                    f"Invalid log level '{level}' for {subsystem}; "
                    f"expected one of {', '.join(LOG_LEVELS)}"
                )
            levels[subsystem] = normalized
        return cls(backtrace=config.backtrace, log_levels=levels)

    def log_filter(self) -> str:
        return ",".join(f"{name}={level}" for name, level in self.log_levels.items())

    def to_env(self) -> Dict[str, str]:
        env = {"RUST_BACKTRACE": "1" if self.backtrace else "0"}
        if self.log_levels:
            env["RUST_LOG"] = self.log_filter()
        return env


class EnvironmentConfigurator(BaseStage):
    name = "Environment"
    description = "Set backtrace and log filter variables for the proxy"
    order = 20
    reached = LaunchState.ENV_CONFIGURED

    def run(self, context: LaunchContext) -> None:
        settings = LaunchEnvironment.from_config(context.config)
        variables = settings.to_env()
        for key, value in variables.items():
            logger.info("%s=%s", key, value)
        environment = dict(context.environment)
        environment.update(variables)
        context.environment = environment


class Stage(EnvironmentConfigurator):
    pass
