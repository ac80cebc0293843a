"""Helpers for running commands with administrator privileges."""
from __future__ import annotations

import os
from typing import List

from .config import LaunchConfig


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def needs_elevation(config: LaunchConfig) -> bool:
    """Return True if commands must go through the elevation command.

    Elevation is skipped when it is disabled in the configuration or
    when the launcher already runs as root.
    """
    return bool(config.elevate_command) and not is_root()


def elevation_prefix(config: LaunchConfig) -> List[str]:
    return list(config.elevate_command) if needs_elevation(config) else []
