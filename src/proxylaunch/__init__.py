"""Top‑level package for the proxy launcher.

Exposes common classes so that they can be imported directly from
`proxylaunch`, e.g. `from proxylaunch import Launcher`.
"""

from .config import LaunchConfig
from .launcher import Launcher
from .stage_base import BaseStage, LaunchContext, LaunchState
from .stage_manager import StageManager

__version__ = "0.1.0"

__all__ = [
    "Launcher",
    "LaunchConfig",
    "StageManager",
    "BaseStage",
    "LaunchContext",
    "LaunchState",
]
