"""
stage_base
==========

Defines the abstract base class and types shared by the launcher
stages.  Each stage module must implement a `Stage` class that derives
from `BaseStage` and provides a unique name and order.

The stage manager runs stages in ascending `order`.  A stage signals
failure by raising a `LauncherError`; the manager then marks the
pipeline as failed and no later stage runs.  A stage that returns
normally moves the pipeline to its `reached` state.

Stages communicate exclusively through the `LaunchContext` passed to
`run`.  Earlier stages fill in fields (the child environment, the
resolved executable) that later stages consume.
"""
from __future__ import annotations

import abc
import enum
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from .config import LaunchConfig

if TYPE_CHECKING:
    from .stage_manager import StageManager


class LaunchState(enum.Enum):
    """Progress of one launcher invocation."""

    START = "start"
    CACHE_FLUSHED = "cache_flushed"
    ENV_CONFIGURED = "env_configured"
    BUILD_RESOLVED = "build_resolved"
    LAUNCHED = "launched"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class LaunchContext:
    """Transient data for a single pipeline run."""

    config: LaunchConfig = field(default_factory=LaunchConfig)
    #: Value forwarded verbatim to the proxy binary.
    argument: Optional[str] = None
    #: Value forwarded verbatim to the build tool (e.g. ``--release``).
    build_mode: Optional[str] = None
    #: Environment handed to the build and launch subprocesses.
    environment: Dict[str, str] = field(default_factory=lambda: dict(os.environ))
    executable: Optional[str] = None
    exit_code: Optional[int] = None
    state: LaunchState = LaunchState.START


class BaseStage(abc.ABC):
    """Abstract base class for all launcher stages.

    To add a stage, subclass `BaseStage`, implement `run` and expose
    the subclass as ``Stage`` in a module of ``proxylaunch.stages``.
    """

    #: Human‑readable name of the stage.  Must be unique across all
    #: loaded stages.
    name: str = "Unnamed"

    #: Optional description of the stage's purpose.
    description: str = ""

    #: Position in the pipeline.  Must be unique; lower runs first.
    order: int = 0

    #: State the pipeline enters once this stage completes.
    reached: LaunchState = LaunchState.START

    def __init__(self, manager: "StageManager") -> None:
        self.manager = manager

    @abc.abstractmethod
    def run(self, context: LaunchContext) -> None:
        """Perform the stage's work.

        Parameters
        ----------
        context: LaunchContext
            Shared state for this invocation.  Stages read the fields
            produced by earlier stages and fill in their own.

        Raises
        ------
        LauncherError
            If the stage fails.  The pipeline stops immediately.
        """
