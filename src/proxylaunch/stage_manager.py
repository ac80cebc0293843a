"""
stage_manager
=============

Defines the `StageManager` class responsible for loading the launcher
stages and running them in order.  The manager expects each stage
module to expose a class called `Stage` that derives from `BaseStage`.
During registration the manager instantiates the class and checks
that its name and order are not already taken.

Stages run strictly one after another on the calling thread.  The
first exception ends the run: the context is marked as failed and the
exception propagates to the caller.  Side effects of the stages that
already ran (a flushed neighbor cache) are not undone.
"""
from __future__ import annotations

import logging
from typing import List

from .stage_base import BaseStage, LaunchContext, LaunchState

logger = logging.getLogger(__name__)


class StageManager:
    """Coordinates loading and execution of launcher stages."""

    def __init__(self) -> None:
        self.stages: List[BaseStage] = []

    def load_builtin_stages(self) -> None:
        """Load the stages shipped with the launcher.

        Built‑ins live in ``proxylaunch.stages`` and must provide a
        class called ``Stage`` derived from ``BaseStage``.
        """
        import importlib
        import pkgutil

        package = "proxylaunch.stages"
        package_obj = importlib.import_module(package)
        for _, module_name, _ in pkgutil.iter_modules(package_obj.__path__, package + "."):
            module = importlib.import_module(module_name)
            if hasattr(module, "Stage"):
                cls = getattr(module, "Stage")
                if not issubclass(cls, BaseStage):
                    continue
                self.register_stage(cls(self))

    def register_stage(self, stage: BaseStage) -> None:
        """Register a stage instance, keeping the list sorted by order."""
        for existing in self.stages:
            if existing.name == stage.name:
                raise ValueError(f"Duplicate stage name: {stage.name}")
            if existing.order == stage.order:
                raise ValueError(
                    f"Stages {existing.name} and {stage.name} share order {stage.order}"
                )
        self.stages.append(stage)
        self.stages.sort(key=lambda s: s.order)

    def run_stages(self, context: LaunchContext) -> LaunchContext:
        """Run every stage in order against ``context``.

        Returns the context in the ``SUCCESS`` state, or ``FAILURE``
        when the launched process exited non-zero.  If a stage raises,
        the context is left in the ``FAILURE`` state and the exception
        is re-raised.
        """
        for stage in self.stages:
            logger.debug("Running stage %s", stage.name)
            try:
                stage.run(context)
            except BaseException:
                logger.debug("Stage %s failed in state %s", stage.name, context.state.value)
                context.state = LaunchState.FAILURE
                raise
            context.state = stage.reached
        if context.exit_code:
            context.state = LaunchState.FAILURE
        else:
            context.state = LaunchState.SUCCESS
        return context
