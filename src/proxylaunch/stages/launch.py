"""
launch
======

Stage that runs the resolved proxy executable with root privileges.
The command mirrors the classic harness invocation:

```bash
sudo -E env "PATH=$PATH" /path/to/proxy_engine ARGUMENT
```

``-E`` keeps the caller's environment and ``env PATH=...`` restores
the caller's ``PATH``, which sudo otherwise resets.  The child runs
with the environment prepared by the environment stage and inherits
the launcher's standard streams.

A terminal interrupt reaches the proxy directly through the process
group.  The launcher keeps waiting for the proxy to exit and reports
its exit status as the pipeline's own.
"""
from __future__ import annotations

import errno
import logging
import os
import subprocess
from typing import List

from ..errors import LaunchError, exit_status
from ..privilege import elevation_prefix
from ..stage_base import BaseStage, LaunchContext, LaunchState

logger = logging.getLogger(__name__)


def launch_command(context: LaunchContext) -> List[str]:
    """Return the argv used to start ``context.executable``."""
    if context.executable is None:
        raise LaunchError("No executable has been resolved")
    target = [context.executable]
    if context.argument is not None:
        target.append(context.argument)
    prefix = elevation_prefix(context.config)
    if not prefix:
        return target
    path = context.environment.get("PATH", os.defpath)
    return prefix + ["env", f"PATH={path}"] + target


def check_executable(path: str) -> None:
    if not os.path.isfile(path):
        raise LaunchError(
            f"Executable not found: {path}", exit_code=127, errno=errno.ENOENT
        )
    if not os.access(path, os.X_OK):
        raise LaunchError(
            f"Permission denied: {path} is not executable",
            exit_code=126,
            errno=errno.EACCES,
        )


class PrivilegedLauncher(BaseStage):
    name = "Launch"
    description = "Run the proxy with elevated privileges"
    order = 40
    reached = LaunchState.LAUNCHED

    def run(self, context: LaunchContext) -> None:
        cmd = launch_command(context)
        check_executable(context.executable)
        logger.info("Launching: %s", " ".join(cmd))
        try:
            process = subprocess.Popen(cmd, env=context.environment)
        except OSError as exc:
            raise LaunchError(
                f"Could not start {cmd[0]}: {exc.strerror or exc}",
                exit_code=127 if exc.errno == errno.ENOENT else 126,
                errno=exc.errno,
            ) from exc

        while True:
            try:
                returncode = process.wait()
                break
            except KeyboardInterrupt:
                logger.info("Interrupt received; waiting for the proxy to exit")
        context.exit_code = exit_status(returncode)

        if context.exit_code != 0:
            logger.warning("Proxy exited with status %d", context.exit_code)
        else:
            logger.info("Proxy exited cleanly")


class Stage(PrivilegedLauncher):
    pass
