"""
errors
======

Exceptions raised by the launcher stages.  Every failure is terminal
for the pipeline, so each exception carries the exit status the
launcher process should end with.  ``launcher.main`` reports the
message on stderr and exits with ``exit_code``.
"""
from __future__ import annotations

from typing import List, Optional


class LauncherError(Exception):
    """Base class for all launcher failures."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(LauncherError):
    """Invalid configuration file, option or log level."""

    def __init__(self, message: str) -> None:
        super().__init__(message, exit_code=2)


class NeighborFlushError(LauncherError):
    """The neighbor cache could not be flushed."""


class BuildError(LauncherError):
    """The build tool failed or produced no output."""


class ResolutionError(LauncherError):
    """The build output did not name exactly one executable."""

    def __init__(self, target: str, candidates: List[str]) -> None:
        self.target = target
        self.candidates = list(candidates)
        if not candidates:
            message = f"No non-test artifact found for target '{target}'"
        else:
            message = (
                f"Ambiguous build output: {len(candidates)} artifacts match "
                f"target '{target}': " + ", ".join(candidates)
            )
        super().__init__(message)

    @property
    def match_count(self) -> int:
        return len(self.candidates)


class LaunchError(LauncherError):
    """The resolved executable could not be started."""

    def __init__(self, message: str, exit_code: int = 1, errno: Optional[int] = None) -> None:
        super().__init__(message, exit_code=exit_code)
        self.errno = errno


def exit_status(returncode: int) -> int:
    """Map a subprocess return code to a process exit status.

    A negative code means the process was killed by that signal; it is
    reported as ``128 + N`` the way a shell would.
    """
    return 128 - returncode if returncode < 0 else returncode
