"""
build
=====

Stage that builds the proxy and locates the resulting executable.

The build tool is asked for machine-readable output
(``cargo build [MODE] --message-format=json``), which prints one JSON
object per line on stdout.  Artifact messages look like:

```json
{"reason": "compiler-artifact",
 "target": {"name": "proxy_engine", ...},
 "profile": {"test": false, ...},
 "filenames": ["/work/target/debug/proxy_engine"]}
```

A record matches when its ``profile.test`` flag is false and its
``target.name`` equals the configured target.  The filenames of all
matching records are collected and exactly one is expected.  Zero or
several candidates is an error; the launcher never guesses which
binary to run.
"""
from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..errors import BuildError, ResolutionError, exit_status
from ..stage_base import BaseStage, LaunchContext, LaunchState

logger = logging.getLogger(__name__)


@dataclass
class BuildRecord:
    """One structured status message from the build tool."""

    target_name: Optional[str] = None
    is_test: Optional[bool] = None
    filenames: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BuildRecord":
        target = data.get("target")
        profile = data.get("profile")
        filenames = data.get("filenames")
        return cls(
            target_name=target.get("name") if isinstance(target, dict) else None,
            is_test=profile.get("test") if isinstance(profile, dict) else None,
            filenames=[str(f) for f in filenames] if isinstance(filenames, list) else [],
            reason=data.get("reason"),
        )

    def matches(self, target_name: str) -> bool:
        # ``is_test`` must be exactly False; a missing flag never matches.
        return self.is_test is False and self.target_name == target_name


def parse_build_events(lines: Iterable[str]) -> Iterator[BuildRecord]:
    """Yield a `BuildRecord` for every JSON object in ``lines``.

    Blank lines are ignored.  Lines that are not JSON objects are
    skipped with a warning.
    """
    for lineno, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            data = json.loads(text)
        except ValueError:
            logger.warning("Skipping non-JSON build output on line %d: %s", lineno, text)
            continue
        if not isinstance(data, dict):
            logger.warning("Skipping non-object build output on line %d: %s", lineno, text)
            continue
        yield BuildRecord.from_json(data)


def resolve_artifact(records: Iterable[BuildRecord], target_name: str) -> str:
    """Return the single artifact path built for ``target_name``.

    Raises
    ------
    ResolutionError
        If no non-test record for the target is present, or the
        matching records name more than one file.
    """
    candidates: List[str] = []
    for record in records:
        if record.matches(target_name):
            candidates.extend(record.filenames)
    if len(candidates) != 1:
        raise ResolutionError(target_name, candidates)
    return candidates[0]


def build_command(context: LaunchContext) -> List[str]:
    config = context.config
    cmd = list(config.build_command)
    if context.build_mode:
        cmd.append(context.build_mode)
    cmd.append(config.message_format)
    return cmd


class BuildResolver(BaseStage):
    name = "Build"
    description = "Build the proxy and resolve its executable path"
    order = 30
    reached = LaunchState.BUILD_RESOLVED

    def run(self, context: LaunchContext) -> None:
        cmd = build_command(context)
        logger.info("Building: %s", " ".join(cmd))
        try:
            # stderr is inherited so compiler diagnostics reach the terminal
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                text=True,
                env=context.environment,
            )
        except OSError as exc:
            raise BuildError(f"Could not run {cmd[0]}: {exc}") from exc

        if result.returncode != 0:
            raise BuildError(
                f"Build failed with exit status {result.returncode}",
                exit_code=exit_status(result.returncode),
            )
        if not result.stdout.strip():
            raise BuildError("Build produced no output")

        records = parse_build_events(result.stdout.splitlines())
        executable = resolve_artifact(records, context.config.target)
        logger.info("Resolved %s executable: %s", context.config.target, executable)
        # flushed so the path precedes the proxy output on a shared stdout
        print(executable, flush=True)
        context.executable = executable


class Stage(BuildResolver):
    pass
