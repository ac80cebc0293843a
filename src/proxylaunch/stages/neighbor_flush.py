"""
neighbor_flush
==============

Stage that flushes every entry of the host's neighbor (ARP) cache
before anything is built or launched.  Entries left over from a
previous proxy run can make the new proxy misroute packets, so the
cache is cleared on every invocation.

The flush needs root.  It goes through the configured elevation
command unless the launcher is already root.  Failure is fatal: the
rest of the pipeline never runs.
"""
from __future__ import annotations

import logging
import subprocess

from ..errors import NeighborFlushError, exit_status
from ..privilege import elevation_prefix
from ..stage_base import BaseStage, LaunchContext, LaunchState

logger = logging.getLogger(__name__)


class NeighborFlush(BaseStage):
    name = "NeighborFlush"
    description = "Flush stale neighbor cache entries"
    order = 10
    reached = LaunchState.CACHE_FLUSHED

    def run(self, context: LaunchContext) -> None:
        cmd = elevation_prefix(context.config) + list(context.config.flush_command)
        logger.info("Flushing neighbor cache: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd)
        except OSError as exc:
            raise NeighborFlushError(f"Could not run {cmd[0]}: {exc}") from exc
        if result.returncode != 0:
            raise NeighborFlushError(
                f"Neighbor cache flush failed with exit status {result.returncode}",
                exit_code=exit_status(result.returncode),
            )


class Stage(NeighborFlush):
    pass
