"""Built‑in stages of the launcher pipeline.

This package contains four modules, run in this order:

* `neighbor_flush` – flush the host's neighbor (ARP) cache.
* `environment` – compute the child's backtrace and log settings.
* `build` – build the proxy and resolve its executable.
* `launch` – run the executable with elevated privileges.

Stages are automatically discovered by the `StageManager` and
registered at startup.  Each module must expose a class named
`Stage` deriving from `BaseStage`.
"""

__all__ = ["neighbor_flush", "environment", "build", "launch"]
