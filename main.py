"""Convenience entry point for running the launcher.

This script ensures the project's ``src`` directory is on ``sys.path`` so
that the ``proxylaunch`` package can be imported without installation.  It
then invokes :func:`proxylaunch.launcher.main` which exposes the same command
line interface as ``python -m proxylaunch``.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add the src directory to sys.path to make ``proxylaunch`` importable
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from proxylaunch.launcher import main as run_launcher  # noqa: E402


if __name__ == "__main__":
    sys.exit(run_launcher())
