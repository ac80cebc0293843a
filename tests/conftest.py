"""Pytest configuration for tests.

The end-to-end tests replace cargo, ``ip`` and the proxy binary with
small Python scripts so the real pipeline can run without root.
"""

import json
import stat
import sys
from pathlib import Path
from typing import List, Optional

import pytest
import yaml


FAKE_CARGO = """\
import json
import os
import sys
from pathlib import Path

here = Path(__file__).resolve().parent
(here / "cargo_args.json").write_text(json.dumps(sys.argv[1:]))
(here / "cargo_env.json").write_text(
    json.dumps({k: os.environ.get(k) for k in ("RUST_LOG", "RUST_BACKTRACE")})
)
events = here / "events.jsonl"
if events.exists():
    sys.stdout.write(events.read_text())
status = here / "cargo_status"
sys.exit(int(status.read_text()) if status.exists() else 0)
"""

FAKE_PROXY = """\
import json
import os
import sys
from pathlib import Path

here = Path(__file__).resolve().parent
(here / "proxy_run.json").write_text(
    json.dumps(
        {
            "argv": sys.argv[1:],
            "RUST_LOG": os.environ.get("RUST_LOG"),
            "RUST_BACKTRACE": os.environ.get("RUST_BACKTRACE"),
            "PATH": os.environ.get("PATH"),
        }
    )
)
print("PROXY OUTPUT", flush=True)
status = here / "proxy_status"
sys.exit(int(status.read_text()) if status.exists() else 0)
"""


FAKE_ELEVATE = """\
import os
import sys
from pathlib import Path

here = Path(__file__).resolve().parent
with open(here / "elevated.log", "a") as log:
    log.write(" ".join(sys.argv[1:]) + "\\n")
os.execvp(sys.argv[1], sys.argv[1:])
"""


class FakeHarness:
    """A workspace with fake build, flush and proxy tools."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.cargo = root / "fake_cargo.py"
        self.cargo.write_text(FAKE_CARGO, encoding="utf-8")
        self.flush_marker = root / "flushed"
        self.proxy = root / "proxy_engine"
        (root / "proxy_engine.py").write_text(FAKE_PROXY, encoding="utf-8")
        self.proxy.write_text(
            f'#!/bin/sh\nexec "{sys.executable}" "$0.py" "$@"\n', encoding="utf-8"
        )
        self.proxy.chmod(self.proxy.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        self.flush_status = 0
        self.config_path = root / "proxylaunch.yaml"
        self.elevate = root / "fake_sudo.py"
        self.elevate.write_text(FAKE_ELEVATE, encoding="utf-8")

    @property
    def elevate_command(self) -> List[str]:
        return [sys.executable, str(self.elevate)]

    @property
    def elevated(self) -> List[str]:
        path = self.root / "elevated.log"
        return path.read_text().splitlines() if path.exists() else []

    def write_events(self, records: List[dict]) -> None:
        lines = [json.dumps(r) for r in records]
        (self.root / "events.jsonl").write_text("\n".join(lines) + "\n", encoding="utf-8")

    def artifact(self, target: str = "proxy_engine", test: bool = False, filenames: Optional[List[str]] = None) -> dict:
        return {
            "reason": "compiler-artifact",
            "target": {"name": target, "kind": ["bin"]},
            "profile": {"test": test, "opt_level": "0"},
            "filenames": filenames if filenames is not None else [str(self.proxy)],
        }

    def set_cargo_status(self, status: int) -> None:
        (self.root / "cargo_status").write_text(str(status))

    def set_proxy_status(self, status: int) -> None:
        (self.root / "proxy_status").write_text(str(status))

    def write_config(self, **overrides) -> str:
        data = {
            "build_command": [sys.executable, str(self.cargo)],
            "elevate_command": [],
            "flush_command": [
                sys.executable,
                "-c",
                f"import sys; open({str(self.flush_marker)!r}, 'w').close(); sys.exit({self.flush_status})",
            ],
        }
        data.update(overrides)
        self.config_path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(self.config_path)

    @property
    def cargo_args(self) -> Optional[List[str]]:
        path = self.root / "cargo_args.json"
        return json.loads(path.read_text()) if path.exists() else None

    @property
    def cargo_env(self) -> Optional[dict]:
        path = self.root / "cargo_env.json"
        return json.loads(path.read_text()) if path.exists() else None

    @property
    def proxy_run(self) -> Optional[dict]:
        path = self.root / "proxy_run.json"
        return json.loads(path.read_text()) if path.exists() else None


@pytest.fixture
def harness(tmp_path):
    return FakeHarness(tmp_path)
