"""
launcher
========

Build the proxy engine and run it as root, from a clean network state.
One invocation runs four stages in order:

1. flush the neighbor (ARP) cache,
2. prepare ``RUST_BACKTRACE`` and ``RUST_LOG`` for the proxy,
3. build with ``cargo build [MODE] --message-format=json`` and pick the
   ``proxy_engine`` executable out of the build output,
4. run that executable through ``sudo -E`` with one argument.

Any failing stage stops the run.  The exit status is the proxy's own,
or the status of the stage that failed.

Usage:

```bash
python -m proxylaunch config.toml              # debug build
python -m proxylaunch config.toml --release    # release build
python -m proxylaunch --log-filter e2d2=debug config.toml
```
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from .config import LaunchConfig, dump_config, resolve_config
from .errors import LauncherError
from .stage_base import LaunchContext
from .stage_manager import StageManager
from .stages.environment import LOG_LEVELS, is_valid_subsystem

logger = logging.getLogger(__name__)


class Launcher:
    def __init__(self, config: Optional[LaunchConfig] = None) -> None:
        self.config = config or LaunchConfig()
        self.manager = StageManager()

        # Load built‑in stages
        self.manager.load_builtin_stages()

    def run(self, argument: Optional[str] = None, build_mode: Optional[str] = None) -> LaunchContext:
        context = LaunchContext(config=self.config, argument=argument, build_mode=build_mode)
        return self.manager.run_stages(context)


def parse_log_filter(arg: str) -> Tuple[str, str]:
    if "=" not in arg:
        raise argparse.ArgumentTypeError("Expected SUBSYSTEM=LEVEL")

    subsystem, level = arg.split("=", 1)
    subsystem = subsystem.strip()
    level = level.strip().lower()

    if not subsystem:
        raise argparse.ArgumentTypeError("Missing subsystem name")
    if not is_valid_subsystem(subsystem):
        raise argparse.ArgumentTypeError(
            f"Invalid subsystem '{subsystem}' (no ',', '=' or whitespace)"
        )
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(
            f"Invalid level '{level}' (choose from {', '.join(LOG_LEVELS)})"
        )

    return subsystem, level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proxylaunch",
        description="Build the proxy engine and run it with root privileges",
        # cargo flags such as --profile must not be taken for our options
        allow_abbrev=False,
    )
    parser.add_argument(
        "argument",
        nargs="?",
        help="Argument forwarded verbatim to the proxy (e.g. its config file)",
    )
    parser.add_argument(
        "build_mode",
        nargs="?",
        help="Flag forwarded verbatim to the build tool (e.g. --release)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="YAML file with launcher settings",
    )
    parser.add_argument(
        "--log-filter",
        type=parse_log_filter,
        action="append",
        default=[],
        metavar="SUBSYSTEM=LEVEL",
        help="Override the proxy's log level for one subsystem (repeatable)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the effective settings as YAML and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output from the launcher itself",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line.

    Unrecognised option-like values (``--release``) are accepted as the
    build mode when that slot is still free.  Anything beyond the two
    positional slots is ignored.
    """
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    if args.build_mode is None and extra:
        args.build_mode = extra.pop(0)
    args.ignored = extra
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.ignored:
        logger.debug("Ignoring extra arguments: %s", " ".join(args.ignored))

    try:
        config = resolve_config(args.config)
        for subsystem, level in args.log_filter:
            config.set_log_level(subsystem, level)

        if args.print_config:
            print(dump_config(config), end="")
            return 0

        launcher = Launcher(config)
        context = launcher.run(args.argument, args.build_mode)
    except LauncherError as exc:
        logger.error("%s", exc)
        return exc.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130

    return context.exit_code or 0


if __name__ == "__main__":
    sys.exit(main())
