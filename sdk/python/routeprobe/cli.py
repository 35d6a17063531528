"""Command-line front-end for the convergence loop.

Usage:
  routeprobe https://example.com https://example.org
  routeprobe -o routes.txt --allow "*.cdn.example.net" https://example.com
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .client import Client
from .loop import Explorer
from .types import DEFAULT_RUNTIME, Config, RouteProbeError

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="routeprobe",
        description=(
            "Find the hosts a sandboxed browser session needs by re-running it "
            "with a growing allow-list until the pages load."
        ),
    )
    parser.add_argument("urls", nargs="+", metavar="URL", help="Target pages")
    parser.add_argument(
        "-o",
        "--route-file",
        type=Path,
        help="Keep the route file at this path instead of printing it",
    )
    parser.add_argument(
        "--result-file",
        type=Path,
        help="Keep the runtime's JSON result at this path",
    )
    parser.add_argument(
        "--allow",
        action="append",
        default=[],
        metavar="HOST",
        help="Extra ip-add entry (repeatable)",
    )
    parser.add_argument(
        "--runtime",
        default=os.environ.get("ROUTEPROBE_RUNTIME", DEFAULT_RUNTIME),
        help="Sandbox runtime binary (default: %(default)s)",
    )
    parser.add_argument(
        "--sudo", action="store_true", help="Run the sandbox runtime with sudo"
    )
    parser.add_argument(
        "--data-root",
        type=Path,
        help="Application-data root holding the session logs",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        help="Stop after this many runs without asking",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    config = Config(binary_path=args.runtime, use_sudo=args.sudo)
    if args.data_root is not None:
        config.data_root = args.data_root
    return config


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        format="%(levelname)s %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    if args.max_iterations is not None and args.max_iterations < 1:
        log.error("--max-iterations must be >= 1")
        return 2

    config = build_config(args)
    explorer = Explorer(
        args.urls,
        client=Client(config),
        config=config,
        route_path=args.route_file,
        result_path=args.result_file,
        extra_hosts=args.allow,
        max_iterations=args.max_iterations,
    )

    try:
        result = explorer.run()
    except RouteProbeError as e:
        log.error("%s", e)
        return 1
    except EOFError:
        log.error("no answer on stdin, aborting")
        return 1
    except KeyboardInterrupt:
        return 130

    if result.route_path is None:
        sys.stdout.write(result.route_text)
    return 0
