from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from printvault.cli.commands import (
    init_cmd,
    resources_cmd,
    seed_cmd,
    stats_cmd,
    web_cmd,
)
from printvault.cli.context import CLIContext
from printvault.core.config import load_paths, load_settings
from printvault.core.errors import PrintvaultError
from printvault.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printvault",
        description="Printvault resource catalog CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .printvault data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    resources_cmd.register(subparsers)
    seed_cmd.register(subparsers)
    stats_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, settings=load_settings(), console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except PrintvaultError as exc:
        logger.error(str(exc))
        return 1
