from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from pdfvault.cli.commands import (
    ingest_cmd,
    init_cmd,
    resources_cmd,
    status_cmd,
    token_cmd,
    view_cmd,
    web_cmd,
)
from pdfvault.cli.context import CLIContext
from pdfvault.core.config import load_paths
from pdfvault.core.errors import PdfVaultError
from pdfvault.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdfvault",
        description="Protected PDF delivery and viewer",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .pdfvault data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    ingest_cmd.register(subparsers)
    resources_cmd.register(subparsers)
    status_cmd.register(subparsers)
    token_cmd.register(subparsers)
    web_cmd.register(subparsers)
    view_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except PdfVaultError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
