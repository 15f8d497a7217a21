from __future__ import annotations

import argparse

from rich.table import Table

from pdfvault.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resources", help="List stored documents")
    parser.add_argument("--limit", type=int, default=50)
    parser.add_argument("--all", action="store_true", help="Include inactive documents")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_initialized()

    repo = ctx.resource_repo()
    resources = repo.list(limit=args.limit, include_inactive=args.all)

    table = Table(title=f"Resources ({len(resources)})")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Filename")
    table.add_column("Status")
    table.add_column("Size")
    table.add_column("Digest (sha256)", overflow="fold")

    for r in resources:
        status = r.status if r.is_active else f"[yellow]{r.status}[/yellow]"
        table.add_row(str(r.id), r.title or "", r.original_filename, status, str(r.size_bytes), r.digest_sha256)

    ctx.console.print(table)
    return 0
