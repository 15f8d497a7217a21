from __future__ import annotations

import argparse

from pdfvault.application.services.project_service import ProjectService
from pdfvault.cli.context import CLIContext
from pdfvault.core.config import TOKEN_SECRET_ENV


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("init", help="Create the vault: archive, resource database and token secret")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    layout = ProjectService(ctx.paths).init_project()

    for path in layout.created:
        ctx.console.print(f"[green]Created[/green] {path}")
    if not layout.created:
        ctx.console.print("[yellow]Vault already initialized[/yellow]")

    ctx.console.print(f"[bold]Archive[/bold]  {layout.archive_dir}")
    ctx.console.print(f"[bold]Database[/bold] {layout.db_path}")
    if layout.secret_path is None:
        ctx.console.print(f"[bold]Token secret[/bold] taken from ${TOKEN_SECRET_ENV}")
    else:
        ctx.console.print(f"[bold]Token secret[/bold] {layout.secret_path} (keep private)")
    ctx.console.print("Add documents with [cyan]pdfvault ingest <file.pdf>[/cyan]")
    return 0
