from __future__ import annotations

import argparse

from pdfvault.application.services.resource_service import ResourceService
from pdfvault.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    for name, help_text in (
        ("activate", "Make a document servable again"),
        ("deactivate", "Stop serving a document without deleting it"),
        ("delete", "Remove a document record and its archived file"),
    ):
        parser = subparsers.add_parser(name, help=help_text)
        parser.add_argument("resource_id", type=int)
        parser.set_defaults(handler=run, action=name)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_initialized()

    service = ResourceService(ctx.resource_repo(), ctx.archive_store())
    if args.action == "delete":
        file_removed = service.delete(args.resource_id)
        ctx.console.print(f"[green]Deleted[/green] resource {args.resource_id}")
        if not file_removed:
            ctx.console.print("[yellow]Archived file could not be removed[/yellow]")
        return 0

    if args.action == "activate":
        resource = service.activate(args.resource_id)
    else:
        resource = service.deactivate(args.resource_id)
    ctx.console.print(f"Resource {resource.id} is now [bold]{resource.status}[/bold]")
    return 0
