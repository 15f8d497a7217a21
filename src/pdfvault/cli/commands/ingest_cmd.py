from __future__ import annotations

import argparse
from pathlib import Path

from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from pdfvault.application.services.ingestion_service import IngestionService
from pdfvault.cli.context import CLIContext
from pdfvault.core.errors import ResourceIngestError


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("ingest", help="Store one or more PDF files in the vault")
    parser.add_argument("paths", nargs="+", help="Local PDF paths to ingest")
    parser.add_argument("--title", help="Display title (only sensible with a single file)")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_initialized()

    repo = ctx.resource_repo()
    store = ctx.archive_store()
    service = IngestionService(repo, store)

    table = Table(title="Ingest Results")
    table.add_column("File", overflow="fold")
    table.add_column("Status")
    table.add_column("ID")
    table.add_column("Digest (sha256)", overflow="fold")

    exit_code = 0
    paths = [Path(p) for p in args.paths]

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=ctx.console,
    )

    with progress:
        task = progress.add_task("Ingesting", total=len(paths))
        for p in paths:
            try:
                result = service.ingest_file(p, title=args.title)
                table.add_row(str(p), result.status, str(result.resource.id), result.resource.digest_sha256)
            except ResourceIngestError as exc:
                table.add_row(str(p), "error", "-", str(exc))
                exit_code = 1
            finally:
                progress.advance(task, 1)

    ctx.console.print(table)
    return exit_code
