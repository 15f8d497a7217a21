from __future__ import annotations

import argparse
from urllib.parse import urlencode

from pdfvault.application.services.token_service import TokenValidator
from pdfvault.cli.context import CLIContext
from pdfvault.core.config import load_serve_settings
from pdfvault.core.errors import ResourceNotFoundError
from pdfvault.core.time import epoch_to_iso


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("token", help="Mint a short-lived access token for a document")
    parser.add_argument("resource_id", type=int)
    parser.add_argument("--base-url", default="http://127.0.0.1:8765", help="Server base URL for the printed link")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_initialized()

    resource = ctx.resource_repo().find_active_by_id(args.resource_id)
    if resource is None:
        raise ResourceNotFoundError(f"No active resource with id {args.resource_id}")

    settings = load_serve_settings(ctx.paths)
    validator = TokenValidator(settings.token_secret, settings.token_ttl_seconds)
    token = validator.mint(resource.id)
    query = urlencode({"resourceId": resource.id, "token": token.value})

    ctx.console.print(f"[bold]Token[/bold] {token.value}")
    ctx.console.print(f"[bold]Expires[/bold] {epoch_to_iso(validator.expires_at(token))}")
    ctx.console.print(f"[bold]URL[/bold] {args.base_url.rstrip('/')}/serve?{query}", soft_wrap=True)
    return 0
