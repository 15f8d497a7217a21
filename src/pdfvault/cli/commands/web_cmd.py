from __future__ import annotations

import argparse

from pdfvault.cli.context import CLIContext
from pdfvault.core.config import load_serve_settings
from pdfvault.web.app import create_app


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("web", help="Serve protected documents over HTTP")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--log-level", default="info", choices=["critical", "error", "warning", "info", "debug"])
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    try:
        import uvicorn
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("uvicorn is required to serve documents. Install project dependencies.") from exc

    settings = load_serve_settings(ctx.paths)
    app = create_app(ctx.paths, settings)

    base_url = f"http://{args.host}:{args.port}"
    ctx.console.print(f"[bold]Serve[/bold] GET  {base_url}/serve?resourceId=<id>&token=<token>", soft_wrap=True)
    ctx.console.print(f"[bold]Mint[/bold]  POST {base_url}/api/resources/<id>/token", soft_wrap=True)
    ctx.console.print(f"Tokens expire after {settings.token_ttl_seconds}s")

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    return 0
