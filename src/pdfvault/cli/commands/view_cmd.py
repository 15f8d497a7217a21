from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from rich.progress import BarColumn, Progress, TextColumn

from pdfvault.cli.context import CLIContext
from pdfvault.core.errors import LoadError, ViewerError
from pdfvault.viewer.controller import NullListener, ViewerController
from pdfvault.viewer.surface import MemorySurface


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("view", help="Render one page of a PDF (URL or path) headlessly")
    parser.add_argument("source", help="http(s) URL, file:// URL or local path")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--zoom-in", type=int, default=0, metavar="K", help="Apply K zoom-in steps")
    parser.add_argument("--zoom-out", type=int, default=0, metavar="K", help="Apply K zoom-out steps")
    parser.add_argument("--out", type=Path, help="Write the rendered page to this PNG file")
    parser.set_defaults(handler=run)


class _ConsoleListener(NullListener):
    def __init__(self, ctx: CLIContext, progress: Progress) -> None:
        self.ctx = ctx
        self.progress = progress
        self.task = progress.add_task("Fetching", total=100)
        self.error: LoadError | None = None

    def on_progress(self, percent: int) -> None:
        self.progress.update(self.task, completed=percent)

    def on_load(self, total_pages: int) -> None:
        self.progress.update(self.task, completed=100, description=f"Loaded {total_pages} pages")

    def on_page_change(self, page: int, total_pages: int, announcement: str) -> None:
        self.ctx.console.log(announcement)

    def on_error(self, error: LoadError) -> None:
        self.error = error


async def _render(args: argparse.Namespace, ctx: CLIContext) -> int:
    surface = MemorySurface(keep_history=False)
    progress = Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), console=ctx.console)

    with progress:
        listener = _ConsoleListener(ctx, progress)
        controller = ViewerController(args.source, surface, listener=listener, initial_page=args.page)
        try:
            await controller.load()
            for _ in range(max(0, args.zoom_in)):
                controller.zoom_in()
            for _ in range(max(0, args.zoom_out)):
                controller.zoom_out()
            await controller.wait_idle()

            if listener.error is not None:
                raise ViewerError(f"{listener.error.user_message} ({listener.error})")

            frame = surface.last_frame
            state = controller.state
            ctx.console.print(
                f"Page {state.current_page} of {state.total_pages} at {controller.controls_state().zoom_percent}%"
            )
            if frame is not None:
                ctx.console.print(f"Rendered {frame.width}x{frame.height} px")
            if args.out is not None:
                surface.save_png(args.out)
                ctx.console.print(f"[green]Wrote[/green] {args.out}")
        finally:
            controller.dispose()
    return 0


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    return asyncio.run(_render(args, ctx))
