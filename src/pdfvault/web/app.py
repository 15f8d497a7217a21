from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Iterator
from urllib.parse import urlencode

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel
from starlette.concurrency import iterate_in_threadpool

from pdfvault.application.services.document_gateway import DocumentGateway, parse_resource_id
from pdfvault.application.services.project_service import ProjectService
from pdfvault.application.services.range_streamer import RangeStreamer
from pdfvault.application.services.token_service import TokenValidator
from pdfvault.core.config import AppPaths, ServeSettings, load_serve_settings
from pdfvault.core.errors import RangeNotSatisfiableError, ServeError
from pdfvault.core.time import epoch_to_iso
from pdfvault.infrastructure.archive.store import ArchiveStore
from pdfvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)

SERVE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class MintTokenRequest(BaseModel):
    base_url: str | None = None


async def _close_after(body: Iterator[bytes]) -> AsyncIterator[bytes]:
    # The file handle lives inside `body`; close it on completion and on client abort.
    try:
        async for chunk in iterate_in_threadpool(body):
            yield chunk
    finally:
        close = getattr(body, "close", None)
        if close is not None:
            close()


def create_app(paths: AppPaths, settings: ServeSettings | None = None) -> FastAPI:
    app = FastAPI(title="pdfvault", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Range", "Content-Type"],
        expose_headers=["Accept-Ranges", "Content-Range", "Content-Length"],
    )

    ProjectService(paths).init_project(provision_secret=settings is None)
    serve_settings = settings or load_serve_settings(paths)
    token_validator = TokenValidator(serve_settings.token_secret, ttl_seconds=serve_settings.token_ttl_seconds)
    archive_store = ArchiveStore(paths.archive_dir)
    streamer = RangeStreamer(chunk_size=serve_settings.stream_chunk_bytes)

    def get_resource_repo() -> ResourceRepo:
        return ResourceRepo(paths.db_path)

    def get_gateway() -> DocumentGateway:
        return DocumentGateway(
            repository=get_resource_repo(),
            archive_store=archive_store,
            token_validator=token_validator,
            streamer=streamer,
        )

    @app.exception_handler(ServeError)
    async def _serve_error_handler(request: Request, exc: ServeError) -> Response:
        if isinstance(exc, RangeNotSatisfiableError):
            return Response(status_code=exc.status_code, headers=exc.headers)
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.api_route("/serve", methods=SERVE_METHODS)
    def serve_document(request: Request) -> StreamingResponse:
        result = get_gateway().serve(
            method=request.method,
            resource_id=request.query_params.get("resourceId"),
            token=request.query_params.get("token"),
            range_header=request.headers.get("range"),
        )
        assert result.body is not None
        return StreamingResponse(
            _close_after(result.body),
            status_code=result.status_code,
            media_type=result.media_type,
            headers=result.headers,
        )

    @app.post("/api/resources/{resource_id}/token")
    def api_mint_token(resource_id: str, req: MintTokenRequest | None = None) -> dict[str, Any]:
        parsed_id = parse_resource_id(resource_id)
        if parsed_id is None:
            raise HTTPException(status_code=400, detail="resource_id must be a positive integer")
        resource = get_resource_repo().find_active_by_id(parsed_id)
        if resource is None:
            raise HTTPException(status_code=404, detail=f"Resource not found: {parsed_id}")

        token = token_validator.mint(resource.id)
        query = urlencode({"resourceId": resource.id, "token": token.value})
        base_url = (req.base_url or "").rstrip("/") if req is not None else ""
        return {
            "ok": True,
            "resource_id": resource.id,
            "token": token.value,
            "issued_at": epoch_to_iso(token.issued_at),
            "expires_at": epoch_to_iso(token_validator.expires_at(token)),
            "serve_url": f"{base_url}/serve?{query}",
            "title": resource.title,
            "byte_length": resource.size_bytes,
        }

    return app
