from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pdfvault.application.services.ingestion_service import IngestionService
from pdfvault.application.services.resource_service import ResourceService
from pdfvault.core.config import AppPaths, ServeSettings, load_paths
from pdfvault.infrastructure.archive.store import ArchiveStore
from pdfvault.infrastructure.db.repos.resource_repo import ResourceRepo
from pdfvault.web.app import create_app


@pytest.fixture()
def paths(tmp_path: Path, monkeypatch) -> AppPaths:
    monkeypatch.delenv("PDFVAULT_HOME", raising=False)
    project_root = tmp_path / "proj"
    project_root.mkdir()
    return load_paths(project_root)


def _client(paths: AppPaths) -> TestClient:
    app = create_app(paths, settings=ServeSettings(token_secret=b"web-test-secret", stream_chunk_bytes=128))
    return TestClient(app)


def _ingest(paths: AppPaths, tmp_path: Path, name: str, payload: bytes) -> int:
    source = tmp_path / name
    source.write_bytes(payload)
    service = IngestionService(ResourceRepo(paths.db_path), ArchiveStore(paths.archive_dir))
    return service.ingest_file(source, title="Quarterly").resource.id


def _token(client: TestClient, resource_id: int) -> str:
    r = client.post(f"/api/resources/{resource_id}/token")
    assert r.status_code == 200
    return r.json()["token"]


def test_web_serve_end_to_end(tmp_path: Path, paths: AppPaths) -> None:
    client = _client(paths)
    payload = b"%PDF-1.4\n" + b"0123456789" * 99 + b"9"
    assert len(payload) == 1000
    resource_id = _ingest(paths, tmp_path, "a.pdf", payload)

    r = client.post(f"/api/resources/{resource_id}/token", json={"base_url": "https://docs.example/"})
    assert r.status_code == 200
    grant = r.json()
    assert grant["ok"] is True
    assert grant["resource_id"] == resource_id
    assert grant["title"] == "Quarterly"
    assert grant["byte_length"] == 1000
    assert grant["serve_url"].startswith("https://docs.example/serve?resourceId=")

    url = f"/serve?resourceId={resource_id}&token={grant['token']}"
    full = client.get(url)
    assert full.status_code == 200
    assert full.content == payload
    assert full.headers["content-type"] == "application/pdf"
    assert full.headers["accept-ranges"] == "bytes"
    assert full.headers["x-content-type-options"] == "nosniff"
    assert full.headers["x-frame-options"] == "SAMEORIGIN"
    assert full.headers["cache-control"] == "private, no-store"

    partial = client.get(url, headers={"Range": "bytes=500-"})
    assert partial.status_code == 206
    assert partial.headers["content-range"] == "bytes 500-999/1000"
    assert partial.headers["content-length"] == "500"
    assert partial.content == payload[500:]

    unsatisfiable = client.get(url, headers={"Range": "bytes=1000-"})
    assert unsatisfiable.status_code == 416
    assert unsatisfiable.headers["content-range"] == "bytes */1000"
    assert unsatisfiable.content == b""


def test_web_serve_error_statuses(tmp_path: Path, paths: AppPaths) -> None:
    client = _client(paths)
    first = _ingest(paths, tmp_path, "a.pdf", b"%PDF-1.4 first")
    second = _ingest(paths, tmp_path, "b.pdf", b"%PDF-1.4 second")
    token_a = _token(client, first)

    assert client.get("/serve").status_code == 400
    assert client.get(f"/serve?resourceId={first}").status_code == 400
    assert client.get(f"/serve?resourceId=abc&token={token_a}").status_code == 400
    assert client.get(f"/serve?resourceId=\u00b2&token={token_a}").status_code == 400
    assert client.get(f"/serve?resourceId={first}&token=\u00b2.a.b").status_code == 401

    wrong = client.get(f"/serve?resourceId={second}&token={token_a}")
    assert wrong.status_code == 401
    assert wrong.json() == {"detail": "Invalid or expired token"}

    head = client.head(f"/serve?resourceId={first}&token={token_a}")
    assert head.status_code == 405
    assert head.headers["allow"] == "GET"
    assert client.post(f"/serve?resourceId={first}&token={token_a}").status_code == 405

    token_b = _token(client, second)
    ResourceService(ResourceRepo(paths.db_path), ArchiveStore(paths.archive_dir)).deactivate(second)
    assert client.get(f"/serve?resourceId={second}&token={token_b}").status_code == 404
    assert client.get(f"/serve?resourceId={second}&token={token_a}").status_code == 401
    assert client.post(f"/api/resources/{second}/token").status_code == 404
    assert client.post("/api/resources/0/token").status_code == 400


def test_app_initializes_project(paths: AppPaths) -> None:
    _client(paths)

    assert paths.db_path.exists()
    assert paths.archive_dir.is_dir()
    assert not paths.secret_path.exists()
