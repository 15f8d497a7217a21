from pathlib import Path

import pytest

from pdfvault.application.services.document_gateway import SECURITY_HEADERS, DocumentGateway, parse_resource_id
from pdfvault.application.services.range_streamer import RangeStreamer
from pdfvault.application.services.token_service import TokenValidator
from pdfvault.core.errors import (
    BadRequestError,
    MethodNotAllowedError,
    NotFoundError,
    RangeNotSatisfiableError,
    UnauthorizedError,
)
from pdfvault.domain.models.resource import Resource
from pdfvault.infrastructure.archive.store import ArchiveStore


class InMemoryRepository:
    def __init__(self, *resources: Resource) -> None:
        self.resources = {r.id: r for r in resources}
        self.lookups: list[int] = []

    def find_active_by_id(self, resource_id: int) -> Resource | None:
        self.lookups.append(resource_id)
        resource = self.resources.get(resource_id)
        return resource if resource is not None and resource.is_active else None


def _resource(resource_id: int, relpath: str, size: int, status: str = "active") -> Resource:
    return Resource(
        id=resource_id,
        digest_sha256="0" * 64,
        media_type="application/pdf",
        original_filename=f'doc"{resource_id}.pdf',
        archived_relpath=relpath,
        size_bytes=size,
        ingested_at="2024-01-01T00:00:00+00:00",
        status=status,
    )


def _gateway(tmp_path: Path, payload: bytes = b"%PDF-" + b"x" * 995):
    archive = ArchiveStore(tmp_path / "archive")
    target = archive.base_dir / "sha256" / "aa" / "bb" / "doc.pdf"
    target.parent.mkdir(parents=True)
    target.write_bytes(payload)
    relpath = "sha256/aa/bb/doc.pdf"
    repo = InMemoryRepository(
        _resource(1, relpath, len(payload)),
        _resource(2, relpath, len(payload), status="inactive"),
        _resource(3, "sha256/aa/bb/missing.pdf", 0),
        _resource(4, "../../escape.pdf", 0),
    )
    validator = TokenValidator(b"gateway-secret")
    gateway = DocumentGateway(
        repository=repo,
        archive_store=archive,
        token_validator=validator,
        streamer=RangeStreamer(chunk_size=64),
    )
    return gateway, validator, repo, payload


def test_full_document_is_served_with_security_headers(tmp_path: Path) -> None:
    gateway, validator, _, payload = _gateway(tmp_path)

    result = gateway.serve(method="GET", resource_id="1", token=validator.mint(1).value)

    assert result.status_code == 200
    assert result.media_type == "application/pdf"
    assert b"".join(result.body) == payload
    for name, value in SECURITY_HEADERS.items():
        assert result.headers[name] == value
    assert result.headers["Content-Length"] == str(len(payload))
    assert result.headers["Content-Disposition"] == 'inline; filename="doc1.pdf"'


def test_open_ended_range_returns_partial_content(tmp_path: Path) -> None:
    gateway, validator, _, payload = _gateway(tmp_path)

    result = gateway.serve(method="GET", resource_id=1, token=validator.mint(1).value, range_header="bytes=500-")

    assert result.status_code == 206
    assert result.headers["Content-Range"] == "bytes 500-999/1000"
    assert b"".join(result.body) == payload[500:]


def test_unsatisfiable_range_raises_with_content_range(tmp_path: Path) -> None:
    gateway, validator, _, _ = _gateway(tmp_path)

    with pytest.raises(RangeNotSatisfiableError) as excinfo:
        gateway.serve(method="GET", resource_id="1", token=validator.mint(1).value, range_header="bytes=1000-")

    assert excinfo.value.status_code == 416
    assert excinfo.value.headers["Content-Range"] == "bytes */1000"


def test_token_for_another_resource_is_unauthorized_before_lookup(tmp_path: Path) -> None:
    gateway, validator, repo, _ = _gateway(tmp_path)

    with pytest.raises(UnauthorizedError):
        gateway.serve(method="GET", resource_id="2", token=validator.mint(1).value)
    assert repo.lookups == []


@pytest.mark.parametrize("resource_id", ["2", "3", "4", "99"])
def test_inactive_missing_or_escaping_resources_are_not_found(tmp_path: Path, resource_id: str) -> None:
    gateway, validator, _, _ = _gateway(tmp_path)

    with pytest.raises(NotFoundError):
        gateway.serve(method="GET", resource_id=resource_id, token=validator.mint(int(resource_id)).value)


@pytest.mark.parametrize(
    ("resource_id", "token", "message"),
    [
        (None, "t", "Missing required parameter: resourceId"),
        ("  ", "t", "Missing required parameter: resourceId"),
        ("abc", "t", "positive integer"),
        ("0", "t", "positive integer"),
        ("-3", "t", "positive integer"),
        ("1", None, "Missing required parameter: token"),
        ("1", "", "Missing required parameter: token"),
    ],
)
def test_bad_requests(tmp_path: Path, resource_id, token, message: str) -> None:
    gateway, _, _, _ = _gateway(tmp_path)

    with pytest.raises(BadRequestError, match=message):
        gateway.serve(method="GET", resource_id=resource_id, token=token)


@pytest.mark.parametrize("method", ["HEAD", "POST", "delete"])
def test_non_get_methods_are_rejected_first(tmp_path: Path, method: str) -> None:
    gateway, _, _, _ = _gateway(tmp_path)

    with pytest.raises(MethodNotAllowedError) as excinfo:
        gateway.serve(method=method, resource_id=None, token=None)
    assert excinfo.value.headers == {"Allow": "GET"}


def test_parse_resource_id() -> None:
    assert parse_resource_id("12") == 12
    assert parse_resource_id(" 7 ") == 7
    assert parse_resource_id(5) == 5
    assert parse_resource_id(True) is None
    assert parse_resource_id("1.5") is None
    assert parse_resource_id("\u00b2") is None
    assert parse_resource_id("\u0661\u0662") is None
    assert parse_resource_id("") is None
