from __future__ import annotations

from enum import Enum


class PdfVaultError(Exception):
    """Base error for all user-facing pdfvault exceptions."""


class ConfigurationError(PdfVaultError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(PdfVaultError):
    """Raised when .pdfvault metadata is missing."""


class ResourceIngestError(PdfVaultError):
    """Raised when a resource cannot be ingested."""


class ResourceNotFoundError(PdfVaultError):
    """Raised when an admin operation targets an unknown resource."""


class ServeError(PdfVaultError):
    """Terminal failure of one serve request, mapped 1:1 to an HTTP status."""

    status_code = 500

    def __init__(self, detail: str, headers: dict[str, str] | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.headers = dict(headers or {})


class BadRequestError(ServeError):
    status_code = 400


class UnauthorizedError(ServeError):
    status_code = 401


class NotFoundError(ServeError):
    status_code = 404


class MethodNotAllowedError(ServeError):
    status_code = 405


class RangeNotSatisfiableError(ServeError):
    status_code = 416


class ViewerError(PdfVaultError):
    """Base error for client-side viewer failures."""


class LoadErrorReason(str, Enum):
    MALFORMED = "malformed"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    RENDER = "render"
    INVALID_SOURCE = "invalid_source"

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    LoadErrorReason.MALFORMED: "The file is not a valid PDF or may be corrupted.",
    LoadErrorReason.NOT_FOUND: "PDF file not found. Please check if the file exists.",
    LoadErrorReason.NETWORK: "Network error. Please check your internet connection.",
    LoadErrorReason.RENDER: "Error rendering page. Please try again.",
    LoadErrorReason.INVALID_SOURCE: "Invalid PDF URL provided.",
}


class DecodeError(ViewerError):
    """Raised by the document decoder; `reason` classifies the failure."""

    def __init__(self, message: str, reason: LoadErrorReason = LoadErrorReason.MALFORMED) -> None:
        super().__init__(message)
        self.reason = reason


class NetworkError(ViewerError):
    """Raised when document bytes cannot be fetched."""

    def __init__(self, message: str, reason: LoadErrorReason = LoadErrorReason.NETWORK) -> None:
        super().__init__(message)
        self.reason = reason


class RenderCancelled(ViewerError):
    """Expected outcome of a superseded render; never shown to the user."""


class LoadError(ViewerError):
    """Terminal viewer failure, raised once retries are exhausted."""

    def __init__(self, reason: LoadErrorReason, detail: str | None = None) -> None:
        super().__init__(detail or reason.message)
        self.reason = reason
        self.detail = detail

    @property
    def user_message(self) -> str:
        return self.reason.message
