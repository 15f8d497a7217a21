from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Callable

from pdfvault.core.config import DEFAULT_TOKEN_TTL_SECONDS
from pdfvault.domain.models.access_token import TOKEN_OK, AccessToken, TokenCheck

CLOCK_SKEW_SECONDS = 30
_NONCE_BYTES = 12


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TokenValidator:
    """Mints and checks resource-scoped capability tokens.

    A token is ``<issued_at>.<nonce>.<signature>``; the signature is an
    HMAC-SHA256 over the resource id, issue time and nonce, so a token minted
    for one resource never verifies for another.
    """

    def __init__(
        self,
        secret: bytes,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def mint(self, resource_id: int) -> AccessToken:
        if not _is_positive_id(resource_id):
            raise ValueError(f"Resource id must be a positive integer, got {resource_id!r}")
        issued_at = int(self._clock())
        nonce = _b64(secrets.token_bytes(_NONCE_BYTES))
        signature = self._sign(resource_id, issued_at, nonce)
        return AccessToken(resource_id=resource_id, issued_at=issued_at, value=f"{issued_at}.{nonce}.{signature}")

    def expires_at(self, token: AccessToken) -> int:
        return token.issued_at + self.ttl_seconds

    def validate(self, resource_id: int, token: str) -> TokenCheck:
        if not _is_positive_id(resource_id):
            return TokenCheck(ok=False, reason="bad_resource")
        if not isinstance(token, str) or not token:
            return TokenCheck(ok=False, reason="malformed")

        parts = token.split(".")
        if len(parts) != 3 or not all(parts):
            return TokenCheck(ok=False, reason="malformed")
        issued_raw, nonce, signature = parts
        if not (issued_raw.isascii() and issued_raw.isdigit()):
            return TokenCheck(ok=False, reason="malformed")
        issued_at = int(issued_raw)

        expected = self._sign(resource_id, issued_at, nonce)
        if not hmac.compare_digest(expected, signature):
            return TokenCheck(ok=False, reason="mismatch")

        age = self._clock() - issued_at
        if age < -CLOCK_SKEW_SECONDS or age > self.ttl_seconds:
            return TokenCheck(ok=False, reason="expired")
        return TOKEN_OK

    def _sign(self, resource_id: int, issued_at: int, nonce: str) -> str:
        message = f"{resource_id}.{issued_at}.{nonce}".encode("utf-8")
        return _b64(hmac.new(self._secret, message, hashlib.sha256).digest())


def _is_positive_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
