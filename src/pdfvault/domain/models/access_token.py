from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AccessToken:
    resource_id: int
    issued_at: int
    value: str


@dataclass(frozen=True, slots=True)
class TokenCheck:
    ok: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


TOKEN_OK = TokenCheck(ok=True)
