"""
Bearer token resolution and permission checks.

Token issuance and signature verification belong to the auth provider; this
module only maps a presented token to caller claims.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from fastapi import Depends, Header, HTTPException

from backend.config import get_settings


@dataclass(frozen=True)
class CallerClaims:
    sub: str
    org_id: str
    permissions: frozenset[str] = field(default_factory=frozenset)

    def has_any(self, permissions: Iterable[str]) -> bool:
        return any(p in self.permissions for p in permissions)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Optional[CallerClaims]:
        ...


class StaticTokenVerifier:
    """Resolves tokens from a table of pre-issued claims."""

    def __init__(self, tokens: dict[str, dict]):
        self.tokens = {
            token: CallerClaims(
                sub=claims.get("sub", ""),
                org_id=claims["orgId"],
                permissions=frozenset(claims.get("permissions", [])),
            )
            for token, claims in tokens.items()
        }

    def verify(self, token: str) -> Optional[CallerClaims]:
        return self.tokens.get(token)


_verifier: TokenVerifier | None = None


def get_token_verifier() -> TokenVerifier:
    global _verifier
    if _verifier:
        return _verifier
    _verifier = StaticTokenVerifier(get_settings().api_tokens)
    return _verifier


def api_error(status_code: int, message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code, detail={"error": message, "code": code}
    )


def get_caller_claims(
    authorization: str | None = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> CallerClaims:
    if not authorization or not authorization.startswith("Bearer "):
        raise api_error(401, "Authentication required", "UNAUTHORIZED")
    claims = verifier.verify(authorization[len("Bearer "):])
    if claims is None:
        raise api_error(401, "Authentication required", "UNAUTHORIZED")
    return claims


def require_org_access(
    claims: CallerClaims, org_id: str, permissions: Iterable[str]
) -> None:
    if claims.org_id != org_id:
        raise api_error(403, "Unauthorized access to organization", "UNAUTHORIZED")
    if not claims.has_any(permissions):
        raise api_error(403, "Insufficient permissions", "FORBIDDEN")
