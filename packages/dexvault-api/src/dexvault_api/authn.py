"""Bearer token verification.

Every endpoint requires a JWT signed with the gateway secret. The token is
read from the ``Authorization: Bearer`` header, falling back to a ``jwt``
cookie. Verification only establishes who is calling; what the caller may do
is decided later from the signed claims (see claims.py and dispatcher.py).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

import jwt
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dexvault_core.exceptions import PermissionDeniedError

_logger = logging.getLogger("dexvault.api.authn")

bearer_scheme = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "jwt"


@dataclass(frozen=True)
class AuthenticatedRequest:
    """An inbound call plus its verified identity and claim set."""

    user: str
    claims: Mapping[str, Any] = field(repr=False)


class TokenVerifier:
    """Verifies HMAC/RSA signed JWTs and extracts the calling user."""

    def __init__(
        self,
        secret: str,
        algorithms: List[str],
        user_claim: str = "user",
        leeway_seconds: float = 0.0,
    ) -> None:
        if not algorithms:
            raise ValueError("At least one JWT algorithm is required")
        self._secret = secret
        self._algorithms = list(algorithms)
        self._user_claim = user_claim
        self._leeway = leeway_seconds

    def verify(self, token: str) -> AuthenticatedRequest:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                leeway=self._leeway,
            )
        except jwt.InvalidTokenError as e:
            _logger.warning("Token rejected: %s", type(e).__name__)
            raise PermissionDeniedError(f"Invalid token: {e}") from e

        user = claims.get(self._user_claim)
        if not isinstance(user, str):
            user = ""
        return AuthenticatedRequest(user=user, claims=claims)


def get_verifier() -> TokenVerifier:
    raise NotImplementedError("Dependency override required")


async def optional_authenticated_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    verifier: TokenVerifier = Depends(get_verifier),
) -> Optional[AuthenticatedRequest]:
    """
    Verify the token if one is present.

    Returns None when no token was sent; raises PermissionDeniedError when a
    token was sent but does not verify.
    """
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        return None

    auth = verifier.verify(token)
    request.state.user = auth.user
    return auth


async def require_authenticated_request(
    auth: Optional[AuthenticatedRequest] = Depends(optional_authenticated_request),
) -> AuthenticatedRequest:
    """Dependency that requires a verified token."""
    if auth is None:
        raise PermissionDeniedError("Authentication required")
    return auth
