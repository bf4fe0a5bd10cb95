"""Bearer-token authentication against an Auth0 tenant.

Auth0 users have no local ``User`` row: the request user is built from the
verified token, and its business role comes from the namespaced claim
named by ``AUTH0["ROLE_CLAIM"]``.

Rules:
- Any header that is not ``Bearer <token>`` is rejected (401).
- Tokens whose unverified ``iss`` is not the tenant are left to the next
  backend (SimpleJWT for local users).
- Tenant tokens are verified (RS256 by default) against the tenant's
  JWKS, with audience and issuer checks; failures are 401.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Optional

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from modules.core.constants import Role

logger = structlog.get_logger(__name__)


def _issuer() -> str:
    domain = settings.AUTH0["DOMAIN"]
    return f"https://{domain}/" if domain else ""


def auth0_enabled() -> bool:
    return bool(settings.AUTH0["DOMAIN"] and settings.AUTH0["AUDIENCE"])


@lru_cache(maxsize=1)
def _jwks_client(issuer: str) -> PyJWKClient:
    return PyJWKClient(
        f"{issuer}.well-known/jwks.json",
        cache_jwk_set=True,
        lifespan=settings.AUTH0["JWKS_CACHE_SECONDS"],
    )


def role_from_claim(value) -> str:
    """First known business role in the claim (a string or a list of roles)."""
    candidates: Iterable = [value] if isinstance(value, str) else (value or [])
    for candidate in candidates:
        if candidate in Role.values:
            return candidate
    return ""


class Auth0User:
    """Request user for calls authenticated with a tenant token."""

    is_authenticated = True
    is_active = True

    def __init__(self, payload: dict) -> None:
        self.payload = payload
        self.sub: str = payload.get("sub", "")
        self.role: str = role_from_claim(payload.get(settings.AUTH0["ROLE_CLAIM"]))

    @property
    def pk(self) -> str:
        return self.sub

    def __str__(self) -> str:
        return self.sub


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self.extract_token(header)
        if not auth0_enabled() or self.unverified_issuer(token) != _issuer():
            return None

        user = Auth0User(self.verify(token))
        logger.info("auth.token_authenticated", sub=user.sub, role=user.role)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    def extract_token(self, header: str) -> str:
        scheme, _, token = header.partition(" ")
        token = token.strip()
        if scheme.lower() != self.keyword.lower() or not token or " " in token:
            raise AuthenticationFailed("Invalid Authorization header format.")
        return token

    @staticmethod
    def unverified_issuer(token: str) -> Optional[str]:
        try:
            claims = pyjwt.decode(token, options={"verify_signature": False})
        except PyJWTError:
            return None
        return claims.get("iss")

    @staticmethod
    def verify(token: str) -> dict:
        issuer = _issuer()
        try:
            signing_key = _jwks_client(issuer).get_signing_key_from_jwt(token)
            return pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[settings.AUTH0["ALGORITHM"]],
                audience=settings.AUTH0["AUDIENCE"],
                issuer=issuer,
            )
        except PyJWTError as exc:
            logger.warning("auth.token_rejected", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
