"""
User authentication for the NoteQ API.

Verifies Google OAuth bearer tokens and resolves the identity to an internal
user row. With NOTEQ_DEV_AUTH_BYPASS=true, requests without a token run as
a local development identity instead.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from cachetools import TTLCache
from fastapi import Depends, Request, status

from noteq.api.errors import NoteqError, Unauthorized
from noteq.infrastructure import settings
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter
from noteq.storage import UserRepository

logger = get_logger(__name__)

GOOGLE_TOKEN_INFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

# Shorter than Google's 1 hour token lifetime so revoked tokens age out
_CACHE_MAX_SIZE = 1000
_CACHE_TTL_SECONDS = 600

DEV_BYPASS_PROVIDER = "dev-bypass"
GOOGLE_PROVIDER = "google"


class AuthServiceUnavailable(NoteqError):
    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE


@dataclass
class AuthenticatedUser:
    """Identity presented by the caller (before it is mapped to a users row)."""

    email: str
    name: str | None = None
    picture: str | None = None
    provider: str = GOOGLE_PROVIDER

    def __str__(self) -> str:
        return f"User({self.email}, via {self.provider})"


_token_cache: TTLCache[str, AuthenticatedUser] = TTLCache(
    maxsize=_CACHE_MAX_SIZE, ttl=_CACHE_TTL_SECONDS
)


async def verify_google_token(token: str) -> AuthenticatedUser:
    """
    Verify a Google OAuth access token and return the caller's identity.

    Raises:
        Unauthorized: If the token is invalid, expired or for another client
        AuthServiceUnavailable: If Google can't be reached
    """
    if token in _token_cache:
        return _token_cache[token]

    async with httpx.AsyncClient() as client:
        try:
            token_response = await client.get(
                GOOGLE_TOKEN_INFO_URL,
                params={"access_token": token},
                timeout=10.0,
            )
        except httpx.TimeoutException:
            logger.warning("Token validation timed out")
            raise AuthServiceUnavailable("Authentication service unavailable") from None
        except httpx.RequestError as e:
            logger.error("Token validation request failed: %s", e)
            raise AuthServiceUnavailable("Authentication service unavailable") from e

        if token_response.status_code != 200:
            counter("auth.invalid_token")
            logger.warning("Invalid token (status=%d)", token_response.status_code)
            raise Unauthorized("Invalid or expired token")

        token_info = token_response.json()

        expected_client_id = settings.GOOGLE_OAUTH_CLIENT_ID
        if not expected_client_id and settings.is_production():
            logger.error("GOOGLE_OAUTH_CLIENT_ID not configured in production")
            raise NoteqError("Server misconfiguration: OAuth client ID not set")

        if expected_client_id:
            aud = token_info.get("aud", "")
            if aud != expected_client_id:
                logger.warning("Token audience mismatch: expected=%s, got=%s", expected_client_id, aud)
                raise Unauthorized("Token not issued for this application")
        else:
            logger.warning("GOOGLE_OAUTH_CLIENT_ID not set - skipping audience validation")

        try:
            userinfo_response = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {token}"},
                timeout=10.0,
            )
        except (httpx.TimeoutException, httpx.RequestError) as e:
            logger.error("Failed to get user info: %s", e)
            raise AuthServiceUnavailable("Failed to retrieve user information") from e

        if userinfo_response.status_code != 200:
            raise Unauthorized("Failed to retrieve user information")

        userinfo = userinfo_response.json()
        email = userinfo.get("email") or token_info.get("email")
        if not email:
            raise Unauthorized("Token has no email scope")

        user = AuthenticatedUser(
            email=email,
            name=userinfo.get("name"),
            picture=userinfo.get("picture"),
        )

        _token_cache[token] = user
        logger.info("Authenticated user: %s (cache size: %d)", user, len(_token_cache))
        return user


def _extract_bearer_token(authorization: str | None) -> str:
    """Extract token from Authorization header."""
    if not authorization:
        raise Unauthorized("Unauthorized", "Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized("Unauthorized", "Expected: Bearer <token>")

    return parts[1]


def _dev_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        email=settings.DEV_AUTH_EMAIL,
        name="Local Dev User",
        provider=DEV_BYPASS_PROVIDER,
    )


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    FastAPI dependency returning the caller's identity.

    A bearer token is always verified when present. Without one, the
    development identity is used if NOTEQ_DEV_AUTH_BYPASS is on; otherwise
    the request is rejected with 401.
    """
    authorization = request.headers.get("Authorization")
    if not authorization and settings.DEV_AUTH_BYPASS:
        return _dev_user()

    token = _extract_bearer_token(authorization)
    return await verify_google_token(token)


def get_current_user_id(user: AuthenticatedUser = Depends(get_current_user)) -> str:
    """
    FastAPI dependency returning the internal user id.

    Side Effects:
        - Upserts the users row (profile fields and last sign-in time)
    """
    record = UserRepository.upsert(
        email=user.email,
        name=user.name,
        image_url=user.picture,
        provider=user.provider,
    )
    return record.id


def clear_token_cache() -> None:
    """Clear the token cache. Useful for testing."""
    _token_cache.clear()
