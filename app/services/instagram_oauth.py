"""
Instagram OAuth helpers.

The `state` parameter is a short-lived JWT carrying the user id, so the
callback can be attributed without a server-side session.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
import structlog
from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import OAuthStateError, UpstreamUnavailable

logger = structlog.get_logger(__name__)

STATE_PURPOSE = "instagram_oauth"
OAUTH_SCOPE = "user_profile,user_media"


def create_state(user_id: str) -> str:
    expires = datetime.now(timezone.utc) + timedelta(seconds=settings.oauth_state_ttl_seconds)
    claims = {"sub": user_id, "purpose": STATE_PURPOSE, "exp": expires}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_state(state: Optional[str]) -> str:
    """
    Validate an OAuth state and return the user id it was issued for.

    Raises:
        OAuthStateError: if the state is missing, forged or expired
    """
    if not state:
        raise OAuthStateError("Missing OAuth state")
    try:
        payload = jwt.decode(state, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise OAuthStateError("Invalid or expired OAuth state") from e

    user_id = payload.get("sub")
    if payload.get("purpose") != STATE_PURPOSE or not user_id:
        raise OAuthStateError("Invalid OAuth state")
    return user_id


def build_authorization_url(user_id: str) -> str:
    """Instagram authorize URL for the given user."""
    query = urlencode(
        {
            "client_id": settings.instagram_app_id,
            "redirect_uri": settings.instagram_redirect_uri,
            "scope": OAUTH_SCOPE,
            "response_type": "code",
            "state": create_state(user_id),
        }
    )
    return f"{settings.instagram_oauth_base_url}/oauth/authorize?{query}"


class InstagramOAuthClient:
    """Exchanges authorization codes for access tokens."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """
        Exchange an authorization code for a short-lived access token.

        Returns:
            {"access_token": ..., "user_id": ...}

        Raises:
            UpstreamUnavailable: if Instagram rejects the exchange
        """
        try:
            async with httpx.AsyncClient(
                base_url=settings.instagram_oauth_base_url,
                timeout=settings.instagram_http_timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    "/oauth/access_token",
                    data={
                        "client_id": settings.instagram_app_id,
                        "client_secret": settings.instagram_app_secret,
                        "grant_type": "authorization_code",
                        "redirect_uri": settings.instagram_redirect_uri,
                        "code": code,
                    },
                )
                response.raise_for_status()
                data = response.json()
            if not data.get("access_token"):
                raise ValueError("response has no access_token")
            return data
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Instagram code exchange failed", error=str(e))
            raise UpstreamUnavailable("Failed to exchange Instagram authorization code") from e
