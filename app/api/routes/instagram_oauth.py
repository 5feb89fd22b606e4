"""
Instagram OAuth connect flow.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import (
    get_account_service,
    get_current_user_id,
    get_graph_connector,
    get_ingestion_service,
    get_oauth_client,
)
from app.core.exceptions import OAuthStateError, UpstreamUnavailable
from app.schemas.instagram import AuthorizationUrlResponse
from app.services.instagram_oauth import (
    InstagramOAuthClient,
    build_authorization_url,
    decode_state,
)
from app.services.post_ingestion import GraphAPIConnector, PostIngestionService
from app.services.social_accounts import SocialAccountService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth/instagram", tags=["instagram-auth"])


@router.get("", response_model=AuthorizationUrlResponse)
async def start_instagram_oauth(
    user_id: str = Depends(get_current_user_id),
) -> AuthorizationUrlResponse:
    """Authorize URL to send the user to; the state expires after a few minutes."""
    return AuthorizationUrlResponse(authorization_url=build_authorization_url(user_id))


@router.get("/callback")
async def instagram_oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    oauth: InstagramOAuthClient = Depends(get_oauth_client),
    graph: GraphAPIConnector = Depends(get_graph_connector),
    accounts: SocialAccountService = Depends(get_account_service),
    ingestion: PostIngestionService = Depends(get_ingestion_service),
) -> dict:
    """
    Finish the OAuth flow: exchange the code, link the account, fetch posts.

    Unlike refresh-posts, an upstream failure here fails the request (502).
    """
    if error:
        raise HTTPException(status_code=400, detail=f"Instagram authorization denied: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    try:
        user_id = decode_state(state)
    except OAuthStateError as e:
        raise HTTPException(status_code=400, detail=e.message)

    try:
        token = await oauth.exchange_code(code)
        access_token = token["access_token"]
        profile = await graph.fetch_profile(access_token)
        expires_in = token.get("expires_in")
        expires_at = (
            datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
            if expires_in
            else None
        )
        link = await accounts.link_oauth(
            user_id,
            account_id=profile["id"],
            username=profile["username"],
            access_token=access_token,
            token_expires_at=expires_at,
        )
        result = await ingestion.ingest_link(user_id, link)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=502, detail=e.message)

    logger.info(
        "Instagram OAuth connect complete",
        user_id=user_id,
        username=profile["username"],
        posts=result.fetched,
    )
    return {
        "success": True,
        "username": profile["username"],
        "posts": result.fetched,
    }
