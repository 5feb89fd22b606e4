"""
Instagram account, ingestion and style profile API routes.
"""

import re

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.api.deps import (
    BackgroundIngestor,
    get_account_service,
    get_background_ingestor,
    get_current_user_id,
    get_ingestion_service,
    get_manual_style_service,
    get_personalization_service,
)
from app.core.exceptions import NotFound, UpstreamUnavailable, ValidationError
from app.core.observability import capture_exception
from app.schemas.instagram import (
    ActionResponse,
    ConnectByUsernameRequest,
    LinkedProfileResponse,
    RefreshResponse,
)
from app.schemas.style import ManualStyleDeclaration
from app.services.manual_style import ManualStyleService
from app.services.personalization import PersonalizationService
from app.services.post_ingestion import PostIngestionService
from app.services.social_accounts import SocialAccountService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/instagram", tags=["instagram"])

USERNAME_RE = re.compile(r"^[A-Za-z0-9._]{1,30}$")


@router.post("/connect-by-username", response_model=ActionResponse)
async def connect_by_username(
    request: ConnectByUsernameRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    accounts: SocialAccountService = Depends(get_account_service),
    ingestor: BackgroundIngestor = Depends(get_background_ingestor),
) -> ActionResponse:
    """
    Link a public Instagram username and scrape its posts in the background.

    Responds immediately; the scrape's only visible effect is that later
    style-profile and refresh-posts calls see a larger corpus.
    """
    username = request.username.strip().lstrip("@")
    if not USERNAME_RE.match(username):
        raise HTTPException(status_code=400, detail="Invalid Instagram username")

    await accounts.link_username(user_id, username)
    background_tasks.add_task(ingestor, user_id)

    logger.info("Username connect accepted", user_id=user_id, username=username)
    return ActionResponse(
        success=True,
        message=f"Connected to @{username}. Posts are being fetched in the background.",
    )


@router.post("/refresh-posts")
async def refresh_posts(
    user_id: str = Depends(get_current_user_id),
    ingestion: PostIngestionService = Depends(get_ingestion_service),
) -> dict:
    """
    Run one ingestion pass for the linked account.

    Zero retrievable posts is reported as a partial success, never an error.
    """
    try:
        result = await ingestion.refresh(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except UpstreamUnavailable as e:
        logger.warning("Refresh degraded to partial", user_id=user_id, error=e.message)
        capture_exception(e, {"user_id": user_id, "stage": "refresh_posts"})
        response = RefreshResponse(
            partial=True,
            message="Instagram is not reachable right now; showing previously fetched posts",
            posts=[],
        )
        return response.model_dump(by_alias=True, exclude_none=True)

    if result.fetched == 0:
        response = RefreshResponse(partial=True, message=result.summary(), posts=[])
    elif result.partial:
        response = RefreshResponse(partial=True, message=result.summary(), posts=result.fetched)
    else:
        response = RefreshResponse(posts=result.fetched)
    return response.model_dump(by_alias=True, exclude_none=True)


@router.get("/style-profile")
async def get_style_profile(
    user_id: str = Depends(get_current_user_id),
    personalization: PersonalizationService = Depends(get_personalization_service),
) -> dict:
    """Effective style profile: manual override if saved, else analyzed posts."""
    profile = await personalization.effective_profile(user_id)
    return profile.to_response()


@router.post("/manual-style")
async def save_manual_style(
    declaration: ManualStyleDeclaration,
    user_id: str = Depends(get_current_user_id),
    manual: ManualStyleService = Depends(get_manual_style_service),
) -> dict:
    """Save a declared style; it overrides analysis from now on."""
    try:
        profile = await manual.save(user_id, declaration)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return profile.to_response()


@router.get("/profile", response_model=LinkedProfileResponse)
async def get_linked_profile(
    user_id: str = Depends(get_current_user_id),
    accounts: SocialAccountService = Depends(get_account_service),
) -> LinkedProfileResponse:
    """Currently linked Instagram account."""
    try:
        link = await accounts.require_link(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)

    return LinkedProfileResponse(
        username=link.external_username,
        account_id=link.external_account_id,
        connected=link.connected,
        has_token=link.has_token,
    )


@router.post("/disconnect", response_model=ActionResponse)
async def disconnect(
    user_id: str = Depends(get_current_user_id),
    accounts: SocialAccountService = Depends(get_account_service),
) -> ActionResponse:
    """Unlink the account. Previously fetched posts are kept."""
    try:
        await accounts.disconnect(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return ActionResponse(success=True, message="Instagram account disconnected")
