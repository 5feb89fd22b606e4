"""
Caption generation API routes.
"""

import base64
import binascii
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_caption_service, get_optional_user_id
from app.core.exceptions import UpstreamUnavailable
from app.schemas.captions import CaptionRequest, CaptionResult
from app.services.caption_service import CaptionService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/captions", tags=["captions"])


@router.post("", response_model=CaptionResult)
async def generate_caption(
    request: CaptionRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    captions: CaptionService = Depends(get_caption_service),
) -> CaptionResult:
    """
    Describe an image and suggest an Instagram caption.

    When the caller is authenticated the instruction is biased towards
    their style profile. Personalization problems never fail the request.
    """
    try:
        base64.b64decode(request.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="imageBase64 is not valid base64")

    try:
        return await captions.generate(
            request.image_base64,
            user_id=user_id,
            mime_type=request.mime_type,
        )
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=502, detail=e.message)
