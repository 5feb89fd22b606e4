"""
Caption Service.

Generates an Instagram caption for an image, personalized with the
caller's style profile when one is available.
"""

import time
from typing import Optional

import structlog

from app.core.llm_clients import CaptioningClient
from app.schemas.captions import CaptionResult
from app.services.personalization import PersonalizationService

logger = structlog.get_logger(__name__)

BASE_CAPTION_INSTRUCTION = (
    "You are a professional Instagram content creator with expertise in art, "
    "architecture, history, and brand recognition. Analyze the image with particular "
    "attention to landmarks, historic places, artwork, and company logos. If any of "
    "these elements are present, incorporate them naturally into your caption to add "
    "context and value. For landmarks and historic places, include their significance. "
    "For artwork, reference the style or artist if recognizable. For logos, mention the "
    "brand if it adds value to the caption. Return the response as JSON with "
    "'description' and 'suggestedCaption' fields."
)


class CaptionService:
    """Composes the instruction and delegates to the captioning client."""

    def __init__(
        self,
        client: CaptioningClient,
        personalization: Optional[PersonalizationService] = None,
    ):
        self.client = client
        self.personalization = personalization

    async def generate(
        self,
        image_base64: str,
        user_id: Optional[str] = None,
        mime_type: str = "image/jpeg",
    ) -> CaptionResult:
        """
        Caption an image.

        Args:
            image_base64: Base64-encoded image bytes
            user_id: Caller id; personalization is skipped when absent
            mime_type: Image MIME type for the data URL

        Returns:
            CaptionResult with description, caption and whether the
            instruction was personalized

        Raises:
            UpstreamUnavailable: if the captioning model fails
        """
        start_time = time.time()

        instruction, personalized = BASE_CAPTION_INSTRUCTION, False
        if self.personalization is not None:
            instruction, personalized = await self.personalization.build_instruction(
                BASE_CAPTION_INSTRUCTION, user_id
            )

        response = await self.client.caption(image_base64, instruction, mime_type=mime_type)

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Caption generated",
            user_id=user_id,
            personalized=personalized,
            model=response.model,
            prompt_tokens=response.prompt_tokens,
            completion_tokens=response.completion_tokens,
            estimated_cost=response.estimated_cost,
            elapsed_ms=elapsed_ms,
        )

        return CaptionResult(
            description=response.description,
            suggested_caption=response.suggested_caption,
            personalized=personalized,
        )
