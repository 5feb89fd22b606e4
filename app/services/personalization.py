"""
Personalization Service.

Resolves a user's effective StyleProfile through the precedence chain
manual override -> analyzed corpus -> defaults, and turns it into a
captioning instruction.
"""

from typing import Optional

import structlog

from app.core.cache import cache
from app.core.observability import capture_exception
from app.schemas.style import StyleProfile
from app.services.manual_style import ManualStyleService
from app.services.prompt_composer import compose
from app.services.style_analyzer import StyleAnalyzer

logger = structlog.get_logger(__name__)


class PersonalizationService:
    """Chooses between the manual override and corpus analysis."""

    def __init__(self, manual: ManualStyleService, analyzer: StyleAnalyzer):
        self.manual = manual
        self.analyzer = analyzer

    async def _analyzed(self, user_id: str, allow_refresh: bool) -> StyleProfile:
        cached = await cache.get_style_profile(user_id)
        if cached:
            return StyleProfile.model_validate(cached)

        profile = await self.analyzer.analyze(user_id, allow_refresh=allow_refresh)
        # Defaults are not cached so a later ingestion shows up immediately
        if profile.engagement_insights.total_posts > 0:
            await cache.set_style_profile(user_id, profile.model_dump(mode="json"))
        return profile

    async def effective_profile(self, user_id: str) -> StyleProfile:
        """
        Profile served by GET /style-profile.

        A saved manual profile always wins, regardless of corpus size.
        Otherwise the corpus is analyzed, refreshing once if it is empty.
        """
        manual = await self.manual.find(user_id)
        if manual is not None:
            return manual
        return await self._analyzed(user_id, allow_refresh=True)

    async def caption_profile(self, user_id: str) -> Optional[StyleProfile]:
        """
        Profile used to personalize a caption request.

        Never triggers a scrape; returns None when nothing is known about
        the user, so the base instruction is used unchanged.
        """
        manual = await self.manual.find(user_id)
        if manual is not None:
            return manual

        profile = await self._analyzed(user_id, allow_refresh=False)
        if profile.engagement_insights.total_posts == 0:
            return None
        return profile

    async def build_instruction(self, base_instruction: str, user_id: Optional[str]) -> tuple[str, bool]:
        """
        Compose the captioning instruction for a request.

        Returns:
            (instruction, personalized). Any failure while resolving the
            profile falls back to the base instruction.
        """
        if not user_id:
            return base_instruction, False

        try:
            profile = await self.caption_profile(user_id)
        except Exception as e:
            logger.warning("Style personalization failed, using base instruction", user_id=user_id, error=str(e))
            capture_exception(e, {"user_id": user_id, "stage": "personalization"})
            return base_instruction, False

        instruction = compose(base_instruction, profile)
        return instruction, instruction != base_instruction
