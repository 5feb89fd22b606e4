"""
Manual Style Override.

A user-declared StyleProfile that replaces automated analysis. Once saved it
wins over the post corpus for that user until the next save.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache
from app.core.exceptions import NotFound, ValidationError
from app.models.user_style_profile import UserStyleProfile
from app.schemas.style import (
    CaptionLength,
    EngagementInsights,
    ManualStyleDeclaration,
    StyleProfile,
    UsageLevel,
)
from app.services.style_analyzer import MAX_THEMES, derive_caption_styles

logger = structlog.get_logger(__name__)

MANUAL_HASHTAGS_PER_POST = 3.0


def _clean_list(values: list[str], field: str) -> list[str]:
    cleaned: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    if not cleaned:
        raise ValidationError(f"{field} must contain at least one entry", {"field": field})
    return cleaned


def _parse_enum(enum_cls, raw: str, field: str):
    try:
        return enum_cls(raw.strip())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {allowed}",
            {"field": field, "value": raw},
        )


def derive_manual_profile(declaration: ManualStyleDeclaration) -> StyleProfile:
    """
    Validate a declaration and derive the StyleProfile it stands for.

    Args:
        declaration: Preferences as submitted by the user

    Returns:
        StyleProfile with is_manual=True

    Raises:
        ValidationError: if an enum value is unknown or a list is empty
    """
    length = _parse_enum(CaptionLength, declaration.caption_length, "captionLength")
    emoji_usage = _parse_enum(UsageLevel, declaration.emoji_usage, "emojiUsage")
    tones = _clean_list(declaration.caption_tone, "captionTone")
    themes = _clean_list(declaration.themes, "themes")

    hashtags_per_post = MANUAL_HASHTAGS_PER_POST if declaration.use_hashtags else 0.0

    return StyleProfile(
        caption_styles=derive_caption_styles(
            length, emoji_usage, tones, hashtags_per_post, UsageLevel.LOW
        ),
        common_themes=themes[:MAX_THEMES],
        caption_length_preference=length,
        emoji_usage=emoji_usage,
        caption_tone=tones,
        mention_frequency=UsageLevel.LOW,
        hashtags_per_post=hashtags_per_post,
        recommended_hashtags=[],
        engagement_insights=EngagementInsights(),
        is_manual=True,
    )


class ManualStyleService:
    """Persists and loads manual style overrides."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(self, user_id: str, declaration: ManualStyleDeclaration) -> StyleProfile:
        """Validate, derive and store the override, replacing any earlier one."""
        profile = derive_manual_profile(declaration)

        row = await self.db.get(UserStyleProfile, user_id)
        payload = profile.model_dump(mode="json")
        if row is None:
            row = UserStyleProfile(user_id=user_id)
            self.db.add(row)
        row.profile = payload
        row.declaration = declaration.model_dump(mode="json")
        row.is_manual = True
        await self.db.commit()

        await cache.invalidate_style_profile(user_id)
        logger.info(
            "Manual style profile saved",
            user_id=user_id,
            length=profile.caption_length_preference.value,
            use_hashtags=declaration.use_hashtags,
        )
        return profile

    async def find(self, user_id: str) -> Optional[StyleProfile]:
        result = await self.db.execute(
            select(UserStyleProfile).where(
                UserStyleProfile.user_id == user_id,
                UserStyleProfile.is_manual.is_(True),
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return StyleProfile.model_validate(row.profile)

    async def load(self, user_id: str) -> StyleProfile:
        profile = await self.find(user_id)
        if profile is None:
            raise NotFound("No manual style profile saved", {"user_id": user_id})
        return profile
