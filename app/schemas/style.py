"""
Style profile schemas.

A StyleProfile is either analyzed from a user's post corpus or declared
manually; `is_manual` tells the prompt composer which one it is looking at.
JSON uses camelCase keys (captionStyles, hashtagsPerPost, ...).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ============================================================================
# Enums
# ============================================================================

class CaptionLength(str, Enum):
    """Caption length class."""
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"


class UsageLevel(str, Enum):
    """Three-step usage class for emojis and mentions."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


# ============================================================================
# Profile
# ============================================================================

class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EngagementInsights(CamelModel):
    """Average engagement across the analyzed posts."""
    average_likes: float = 0.0
    average_comments: float = 0.0
    total_posts: int = 0


class StyleProfile(CamelModel):
    """Structured summary of a user's captioning habits."""

    caption_styles: list[str] = Field(default_factory=list, max_length=4)
    common_themes: list[str] = Field(default_factory=list, max_length=3)
    caption_length_preference: CaptionLength = CaptionLength.MEDIUM
    emoji_usage: UsageLevel = UsageLevel.MODERATE
    caption_tone: list[str] = Field(default_factory=list)
    mention_frequency: UsageLevel = UsageLevel.LOW
    hashtags_per_post: float = Field(default=0.0, ge=0)
    recommended_hashtags: list[str] = Field(default_factory=list, max_length=10)
    engagement_insights: EngagementInsights = Field(default_factory=EngagementInsights)
    is_manual: bool = False

    def to_response(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ManualStyleDeclaration(CamelModel):
    """
    User-declared style preferences, as posted to /instagram/manual-style.

    Field types are deliberately loose; ManualStyleService performs the
    domain validation and raises ValidationError with a readable message.
    """

    caption_length: str = ""
    emoji_usage: str = ""
    caption_tone: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=list)
    use_hashtags: bool = True

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "captionLength": "Medium",
                "emojiUsage": "Moderate",
                "captionTone": ["Friendly", "Casual"],
                "themes": ["Photography", "Lifestyle"],
                "useHashtags": True,
            }
        },
    )
