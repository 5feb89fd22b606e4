"""
Prompt Composer.

Folds a StyleProfile into the base captioning instruction. Output is a pure
function of its inputs.
"""

import math
from typing import Optional

from app.schemas.style import StyleProfile

MAX_MANUAL_HASHTAGS = 5
AUTO_HASHTAG_DIRECTIVE_MIN = 3

STYLE_BLOCK_HEADER = "Additionally, consider matching this user's Instagram style:"
STYLE_BLOCK_FOOTER = (
    "Create a caption that maintains their authentic voice while optimizing for engagement."
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for the non-negative averages shown to the model."""
    return int(math.floor(value + 0.5))


def hashtag_directive(profile: StyleProfile) -> list[str]:
    """
    Hashtag lines for the style block.

    A manual profile's hashtags_per_post is a decision, not a measurement:
    zero means no hashtags at all. For analyzed profiles the observed rate is
    reported, and a count is requested only for heavy hashtag users.
    """
    rate = profile.hashtags_per_post

    if profile.is_manual:
        if rate > 0:
            count = min(MAX_MANUAL_HASHTAGS, int(rate))
            return [f"- Include exactly {count} relevant hashtags."]
        return ["- Do not include any hashtags in the caption."]

    lines = [f"- Hashtags per post: {rate:.1f} on average"]
    if rate > AUTO_HASHTAG_DIRECTIVE_MIN:
        lines.append("- Include 3-5 relevant hashtags.")
    return lines


def compose(base_instruction: str, profile: Optional[StyleProfile]) -> str:
    """
    Merge a base instruction with a style profile.

    Args:
        base_instruction: Captioning instruction used when nothing is known
        profile: Effective style profile, or None

    Returns:
        The base instruction unchanged when there is no usable profile,
        otherwise the base instruction followed by a style block
    """
    if profile is None or not profile.caption_styles:
        return base_instruction

    lines = [
        STYLE_BLOCK_HEADER,
        f"- Caption Style: {', '.join(profile.caption_styles)}",
    ]
    if profile.common_themes:
        lines.append(f"- Common Themes: {', '.join(profile.common_themes)}")
    lines.append(f"- Preferred Length: {profile.caption_length_preference.value}")
    lines.append(f"- Emoji Usage: {profile.emoji_usage.value}")
    if profile.caption_tone:
        lines.append(f"- Tone: {', '.join(profile.caption_tone)}")

    lines.extend(hashtag_directive(profile))

    # Manual "no hashtags" must not be contradicted by a suggestion list
    if profile.recommended_hashtags and not (profile.is_manual and profile.hashtags_per_post <= 0):
        lines.append(f"- Popular Hashtags: {' '.join(profile.recommended_hashtags)}")

    insights = profile.engagement_insights
    if insights.total_posts > 0:
        lines.append(
            f"- The user typically gets around {round_half_up(insights.average_likes)} likes "
            f"and {round_half_up(insights.average_comments)} comments per post."
        )

    block = "\n".join(lines)
    return f"{base_instruction}\n\n{block}\n\n{STYLE_BLOCK_FOOTER}"
