"""
Style Analyzer.

Turns a user's post corpus into a StyleProfile with cheap, explainable
heuristics: mean caption length, emoji and mention density, hashtag
frequency, and keyword scoring for themes and tones.
"""

import asyncio
import re
from collections import Counter
from typing import Awaitable, Callable, Iterable, Optional

import structlog

from app.core.config import settings
from app.core.exceptions import NotFound
from app.core.observability import capture_exception
from app.schemas.posts import PostRecord
from app.schemas.style import CaptionLength, EngagementInsights, StyleProfile, UsageLevel
from app.services.post_store import PostCorpusStore
from app.services.style_keywords import (
    DEFAULT_THEMES,
    DEFAULT_TONES,
    FALLBACK_CAPTION_STYLES,
    THEME_KEYWORDS,
    TONE_KEYWORDS,
)

logger = structlog.get_logger(__name__)


HASHTAG_RE = re.compile(r"#[A-Za-z0-9_]+")
MENTION_RE = re.compile(r"@[A-Za-z0-9._]+")

# One match per pictographic glyph. Variation selectors and ZWJ are not in
# the class, so a ZWJ sequence counts once per visible component.
EMOJI_RE = re.compile(
    "["
    "\U0001F004\U0001F0CF"   # mahjong tile, playing card
    "\U0001F170-\U0001F251"  # enclosed alphanumerics and ideographs, flags
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F680-\U0001F6FF"  # transport & map
    "\U0001F7E0-\U0001F7EB"  # colored circles and squares
    "\U0001F900-\U0001F9FF"  # supplemental symbols & pictographs
    "\U0001FA70-\U0001FAFF"  # symbols & pictographs extended-A
    "☀-⛿"          # miscellaneous symbols
    "✀-➿"          # dingbats
    "⭐⭕⌚⌛⏩-⏳"
    "]"
)

SHORT_CAPTION_MAX = 50
LONG_CAPTION_MIN = 150
EMOJI_LOW_MAX = 1
EMOJI_HIGH_MIN = 3
MENTION_LOW_MAX = 0.5
MENTION_HIGH_MIN = 2
HASHTAG_HEAVY_MIN = 5

MAX_CAPTION_STYLES = 4
MIN_CAPTION_STYLES = 2
MAX_THEMES = 3
MAX_TONES = 3
MAX_RECOMMENDED_HASHTAGS = 10


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------

def classify_caption_length(mean_length: float) -> CaptionLength:
    if mean_length < SHORT_CAPTION_MAX:
        return CaptionLength.SHORT
    if mean_length > LONG_CAPTION_MIN:
        return CaptionLength.LONG
    return CaptionLength.MEDIUM


def classify_emoji_usage(mean_emojis: float) -> UsageLevel:
    if mean_emojis < EMOJI_LOW_MAX:
        return UsageLevel.LOW
    if mean_emojis > EMOJI_HIGH_MIN:
        return UsageLevel.HIGH
    return UsageLevel.MODERATE


def classify_mention_frequency(mean_mentions: float) -> UsageLevel:
    if mean_mentions < MENTION_LOW_MAX:
        return UsageLevel.LOW
    if mean_mentions > MENTION_HIGH_MIN:
        return UsageLevel.HIGH
    return UsageLevel.MODERATE


# ------------------------------------------------------------------
# Extraction helpers
# ------------------------------------------------------------------

def count_emojis(text: str) -> int:
    return len(EMOJI_RE.findall(text))


def extract_hashtags(text: str) -> list[str]:
    return HASHTAG_RE.findall(text)


def extract_mentions(text: str) -> list[str]:
    return MENTION_RE.findall(text)


def rank_hashtags(captions: Iterable[str]) -> Counter:
    """
    Hashtag frequency table.

    Counter keeps first-seen insertion order, which is the tie-break used
    by recommended_hashtags.
    """
    table: Counter = Counter()
    for caption in captions:
        table.update(extract_hashtags(caption))
    return table


def score_keywords(
    captions: Iterable[str],
    table: dict[str, tuple[str, ...]],
    limit: int,
) -> list[str]:
    """
    Score every label of a keyword table against the captions.

    Each occurrence of each keyword adds one point. Labels with a zero score
    are dropped; ties keep table order.
    """
    scores = {label: 0 for label in table}
    for caption in captions:
        lowered = caption.lower()
        for label, keywords in table.items():
            scores[label] += sum(lowered.count(keyword) for keyword in keywords)

    ranked = sorted(
        (label for label, score in scores.items() if score > 0),
        key=lambda label: -scores[label],
    )
    return ranked[:limit]


def derive_caption_styles(
    length: CaptionLength,
    emoji_usage: UsageLevel,
    tones: list[str],
    hashtags_per_post: float,
    mention_frequency: UsageLevel,
) -> list[str]:
    """
    Rule-based caption style tags, in fixed precedence order.

    Shared by analyzed and manually declared profiles. Always returns
    between two and four tags.
    """
    rules = [
        (length == CaptionLength.LONG, "Detailed"),
        (length == CaptionLength.SHORT, "Concise"),
        (emoji_usage == UsageLevel.HIGH, "Emoji-rich"),
        ("Humorous" in tones, "Humorous"),
        ("Inspirational" in tones, "Inspirational"),
        ("Educational" in tones, "Informative"),
        (hashtags_per_post > HASHTAG_HEAVY_MIN, "Hashtag-heavy"),
        (mention_frequency == UsageLevel.HIGH, "Community-focused"),
    ]

    styles: list[str] = []
    for condition, tag in rules:
        if len(styles) >= MAX_CAPTION_STYLES:
            break
        if condition:
            styles.append(tag)

    for fallback in FALLBACK_CAPTION_STYLES:
        if len(styles) >= MIN_CAPTION_STYLES:
            break
        if fallback not in styles:
            styles.append(fallback)

    return styles[:MAX_CAPTION_STYLES]


def default_style_profile() -> StyleProfile:
    """Profile returned when a user has no posts at all."""
    return StyleProfile(
        caption_styles=["Informative", "Conversational"],
        common_themes=["Photography", "Daily Life"],
        caption_length_preference=CaptionLength.MEDIUM,
        emoji_usage=UsageLevel.MODERATE,
        caption_tone=["Friendly", "Casual"],
        mention_frequency=UsageLevel.LOW,
        hashtags_per_post=0.0,
        recommended_hashtags=[],
        engagement_insights=EngagementInsights(
            average_likes=0.0,
            average_comments=0.0,
            total_posts=0,
        ),
        is_manual=False,
    )


def analyze_posts(posts: list[PostRecord]) -> StyleProfile:
    """
    Build a StyleProfile from a non-empty list of posts.

    Pure and deterministic: the same posts always produce the same profile.
    """
    if not posts:
        return default_style_profile()

    total = len(posts)
    captions = [p.caption_text for p in posts if p.caption_text]

    # Missing captions count as length 0 but still count as posts
    mean_length = sum(len(c) for c in captions) / total
    mean_emojis = sum(count_emojis(c) for c in captions) / total
    mean_mentions = sum(len(extract_mentions(c)) for c in captions) / total

    hashtag_table = rank_hashtags(captions)
    hashtags_per_post = sum(hashtag_table.values()) / total
    recommended = [
        tag for tag, _ in sorted(hashtag_table.items(), key=lambda item: -item[1])
    ][:MAX_RECOMMENDED_HASHTAGS]

    length = classify_caption_length(mean_length)
    emoji_usage = classify_emoji_usage(mean_emojis)
    mention_frequency = classify_mention_frequency(mean_mentions)

    themes = score_keywords(captions, THEME_KEYWORDS, MAX_THEMES) or list(DEFAULT_THEMES)
    tones = score_keywords(captions, TONE_KEYWORDS, MAX_TONES) or list(DEFAULT_TONES)

    engagement = EngagementInsights(
        average_likes=sum(p.like_count for p in posts) / total,
        average_comments=sum(p.comment_count for p in posts) / total,
        total_posts=total,
    )

    return StyleProfile(
        caption_styles=derive_caption_styles(
            length, emoji_usage, tones, hashtags_per_post, mention_frequency
        ),
        common_themes=themes,
        caption_length_preference=length,
        emoji_usage=emoji_usage,
        caption_tone=tones,
        mention_frequency=mention_frequency,
        hashtags_per_post=hashtags_per_post,
        recommended_hashtags=recommended,
        engagement_insights=engagement,
        is_manual=False,
    )


# ------------------------------------------------------------------
# Service
# ------------------------------------------------------------------

Refresher = Callable[[str], Awaitable[object]]


class StyleAnalyzer:
    """
    Analyzes a user's stored posts.

    When the corpus is empty, one ingestion refresh is attempted through
    the injected refresher, bounded by a timeout. Any refresh failure
    degrades to the default profile.
    """

    def __init__(
        self,
        store: PostCorpusStore,
        refresher: Optional[Refresher] = None,
        refresh_timeout: Optional[float] = None,
    ):
        self.store = store
        self.refresher = refresher
        self.refresh_timeout = (
            refresh_timeout
            if refresh_timeout is not None
            else settings.analyzer_refresh_timeout_seconds
        )

    async def analyze(self, user_id: str, allow_refresh: bool = True) -> StyleProfile:
        posts = await self.store.list_by_user(user_id)

        if not posts and allow_refresh and self.refresher is not None:
            await self._refresh_once(user_id)
            posts = await self.store.list_by_user(user_id)

        if not posts:
            logger.info("No posts to analyze, using default style profile", user_id=user_id)
            return default_style_profile()

        profile = analyze_posts(posts)
        logger.info(
            "Style profile analyzed",
            user_id=user_id,
            posts=len(posts),
            length=profile.caption_length_preference.value,
            themes=profile.common_themes,
        )
        return profile

    async def _refresh_once(self, user_id: str) -> None:
        try:
            await asyncio.wait_for(self.refresher(user_id), timeout=self.refresh_timeout)
        except NotFound:
            logger.debug("No linked account to refresh from", user_id=user_id)
        except asyncio.TimeoutError:
            logger.warning(
                "Ingestion refresh timed out during analysis",
                user_id=user_id,
                timeout=self.refresh_timeout,
            )
        except Exception as e:
            logger.warning("Ingestion refresh failed during analysis", user_id=user_id, error=str(e))
            capture_exception(e, {"user_id": user_id, "stage": "analyzer_refresh"})
