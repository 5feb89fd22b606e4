"""
Manual style override tests.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFound, ValidationError
from app.schemas.style import CaptionLength, ManualStyleDeclaration, UsageLevel
from app.services.manual_style import ManualStyleService, derive_manual_profile


def _declaration(**overrides) -> ManualStyleDeclaration:
    values = dict(
        caption_length="Short",
        emoji_usage="High",
        caption_tone=["Humorous", "Friendly"],
        themes=["Travel", "Food"],
        use_hashtags=True,
    )
    values.update(overrides)
    return ManualStyleDeclaration(**values)


def test_derive_manual_profile():
    profile = derive_manual_profile(_declaration())

    assert profile.is_manual is True
    assert profile.caption_length_preference == CaptionLength.SHORT
    assert profile.emoji_usage == UsageLevel.HIGH
    assert profile.caption_tone == ["Humorous", "Friendly"]
    assert profile.common_themes == ["Travel", "Food"]
    assert profile.hashtags_per_post == 3.0
    assert profile.mention_frequency == UsageLevel.LOW
    assert profile.caption_styles == ["Concise", "Emoji-rich", "Humorous"]


def test_hashtags_off_sets_rate_to_zero():
    profile = derive_manual_profile(_declaration(use_hashtags=False))
    assert profile.hashtags_per_post == 0.0


def test_declaration_without_style_evidence_gets_fallback_styles():
    profile = derive_manual_profile(
        _declaration(caption_length="Medium", emoji_usage="Low", caption_tone=["Friendly"])
    )
    assert profile.caption_styles == ["Conversational", "Personal"]


def test_themes_truncated_to_three_and_cleaned():
    profile = derive_manual_profile(
        _declaration(themes=[" Travel ", "Food", "Travel", "Art", "Tech"])
    )
    assert profile.common_themes == ["Travel", "Food", "Art"]


def test_camel_case_payload_accepted():
    declaration = ManualStyleDeclaration.model_validate({
        "captionLength": "Long",
        "emojiUsage": "Moderate",
        "captionTone": ["Educational"],
        "themes": ["Tech"],
        "useHashtags": False,
    })
    profile = derive_manual_profile(declaration)
    assert profile.caption_styles == ["Detailed", "Informative"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"caption_length": "Huge"},
        {"caption_length": ""},
        {"caption_length": "short"},
        {"emoji_usage": "Lots"},
        {"caption_tone": []},
        {"caption_tone": ["   "]},
        {"themes": []},
    ],
)
def test_invalid_declarations_rejected(overrides):
    with pytest.raises(ValidationError):
        derive_manual_profile(_declaration(**overrides))


@pytest.mark.asyncio
async def test_save_then_load(test_db: AsyncSession):
    service = ManualStyleService(test_db)

    saved = await service.save("u1", _declaration())
    loaded = await service.load("u1")

    assert loaded == saved
    assert loaded.is_manual is True


@pytest.mark.asyncio
async def test_second_save_replaces_first(test_db: AsyncSession):
    service = ManualStyleService(test_db)

    await service.save("u1", _declaration())
    await service.save("u1", _declaration(caption_length="Long", use_hashtags=False))

    loaded = await service.load("u1")
    assert loaded.caption_length_preference == CaptionLength.LONG
    assert loaded.hashtags_per_post == 0.0


@pytest.mark.asyncio
async def test_load_missing_profile(test_db: AsyncSession):
    service = ManualStyleService(test_db)

    assert await service.find("nobody") is None
    with pytest.raises(NotFound):
        await service.load("nobody")


@pytest.mark.asyncio
async def test_invalid_declaration_not_persisted(test_db: AsyncSession):
    service = ManualStyleService(test_db)

    with pytest.raises(ValidationError):
        await service.save("u1", _declaration(themes=[]))
    assert await service.find("u1") is None
