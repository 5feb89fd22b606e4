"""
Services layer for caption personalization.
Contains the post corpus, ingestion, style analysis and captioning logic.
"""

from app.services.caption_service import CaptionService
from app.services.manual_style import ManualStyleService
from app.services.personalization import PersonalizationService
from app.services.post_store import (
    InMemoryPostCorpusStore,
    PostCorpusStore,
    SQLPostCorpusStore,
)
from app.services.social_accounts import SocialAccountService
from app.services.style_analyzer import StyleAnalyzer

__all__ = [
    "CaptionService",
    "ManualStyleService",
    "PersonalizationService",
    "InMemoryPostCorpusStore",
    "PostCorpusStore",
    "SQLPostCorpusStore",
    "SocialAccountService",
    "StyleAnalyzer",
]
