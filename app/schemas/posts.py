"""
Post records shared by the corpus store and the ingestion connectors.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    """Media type of an ingested post."""
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class PostRecord(BaseModel):
    """
    One ingested social post.

    Created once by a connector and never mutated. `id` and `created_at`
    are assigned by the store on insert.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    user_id: str
    external_post_id: str = Field(..., min_length=1)
    caption_text: Optional[str] = None
    media_url: Optional[str] = None
    permalink: Optional[str] = None
    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    media_kind: MediaKind = MediaKind.IMAGE
    posted_at: datetime

    id: Optional[int] = None
    created_at: Optional[datetime] = None
