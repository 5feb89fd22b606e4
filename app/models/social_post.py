"""
SocialPost model — the append-only post corpus.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class SocialPost(Base):
    """
    One ingested Instagram post.

    Rows are inserted once and never updated or deleted. The
    (user_id, external_post_id) constraint backs the store's
    de-duplication rule when two refreshes race.
    """

    __tablename__ = "social_posts"
    __table_args__ = (
        UniqueConstraint("user_id", "external_post_id", name="uq_social_posts_user_external"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    external_post_id: Mapped[str] = mapped_column(String(128), nullable=False)

    caption_text: Mapped[Optional[str]] = mapped_column(Text)
    media_url: Mapped[Optional[str]] = mapped_column(Text)
    permalink: Mapped[Optional[str]] = mapped_column(String(500))
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    media_kind: Mapped[str] = mapped_column(String(16), nullable=False, default="IMAGE")

    posted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<SocialPost(user_id={self.user_id}, external_post_id={self.external_post_id})>"
