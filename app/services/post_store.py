"""
Post Corpus Store.

Append-only storage of ingested posts, de-duplicated per user by the
external post identifier. Two implementations share one interface:
SQLPostCorpusStore for the service and InMemoryPostCorpusStore for tests
and tooling.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from itertools import count

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.social_post import SocialPost
from app.schemas.posts import MediaKind, PostRecord

logger = structlog.get_logger(__name__)


class PostCorpusStore(ABC):
    """Interface of the post corpus."""

    @abstractmethod
    async def append(self, user_id: str, post: PostRecord) -> bool:
        """
        Insert a post for a user.

        Returns True if the post was inserted, False if a post with the
        same external_post_id already exists for that user. Never raises
        for duplicates.
        """

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[PostRecord]:
        """All posts for a user, newest first by posted_at."""

    async def append_many(self, user_id: str, posts: list[PostRecord]) -> int:
        """Append several posts; returns how many were new."""
        added = 0
        for post in posts:
            if await self.append(user_id, post):
                added += 1
        return added


class InMemoryPostCorpusStore(PostCorpusStore):
    """Process-local store keyed by user id."""

    def __init__(self):
        self._posts: dict[str, dict[str, PostRecord]] = {}
        self._ids = count(1)

    async def append(self, user_id: str, post: PostRecord) -> bool:
        user_posts = self._posts.setdefault(user_id, {})
        if post.external_post_id in user_posts:
            return False

        user_posts[post.external_post_id] = post.model_copy(
            update={
                "user_id": user_id,
                "id": next(self._ids),
                "created_at": datetime.now(timezone.utc),
            }
        )
        return True

    async def list_by_user(self, user_id: str) -> list[PostRecord]:
        posts = list(self._posts.get(user_id, {}).values())
        return sorted(posts, key=lambda p: p.posted_at, reverse=True)


class SQLPostCorpusStore(PostCorpusStore):
    """Store backed by the social_posts table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _exists(self, user_id: str, external_post_id: str) -> bool:
        stmt = select(SocialPost.id).where(
            SocialPost.user_id == user_id,
            SocialPost.external_post_id == external_post_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def append(self, user_id: str, post: PostRecord) -> bool:
        if await self._exists(user_id, post.external_post_id):
            logger.debug(
                "Post already in corpus, skipping",
                user_id=user_id,
                external_post_id=post.external_post_id,
            )
            return False

        self.db.add(
            SocialPost(
                user_id=user_id,
                external_post_id=post.external_post_id,
                caption_text=post.caption_text,
                media_url=post.media_url,
                permalink=post.permalink,
                like_count=post.like_count,
                comment_count=post.comment_count,
                media_kind=post.media_kind.value,
                posted_at=post.posted_at,
            )
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent refresh inserted the same post first.
            await self.db.rollback()
            logger.debug(
                "Duplicate post rejected by constraint",
                user_id=user_id,
                external_post_id=post.external_post_id,
            )
            return False
        return True

    async def list_by_user(self, user_id: str) -> list[PostRecord]:
        stmt = (
            select(SocialPost)
            .where(SocialPost.user_id == user_id)
            .order_by(SocialPost.posted_at.desc(), SocialPost.id.desc())
        )
        result = await self.db.execute(stmt)
        return [
            PostRecord(
                id=row.id,
                user_id=row.user_id,
                external_post_id=row.external_post_id,
                caption_text=row.caption_text,
                media_url=row.media_url,
                permalink=row.permalink,
                like_count=row.like_count or 0,
                comment_count=row.comment_count or 0,
                media_kind=MediaKind(row.media_kind),
                posted_at=row.posted_at,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]
