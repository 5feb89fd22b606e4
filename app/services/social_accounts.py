"""
Social account links.

Each user has at most one Instagram link. Linking again overwrites it in
place; no history is kept.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache
from app.core.exceptions import NotFound
from app.models.social_account import SocialAccountLink

logger = structlog.get_logger(__name__)


class SocialAccountService:
    """CRUD for the per-user SocialAccountLink row."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_link(self, user_id: str) -> Optional[SocialAccountLink]:
        return await self.db.get(SocialAccountLink, user_id)

    async def require_link(self, user_id: str) -> SocialAccountLink:
        """Return the user's connected link or raise NotFound."""
        link = await self.get_link(user_id)
        if link is None or not link.connected:
            raise NotFound("No Instagram account connected", {"user_id": user_id})
        return link

    async def _overwrite(
        self,
        user_id: str,
        username: Optional[str],
        account_id: Optional[str],
        access_token: Optional[str],
        token_expires_at: Optional[datetime],
    ) -> SocialAccountLink:
        link = await self.get_link(user_id)
        if link is None:
            link = SocialAccountLink(user_id=user_id)
            self.db.add(link)

        link.external_username = username
        link.external_account_id = account_id
        link.access_token = access_token
        link.token_expires_at = token_expires_at
        link.connected = True
        await self.db.commit()
        await self.db.refresh(link)

        await cache.invalidate_style_profile(user_id)
        return link

    async def link_username(self, user_id: str, username: str) -> SocialAccountLink:
        """Link a public username; refreshed by scraping."""
        link = await self._overwrite(user_id, username, None, None, None)
        logger.info("Instagram account linked by username", user_id=user_id, username=username)
        return link

    async def link_oauth(
        self,
        user_id: str,
        account_id: str,
        username: str,
        access_token: str,
        token_expires_at: Optional[datetime] = None,
    ) -> SocialAccountLink:
        """Link an account authorized through OAuth; refreshed via the Graph API."""
        link = await self._overwrite(user_id, username, account_id, access_token, token_expires_at)
        logger.info("Instagram account linked by OAuth", user_id=user_id, username=username)
        return link

    async def disconnect(self, user_id: str) -> SocialAccountLink:
        """
        Mark the link disconnected and drop its credential.

        Stored posts are kept.
        """
        link = await self.require_link(user_id)
        link.connected = False
        link.access_token = None
        link.token_expires_at = None
        await self.db.commit()
        await self.db.refresh(link)

        await cache.invalidate_style_profile(user_id)
        logger.info("Instagram account disconnected", user_id=user_id)
        return link
