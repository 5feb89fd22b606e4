"""
Token-based connector for the Instagram Graph API.
"""

from datetime import datetime
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailable
from app.models.social_account import SocialAccountLink
from app.schemas.posts import MediaKind, PostRecord
from app.services.post_store import PostCorpusStore

from .base import IngestionResult, PostConnector

logger = structlog.get_logger(__name__)

MEDIA_FIELDS = (
    "id,caption,media_url,permalink,thumbnail_url,timestamp,"
    "media_type,like_count,comments_count"
)
PROFILE_FIELDS = "id,username"


def parse_graph_timestamp(value: str) -> datetime:
    """Graph API timestamps look like 2024-05-01T12:00:00+0000."""
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))


def media_item_to_post(user_id: str, item: dict[str, Any]) -> PostRecord:
    """
    Map one Graph API media item to a PostRecord.

    Raises:
        KeyError, ValueError: if the item lacks an id or a usable timestamp
    """
    media_type = (item.get("media_type") or "").upper()
    return PostRecord(
        user_id=user_id,
        external_post_id=str(item["id"]),
        caption_text=item.get("caption") or None,
        media_url=item.get("media_url") or item.get("thumbnail_url"),
        permalink=item.get("permalink"),
        like_count=item.get("like_count") or 0,
        comment_count=item.get("comments_count") or 0,
        media_kind=MediaKind.VIDEO if media_type == "VIDEO" else MediaKind.IMAGE,
        posted_at=parse_graph_timestamp(item["timestamp"]),
    )


class GraphAPIConnector(PostConnector):
    """
    Fetches recent media with the account's access token.

    Transport errors are retried; any remaining failure raises
    UpstreamUnavailable.
    """

    name = "graph_api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.instagram_graph_base_url
        self.limit = limit or settings.instagram_media_limit
        self.timeout = timeout or settings.instagram_http_timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[dict] = None,
    ) -> dict:
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def fetch_profile(self, access_token: str) -> dict[str, str]:
        """
        Fetch the account id and username behind a token.

        Returns:
            {"id": ..., "username": ...}
        """
        try:
            async with self._client() as client:
                data = await self._get(
                    client,
                    "/me",
                    {"fields": PROFILE_FIELDS, "access_token": access_token},
                )
            return {"id": str(data["id"]), "username": data["username"]}
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Instagram profile fetch failed", error=str(e))
            raise UpstreamUnavailable("Failed to fetch Instagram user profile") from e

    async def fetch_media(self, access_token: str) -> list[dict[str, Any]]:
        """Fetch up to `limit` recent media items, following paging.next."""
        items: list[dict[str, Any]] = []
        try:
            async with self._client() as client:
                data = await self._get(
                    client,
                    "/me/media",
                    {
                        "fields": MEDIA_FIELDS,
                        "access_token": access_token,
                        "limit": self.limit,
                    },
                )
                while True:
                    items.extend(data.get("data") or [])
                    next_url = (data.get("paging") or {}).get("next")
                    if len(items) >= self.limit or not next_url:
                        break
                    data = await self._get(client, next_url)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Instagram media fetch failed", error=str(e), fetched=len(items))
            raise UpstreamUnavailable("Failed to fetch Instagram media") from e

        return items[: self.limit]

    async def ingest(
        self,
        user_id: str,
        store: PostCorpusStore,
        link: SocialAccountLink,
    ) -> IngestionResult:
        if not link.access_token:
            raise UpstreamUnavailable("Linked account has no access token")

        items = await self.fetch_media(link.access_token)
        result = IngestionResult(connector=self.name)

        for item in items:
            try:
                post = media_item_to_post(user_id, item)
            except (KeyError, ValueError, TypeError) as e:
                result.skipped += 1
                result.errors.append(f"media {item.get('id', '?')}: {e}")
                logger.warning("Skipping malformed media item", user_id=user_id, error=str(e))
                continue

            result.fetched += 1
            if await store.append(user_id, post):
                result.added += 1

        logger.info(
            "Graph API ingestion complete",
            user_id=user_id,
            fetched=result.fetched,
            added=result.added,
            skipped=result.skipped,
        )
        return result
