"""
Post Ingestion Service.

Picks the connector for a user's link and runs an ingestion pass.
"""

from typing import Optional

import structlog

from app.core.cache import cache
from app.core.database import get_db_context
from app.core.exceptions import UpstreamUnavailable
from app.core.observability import capture_exception
from app.models.social_account import SocialAccountLink
from app.services.post_store import PostCorpusStore, SQLPostCorpusStore
from app.services.social_accounts import SocialAccountService

from .base import IngestionResult, PostConnector
from .graph_api import GraphAPIConnector
from .instaloader import InstaloaderConnector

logger = structlog.get_logger(__name__)


class PostIngestionService:
    """
    Runs ingestion for the currently linked account.

    Links with an access token go through the Graph API connector, links by
    username through the scraper.
    """

    def __init__(
        self,
        store: PostCorpusStore,
        accounts: SocialAccountService,
        graph_connector: Optional[PostConnector] = None,
        scrape_connector: Optional[PostConnector] = None,
    ):
        self.store = store
        self.accounts = accounts
        self.graph_connector = graph_connector or GraphAPIConnector()
        self.scrape_connector = scrape_connector or InstaloaderConnector()

    def connector_for(self, link: SocialAccountLink) -> PostConnector:
        return self.graph_connector if link.has_token else self.scrape_connector

    async def ingest_link(self, user_id: str, link: SocialAccountLink) -> IngestionResult:
        """
        Run the link's connector.

        Raises:
            UpstreamUnavailable: if the token-based connector fails. Scraper
                failures never raise; they come back as a partial result.
        """
        connector = self.connector_for(link)
        try:
            result = await connector.ingest(user_id, self.store, link)
        except UpstreamUnavailable:
            raise
        except Exception as e:
            logger.error("Connector failed", user_id=user_id, connector=connector.name, error=str(e))
            capture_exception(e, {"user_id": user_id, "connector": connector.name})
            if connector is self.graph_connector:
                raise UpstreamUnavailable("Instagram ingestion failed") from e
            return IngestionResult(connector=connector.name, errors=[str(e)])

        if result.added:
            await cache.invalidate_style_profile(user_id)
        return result

    async def refresh(self, user_id: str) -> IngestionResult:
        """
        One ingestion pass for the user's link.

        Raises:
            NotFound: if the user has no connected account
            UpstreamUnavailable: if the token-based fetch fails
        """
        link = await self.accounts.require_link(user_id)
        logger.info(
            "Refreshing posts",
            user_id=user_id,
            connector=self.connector_for(link).name,
        )
        return await self.ingest_link(user_id, link)


async def ingest_username_in_background(
    user_id: str,
    scrape_connector: Optional[PostConnector] = None,
) -> None:
    """
    Background task for connect-by-username.

    Runs outside the request with its own session. Its only effect is corpus
    growth; failures are logged and dropped.
    """
    try:
        async with get_db_context() as db:
            accounts = SocialAccountService(db)
            link = await accounts.require_link(user_id)
            service = PostIngestionService(
                SQLPostCorpusStore(db),
                accounts,
                scrape_connector=scrape_connector,
            )
            result = await service.ingest_link(user_id, link)
        logger.info(
            "Background ingestion finished",
            user_id=user_id,
            added=result.added,
            partial=result.partial,
        )
    except Exception as e:
        logger.error("Background ingestion failed", user_id=user_id, error=str(e))
        capture_exception(e, {"user_id": user_id, "stage": "background_ingestion"})
