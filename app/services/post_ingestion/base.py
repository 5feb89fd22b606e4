"""
Connector interface and ingestion result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from app.models.social_account import SocialAccountLink
from app.services.post_store import PostCorpusStore


@dataclass
class IngestionResult:
    """
    Outcome of one ingestion pass.

    A pass that fetched nothing, or hit errors along the way, is partial.
    Partial is a result state, never an exception.
    """

    connector: str
    fetched: int = 0
    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def partial(self) -> bool:
        return self.fetched == 0 or bool(self.errors)

    def summary(self) -> str:
        if self.message:
            return self.message
        if self.fetched == 0:
            return "No posts could be retrieved from Instagram right now"
        if self.errors:
            return f"Retrieved {self.fetched} posts; some could not be processed"
        return f"Retrieved {self.fetched} posts"


class PostConnector(ABC):
    """Populates the post corpus for a user from an external source."""

    name: str = "connector"

    @abstractmethod
    async def ingest(
        self,
        user_id: str,
        store: PostCorpusStore,
        link: SocialAccountLink,
    ) -> IngestionResult:
        """Fetch posts for the linked account and append them to the store."""
