"""
Post ingestion.

Connectors that populate the post corpus from Instagram, either with an
OAuth access token (Graph API) or by scraping a public username.
"""

from .base import IngestionResult, PostConnector
from .graph_api import GraphAPIConnector
from .instaloader import InstaloaderConnector
from .service import PostIngestionService, ingest_username_in_background

__all__ = [
    "IngestionResult",
    "PostConnector",
    "GraphAPIConnector",
    "InstaloaderConnector",
    "PostIngestionService",
    "ingest_username_in_background",
]
