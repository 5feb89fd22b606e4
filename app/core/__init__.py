"""Core infrastructure modules"""

from app.core.config import settings
from app.core.database import get_db, AsyncSessionLocal
from app.core.cache import RedisCache
from app.core.llm_clients import CaptioningClient

__all__ = ["settings", "get_db", "AsyncSessionLocal", "RedisCache", "CaptioningClient"]
