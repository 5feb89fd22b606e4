"""
Style profile cache tests, against an in-process stand-in for Redis.
"""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeConnector, make_post

from app.core import cache as cache_module
from app.core.cache import RedisCache, cache
from app.core.config import settings
from app.schemas.style import ManualStyleDeclaration
from app.services.manual_style import ManualStyleService
from app.services.personalization import PersonalizationService
from app.services.post_ingestion import PostIngestionService
from app.services.post_store import InMemoryPostCorpusStore
from app.services.social_accounts import SocialAccountService
from app.services.style_analyzer import StyleAnalyzer

KEY = "style_profile:u1"


class FakeRedis:
    """Async subset of redis.Redis used by RedisCache."""

    def __init__(self, down: bool = False):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.down = down
        self.closed = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("Error 111 connecting to 127.0.0.1:1")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self._check()
        self.data.pop(key, None)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Connect the global cache to a healthy FakeRedis with caching on."""
    fake = FakeRedis()
    monkeypatch.setattr(settings, "style_profile_cache_ttl", 300)
    monkeypatch.setattr(cache, "_client", fake)
    return fake


@pytest.fixture
def dead_redis(monkeypatch) -> FakeRedis:
    """A client whose connection dropped after connect()."""
    fake = FakeRedis(down=True)
    monkeypatch.setattr(settings, "style_profile_cache_ttl", 300)
    monkeypatch.setattr(cache, "_client", fake)
    return fake


def _declaration() -> ManualStyleDeclaration:
    return ManualStyleDeclaration(
        caption_length="Short",
        emoji_usage="Low",
        caption_tone=["Casual"],
        themes=["Food"],
        use_hashtags=True,
    )


def _personalization(test_db: AsyncSession, store) -> PersonalizationService:
    return PersonalizationService(ManualStyleService(test_db), StyleAnalyzer(store))


# ---------------------------------------------------------------------------
# Connection handling
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_failed_connect_leaves_cache_disconnected(monkeypatch):
    fake = FakeRedis(down=True)
    monkeypatch.setattr(cache_module.redis, "from_url", lambda *args, **kwargs: fake)
    local = RedisCache()

    with pytest.raises(RedisConnectionError):
        await local.connect()

    assert local.is_connected is False
    assert fake.closed is True
    # Invalidation is a no-op rather than a call on the dead client
    await local.invalidate_style_profile("u1")


@pytest.mark.asyncio
async def test_connect_keeps_healthy_client(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_module.redis, "from_url", lambda *args, **kwargs: fake)
    local = RedisCache()

    await local.connect()

    assert local.is_connected is True
    await local.disconnect()
    assert fake.closed is True
    assert local.is_connected is False


@pytest.mark.asyncio
async def test_cache_disabled_when_ttl_is_zero(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(settings, "style_profile_cache_ttl", 0)
    monkeypatch.setattr(cache, "_client", fake)

    await cache.set_style_profile("u1", {"isManual": False})

    assert fake.data == {}
    assert await cache.get_style_profile("u1") is None


# ---------------------------------------------------------------------------
# Profile caching
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_analyzed_profile_is_cached_and_served(test_db: AsyncSession, fake_redis: FakeRedis):
    store = InMemoryPostCorpusStore()
    await store.append("u1", make_post("p1", "Beach day #travel", user_id="u1"))
    personalization = _personalization(test_db, store)

    first = await personalization.effective_profile("u1")
    assert KEY in fake_redis.data
    assert fake_redis.ttls[KEY] == 300
    assert json.loads(fake_redis.data[KEY])["engagement_insights"]["total_posts"] == 1

    # A new post is not visible until the cached entry is dropped
    await store.append("u1", make_post("p2", "Gym #fitness", user_id="u1", offset_hours=1))
    second = await personalization.effective_profile("u1")

    assert second == first
    assert second.engagement_insights.total_posts == 1


@pytest.mark.asyncio
async def test_default_profile_is_not_cached(test_db: AsyncSession, fake_redis: FakeRedis):
    profile = await _personalization(test_db, InMemoryPostCorpusStore()).effective_profile("u1")

    assert profile.engagement_insights.total_posts == 0
    assert fake_redis.data == {}


@pytest.mark.asyncio
async def test_manual_save_invalidates_cached_profile(test_db: AsyncSession, fake_redis: FakeRedis):
    fake_redis.data[KEY] = json.dumps({"stale": True})

    await ManualStyleService(test_db).save("u1", _declaration())

    assert KEY not in fake_redis.data


@pytest.mark.asyncio
async def test_relink_invalidates_cached_profile(test_db: AsyncSession, fake_redis: FakeRedis):
    fake_redis.data[KEY] = json.dumps({"stale": True})

    await SocialAccountService(test_db).link_username("u1", "alice_ig")

    assert KEY not in fake_redis.data


@pytest.mark.asyncio
async def test_refresh_with_new_posts_invalidates_cached_profile(
    test_db: AsyncSession,
    fake_redis: FakeRedis,
):
    accounts = SocialAccountService(test_db)
    link = await accounts.link_username("u1", "alice_ig")
    fake_redis.data[KEY] = json.dumps({"stale": True})
    scraper = FakeConnector(name="instaloader", posts=[make_post("s1", "new")])
    service = PostIngestionService(InMemoryPostCorpusStore(), accounts, scrape_connector=scraper)

    result = await service.ingest_link("u1", link)

    assert result.added == 1
    assert KEY not in fake_redis.data


# ---------------------------------------------------------------------------
# Redis down after startup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_writes_succeed_when_redis_is_down(test_db: AsyncSession, dead_redis: FakeRedis):
    accounts = SocialAccountService(test_db)

    profile = await ManualStyleService(test_db).save("u1", _declaration())
    link = await accounts.link_username("u2", "bob_ig")
    scraper = FakeConnector(name="instaloader", posts=[make_post("s1", "hello")])
    result = await PostIngestionService(
        InMemoryPostCorpusStore(), accounts, scrape_connector=scraper
    ).ingest_link("u2", link)
    await accounts.disconnect("u2")

    assert profile.is_manual is True
    assert result.added == 1


@pytest.mark.asyncio
async def test_profiles_computed_directly_when_redis_is_down(
    test_db: AsyncSession,
    dead_redis: FakeRedis,
):
    store = InMemoryPostCorpusStore()
    await store.append("u1", make_post("p1", "Beach day #travel", user_id="u1"))

    profile = await _personalization(test_db, store).effective_profile("u1")

    assert profile.engagement_insights.total_posts == 1
    assert profile.recommended_hashtags == ["#travel"]
