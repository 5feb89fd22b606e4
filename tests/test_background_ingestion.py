"""
Background scrape for connect-by-username, run with its own session.
"""

from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeConnector, make_post

from app.core.exceptions import UpstreamUnavailable
from app.services.post_ingestion import service as ingestion_service
from app.services.post_ingestion import ingest_username_in_background
from app.services.post_store import SQLPostCorpusStore
from app.services.social_accounts import SocialAccountService


@pytest.fixture
def session_contexts(monkeypatch, test_db: AsyncSession) -> list:
    """Route get_db_context to the test session and count the sessions opened."""
    opened = []

    @asynccontextmanager
    async def _context():
        opened.append(test_db)
        yield test_db

    monkeypatch.setattr(ingestion_service, "get_db_context", _context)
    return opened


@pytest.mark.asyncio
async def test_background_ingestion_grows_corpus(test_db: AsyncSession, session_contexts: list):
    await SocialAccountService(test_db).link_username("alice", "alice_ig")
    scraper = FakeConnector(
        name="instaloader",
        posts=[make_post("s1", "Sunset #travel"), make_post("s2", "Brunch", offset_hours=1)],
    )

    await ingest_username_in_background("alice", scrape_connector=scraper)

    assert session_contexts == [test_db]
    assert scraper.calls == ["alice"]
    posts = await SQLPostCorpusStore(test_db).list_by_user("alice")
    assert [p.external_post_id for p in posts] == ["s2", "s1"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [RuntimeError("instaloader crashed"), UpstreamUnavailable("Instagram unreachable")],
)
async def test_background_ingestion_failure_is_dropped(
    test_db: AsyncSession,
    session_contexts: list,
    exc: Exception,
):
    await SocialAccountService(test_db).link_username("alice", "alice_ig")
    scraper = FakeConnector(name="instaloader", posts=[make_post("s1")], exc=exc)

    await ingest_username_in_background("alice", scrape_connector=scraper)

    assert scraper.calls == ["alice"]
    assert await SQLPostCorpusStore(test_db).list_by_user("alice") == []


@pytest.mark.asyncio
async def test_background_ingestion_without_link_is_dropped(
    test_db: AsyncSession,
    session_contexts: list,
):
    scraper = FakeConnector(name="instaloader", posts=[make_post("s1")])

    await ingest_username_in_background("nobody", scrape_connector=scraper)

    assert scraper.calls == []
