"""
Pytest configuration and fixtures.
"""

import os

# Must be set before app.core.config is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api import deps
from app.api.main import app
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.llm_clients import CaptioningClient, CaptionResponse, get_captioning_client
from app.schemas.posts import MediaKind, PostRecord
from app.services.post_ingestion import IngestionResult, PostConnector


# Test database URL (in-memory SQLite shared through one connection)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_post(
    external_post_id: str,
    caption: Optional[str] = None,
    likes: int = 0,
    comments: int = 0,
    offset_hours: int = 0,
    user_id: str = "test-user-001",
) -> PostRecord:
    """Build a PostRecord; larger offset_hours means newer."""
    return PostRecord(
        user_id=user_id,
        external_post_id=external_post_id,
        caption_text=caption,
        like_count=likes,
        comment_count=comments,
        media_kind=MediaKind.IMAGE,
        posted_at=BASE_TIME + timedelta(hours=offset_hours),
    )


def auth_headers(user_id: str) -> dict:
    """Bearer header for a user id, signed with the test settings."""
    token = jwt.encode(
        {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeConnector(PostConnector):
    """Connector returning canned posts, or failing on demand."""

    def __init__(self, name: str = "fake", posts=None, errors=None, exc: Optional[Exception] = None):
        self.name = name
        self.posts = list(posts or [])
        self.errors = list(errors or [])
        self.exc = exc
        self.calls: list[str] = []
        self.profile = {"id": "17841400000000001", "username": "alice_ig"}

    async def fetch_profile(self, access_token: str) -> dict:
        if self.exc is not None:
            raise self.exc
        return self.profile

    async def ingest(self, user_id, store, link) -> IngestionResult:
        self.calls.append(user_id)
        if self.exc is not None:
            raise self.exc
        result = IngestionResult(connector=self.name, errors=list(self.errors))
        for post in self.posts:
            result.fetched += 1
            if await store.append(user_id, post.model_copy(update={"user_id": user_id})):
                result.added += 1
        return result


class FakeCaptioningClient(CaptioningClient):
    """Records instructions instead of calling a model."""

    def __init__(self, exc: Optional[Exception] = None):
        self.instructions: list[str] = []
        self.exc = exc

    async def caption(self, image_base64, instruction, mime_type="image/jpeg") -> CaptionResponse:
        self.instructions.append(instruction)
        if self.exc is not None:
            raise self.exc
        return CaptionResponse(
            description="A sunset over the sea",
            suggested_caption="Golden hour never gets old",
            model="fake-vision",
        )


class RecordingIngestor:
    """Stands in for the background connect-by-username task."""

    def __init__(self):
        self.user_ids: list[str] = []

    async def __call__(self, user_id: str) -> None:
        self.user_ids.append(user_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def graph_connector() -> FakeConnector:
    return FakeConnector(name="graph_api")


@pytest.fixture
def scrape_connector() -> FakeConnector:
    return FakeConnector(name="instaloader")


@pytest.fixture
def captioning_client() -> FakeCaptioningClient:
    return FakeCaptioningClient()


@pytest.fixture
def background_ingestor() -> RecordingIngestor:
    return RecordingIngestor()


@pytest_asyncio.fixture
async def client(
    test_db: AsyncSession,
    graph_connector: FakeConnector,
    scrape_connector: FakeConnector,
    captioning_client: FakeCaptioningClient,
    background_ingestor: RecordingIngestor,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client wired to the test database and fakes."""

    async def _get_db():
        yield test_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_graph_connector] = lambda: graph_connector
    app.dependency_overrides[deps.get_scrape_connector] = lambda: scrape_connector
    app.dependency_overrides[get_captioning_client] = lambda: captioning_client
    app.dependency_overrides[deps.get_background_ingestor] = lambda: background_ingestor

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_user_id() -> str:
    """Return mock user ID for testing."""
    return "test-user-001"
