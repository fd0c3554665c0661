"""Shared test fixtures and configuration."""
import pytest
import os
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RESTAURANT_NAME", "Test Cafe")

from barista.main import app
from barista.db.database import Base, get_db
from barista.core.config import OrderingLimits, Settings
from barista.core.dependencies import (
    get_menu_repository,
    get_semantic_search,
    get_session_factory,
    get_turn_coordinator_factory,
)
from barista.services.agent.base import ConversationAI
from barista.services.agent.models import Intent, NluRequest, NluResponse
from barista.services.cache.context import InMemoryContextCache
from barista.services.conversation.coordinator import TurnCoordinator
from barista.services.menu.in_memory_menu import InMemoryMenuProvider
from barista.services.menu.repository import MenuRepository
from barista.services.persistence.conversations import SqlConversationStore
from barista.services.persistence.orders import SqlOrderStore
from barista.services.search.base import DrinkMatch, SemanticSearch
from barista.services.search.embedding_search import clear_embedding_cache


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeSemanticSearch(SemanticSearch):
    """Keyword overlap stand-in for the embedding search.

    A drink scores the share of its name words found in the text.
    """

    def __init__(self, menu_repository: MenuRepository):
        self.menu_repository = menu_repository
        self.fail = False
        self.calls: List[str] = []

    async def find_similar(self, text: str, limit: int) -> List[DrinkMatch]:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("search backend unavailable")
        lowered = text.lower()
        matches = []
        for drink in await self.menu_repository.find_all():
            words = drink.name.lower().split()
            score = sum(1 for word in words if word in lowered) / len(words)
            if score > 0:
                matches.append(DrinkMatch(drink=drink, score=score))
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[:limit]


class FakeConversationAI(ConversationAI):
    """Returns queued responses in order and records every request."""

    def __init__(self):
        self.responses: List[NluResponse] = []
        self.requests: List[NluRequest] = []
        self.error: Optional[Exception] = None

    def queue(self, *responses: NluResponse) -> None:
        self.responses.extend(responses)

    async def generate_response(self, request: NluRequest) -> NluResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return NluResponse(reply="What can I get for you?", intent=Intent.GREETING)

    async def stream(self, request: NluRequest):
        response = await self.generate_response(request)
        words = response.reply.split(" ")
        middle = max(1, len(words) // 2)
        yield " ".join(words[:middle]) + " "
        yield " ".join(words[middle:])
        yield response


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        openai_api_key="test-key",
        database_url=TEST_DATABASE_URL,
        restaurant_name="Test Cafe",
    )


@pytest.fixture
def limits():
    return OrderingLimits()


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    """Create test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def test_menu_path():
    """Return path to test menu YAML file."""
    return Path(__file__).parent / "fixtures" / "test_menu.yaml"


@pytest.fixture
def test_menu_repository(test_menu_path):
    """Create menu repository with test data."""
    provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
    return MenuRepository(provider)


@pytest.fixture
def fake_search(test_menu_repository):
    return FakeSemanticSearch(test_menu_repository)


@pytest.fixture
def fake_ai():
    return FakeConversationAI()


@pytest.fixture
def context_cache():
    return InMemoryContextCache(ttl_seconds=60)


@pytest.fixture
def conversation_store(test_db, limits):
    return SqlConversationStore(test_db, limits)


@pytest.fixture
def order_store(test_db, context_cache, limits):
    return SqlOrderStore(test_db, cache=context_cache, limits=limits)


@pytest.fixture
def build_coordinator(test_menu_repository, fake_search, fake_ai, context_cache, limits):
    """Factory wiring a coordinator to a database session with test doubles."""
    def _build(db: AsyncSession) -> TurnCoordinator:
        return TurnCoordinator(
            conversation_store=SqlConversationStore(db, limits),
            order_store=SqlOrderStore(db, cache=context_cache, limits=limits),
            menu_repository=test_menu_repository,
            search=fake_search,
            ai=fake_ai,
            cache=context_cache,
            limits=limits,
        )
    return _build


@pytest.fixture
def coordinator(build_coordinator, test_db):
    return build_coordinator(test_db)


@pytest.fixture
def override_get_db(test_db):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        yield test_db
    return _override_get_db


@pytest.fixture
def test_client(
    override_get_db,
    test_menu_repository,
    fake_search,
    build_coordinator,
    test_session_factory,
):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_menu_repository] = lambda: test_menu_repository
    app.dependency_overrides[get_semantic_search] = lambda: fake_search
    app.dependency_overrides[get_turn_coordinator_factory] = lambda: build_coordinator
    app.dependency_overrides[get_session_factory] = lambda: test_session_factory

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [
        Mock(message=Mock(content="Hello! What can I get you?", tool_calls=None))
    ]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_completion)
    mock_client.embeddings.create = AsyncMock()
    return mock_client


@pytest.fixture(autouse=True)
def reset_embedding_cache():
    """Clear cached drink embeddings between tests."""
    clear_embedding_cache()
    yield
    clear_embedding_cache()
