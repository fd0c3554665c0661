"""FastAPI dependencies."""
from typing import Callable, Optional
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from barista.core.config import OrderingLimits, settings
from barista.db.database import AsyncSessionLocal, get_db
from barista.services.agent.agent import OpenAIConversationAI
from barista.services.agent.base import ConversationAI
from barista.services.cache.context import ContextCache, build_context_cache
from barista.services.conversation.coordinator import TurnCoordinator
from barista.services.menu.repository import MenuRepository
from barista.services.menu.sql_menu import SqlMenuProvider
from barista.services.persistence.conversations import SqlConversationStore
from barista.services.persistence.orders import SqlOrderStore
from barista.services.search.base import SemanticSearch
from barista.services.search.embedding_search import EmbeddingDrinkSearch

TurnCoordinatorFactory = Callable[[AsyncSession], TurnCoordinator]

# Process-wide singletons
_context_cache: Optional[ContextCache] = None
_conversation_ai: Optional[ConversationAI] = None


def get_limits() -> OrderingLimits:
    return OrderingLimits()


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives the request handler, such as streaming."""
    return AsyncSessionLocal


def get_menu_repository(db: AsyncSession = Depends(get_db)) -> MenuRepository:
    """Get menu repository instance."""
    return MenuRepository(provider=SqlMenuProvider(db))


def get_semantic_search(
    menu_repository: MenuRepository = Depends(get_menu_repository),
) -> SemanticSearch:
    return EmbeddingDrinkSearch(menu_repository)


def get_conversation_ai() -> ConversationAI:
    global _conversation_ai
    if _conversation_ai is None:
        _conversation_ai = OpenAIConversationAI()
    return _conversation_ai


def get_context_cache() -> ContextCache:
    global _context_cache
    if _context_cache is None:
        _context_cache = build_context_cache(settings.redis_url, settings.context_cache_ttl_seconds)
    return _context_cache


def get_turn_coordinator_factory(
    ai: ConversationAI = Depends(get_conversation_ai),
    cache: ContextCache = Depends(get_context_cache),
    limits: OrderingLimits = Depends(get_limits),
) -> TurnCoordinatorFactory:
    """Build coordinators bound to a given database session."""

    def build(db: AsyncSession) -> TurnCoordinator:
        menu_repository = MenuRepository(provider=SqlMenuProvider(db))
        return TurnCoordinator(
            conversation_store=SqlConversationStore(db, limits),
            order_store=SqlOrderStore(db, cache=cache, limits=limits),
            menu_repository=menu_repository,
            search=EmbeddingDrinkSearch(menu_repository),
            ai=ai,
            cache=cache,
            limits=limits,
        )

    return build


def get_turn_coordinator(
    db: AsyncSession = Depends(get_db),
    build: TurnCoordinatorFactory = Depends(get_turn_coordinator_factory),
) -> TurnCoordinator:
    return build(db)
