"""Advisory per-conversation context cache.

Entries only hint at the state of a conversation so the turn pipeline can skip
a store read. The stores remain the source of truth: a miss, an expired entry
or a failing backend always falls back to them.
"""
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple
from pydantic import BaseModel, Field
from redis import asyncio as aioredis

from barista.services.ordering.models import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600
DEFAULT_MAX_ENTRIES = 10_000


class ConversationContext(BaseModel):
    """What the previous turn left behind."""

    current_intent: Optional[str] = None
    has_active_order: bool = False
    last_drink_mentioned: Optional[str] = None
    cached_at: datetime = Field(default_factory=utcnow)


def context_key(conversation_id: str) -> str:
    return f"conversation:{conversation_id}:context"


class ContextCache(ABC):
    """Abstract base class for the context cache."""

    @abstractmethod
    async def get(self, conversation_id: str) -> Optional[ConversationContext]:
        pass

    @abstractmethod
    async def set(self, conversation_id: str, context: ConversationContext) -> None:
        pass

    @abstractmethod
    async def invalidate(self, conversation_id: str) -> None:
        pass


class InMemoryContextCache(ContextCache):
    """Process-local cache with a TTL.

    Writes sweep expired entries. When the cache is still full, the entry
    closest to expiry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[float, ConversationContext]] = {}

    async def get(self, conversation_id: str) -> Optional[ConversationContext]:
        entry = self._entries.get(context_key(conversation_id))
        if entry is None:
            return None
        expires_at, context = entry
        if expires_at < self.clock():
            self._entries.pop(context_key(conversation_id), None)
            return None
        return context

    async def set(self, conversation_id: str, context: ConversationContext) -> None:
        now = self.clock()
        key = context_key(conversation_id)
        self._sweep(now)
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]
            logger.debug(f"[CACHE] Evicted {oldest}, cache full")
        self._entries[key] = (now + self.ttl_seconds, context)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at < now]
        for key in expired:
            del self._entries[key]

    async def invalidate(self, conversation_id: str) -> None:
        self._entries.pop(context_key(conversation_id), None)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


class RedisContextCache(ContextCache):
    """Redis-backed cache shared between workers."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, redis_url: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> "RedisContextCache":
        return cls(aioredis.from_url(redis_url, decode_responses=True), ttl_seconds)

    async def get(self, conversation_id: str) -> Optional[ConversationContext]:
        raw = await self.client.get(context_key(conversation_id))
        if not raw:
            return None
        return ConversationContext.model_validate_json(raw)

    async def set(self, conversation_id: str, context: ConversationContext) -> None:
        await self.client.setex(
            context_key(conversation_id), self.ttl_seconds, context.model_dump_json()
        )

    async def invalidate(self, conversation_id: str) -> None:
        await self.client.delete(context_key(conversation_id))


def build_context_cache(redis_url: Optional[str], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> ContextCache:
    """Redis when a URL is configured, otherwise an in-process cache."""
    if redis_url:
        logger.info("[CACHE] Using Redis context cache")
        return RedisContextCache.from_url(redis_url, ttl_seconds)
    logger.info("[CACHE] Using in-memory context cache")
    return InMemoryContextCache(ttl_seconds)
