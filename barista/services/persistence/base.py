"""Persistence interfaces for conversations and orders."""
from abc import ABC, abstractmethod
from typing import Optional

from barista.services.conversation.models import Conversation
from barista.services.ordering.order import Order


class ConversationStore(ABC):
    """Abstract base class for conversation storage."""

    @abstractmethod
    async def save(self, conversation: Conversation) -> None:
        """Insert or replace a conversation with its transcript."""
        pass

    @abstractmethod
    async def find_by_id(self, conversation_id: str) -> Optional[Conversation]:
        pass


class OrderStore(ABC):
    """Abstract base class for order storage."""

    @abstractmethod
    async def find_active_by_conversation(self, conversation_id: str) -> Optional[Order]:
        """Most recent pending or confirmed order of a conversation."""
        pass

    @abstractmethod
    async def save_with_conversation(self, order: Order, conversation_id: str) -> None:
        """Insert or replace an order and link it to its conversation."""
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_conversation_id(self, order_id: str) -> Optional[str]:
        """Id of the conversation an order belongs to."""
        pass
