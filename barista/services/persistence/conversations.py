"""Conversation persistence service."""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from barista.core.config import OrderingLimits
from barista.core.metrics import track_query
from barista.db.models import Conversation as ConversationRecord
from barista.db.models import Message as MessageRecord
from barista.services.conversation.models import Conversation, Message, MessageRole
from barista.services.persistence.base import ConversationStore

logger = logging.getLogger(__name__)


class SqlConversationStore(ConversationStore):
    """Stores conversations and their messages in SQL tables."""

    def __init__(self, db: AsyncSession, limits: Optional[OrderingLimits] = None):
        self.db = db
        self.limits = limits or OrderingLimits()

    async def _get_record(self, conversation_id: str) -> Optional[ConversationRecord]:
        return await self.db.get(
            ConversationRecord,
            conversation_id,
            options=[selectinload(ConversationRecord.messages)],
        )

    async def save(self, conversation: Conversation) -> None:
        with track_query("save", "conversations"):
            await self._save(conversation)
        logger.debug(
            f"[CONVERSATION STORE] Saved {conversation.id} "
            f"({conversation.message_count} messages)"
        )

    async def _save(self, conversation: Conversation) -> None:
        record = await self._get_record(conversation.id)
        if record is None:
            record = ConversationRecord(id=conversation.id, created_at=conversation.created_at)
            self.db.add(record)

        record.current_order_id = conversation.current_order_id
        record.updated_at = conversation.updated_at
        # The domain window already evicted old messages; mirror it exactly
        record.messages = [
            MessageRecord(
                position=position,
                role=message.role.value,
                content=message.content,
                created_at=message.timestamp,
            )
            for position, message in enumerate(conversation.messages)
        ]
        await self.db.commit()

    async def find_by_id(self, conversation_id: str) -> Optional[Conversation]:
        with track_query("find_by_id", "conversations"):
            record = await self._get_record(conversation_id)
        if record is None:
            return None
        return Conversation(
            conversation_id=record.id,
            messages=[
                Message(
                    role=MessageRole(message.role),
                    content=message.content,
                    timestamp=message.created_at,
                )
                for message in record.messages
            ],
            current_order_id=record.current_order_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
            limits=self.limits,
        )
