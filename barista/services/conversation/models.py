"""Conversation aggregate and chat messages."""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

from barista.core.config import OrderingLimits
from barista.services.ordering.errors import InvalidValueError
from barista.services.ordering.models import new_id, utcnow


class MessageRole(str, Enum):
    """Who sent a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single message of the transcript."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_content(self) -> "Message":
        if not self.content or not self.content.strip():
            raise InvalidValueError("message", "content cannot be empty")
        return self

    def is_from_user(self) -> bool:
        return self.role is MessageRole.USER

    def __str__(self) -> str:
        return f"[{self.role.value}]: {self.content}"


class Conversation:
    """Chat transcript between a customer and the barista plus the order being built."""

    def __init__(
        self,
        conversation_id: Optional[str] = None,
        messages: Optional[List[Message]] = None,
        current_order_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        limits: Optional[OrderingLimits] = None,
    ):
        now = utcnow()
        self.id = conversation_id or new_id()
        self._messages: List[Message] = list(messages or [])
        self._current_order_id = current_order_id
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        self.limits = limits or OrderingLimits()

    @classmethod
    def create(cls, limits: Optional[OrderingLimits] = None) -> "Conversation":
        return cls(limits=limits)

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def message_count(self) -> int:
        return len(self._messages)

    @property
    def current_order_id(self) -> Optional[str]:
        return self._current_order_id

    def add_user_message(self, content: str) -> None:
        self._add_message(Message(role=MessageRole.USER, content=content))

    def add_assistant_message(self, content: str) -> None:
        self._add_message(Message(role=MessageRole.ASSISTANT, content=content))

    def _add_message(self, message: Message) -> None:
        # Oldest messages are dropped once the window is full
        overflow = len(self._messages) + 1 - self.limits.max_messages
        if overflow > 0:
            del self._messages[:overflow]
        self._messages.append(message)
        self._touch()

    def set_current_order(self, order_id: str) -> None:
        self._current_order_id = order_id
        self._touch()

    def clear_current_order(self) -> None:
        self._current_order_id = None
        self._touch()

    def has_active_order(self) -> bool:
        return self._current_order_id is not None

    def recent_messages(self, count: int) -> Tuple[Message, ...]:
        if count <= 0:
            return ()
        return tuple(self._messages[-count:])

    def history_text(self, count: Optional[int] = None) -> str:
        """Render the most recent messages as '[role]: content' lines."""
        if count is None:
            count = self.limits.history_window
        return "\n".join(str(message) for message in self.recent_messages(count))

    def last_user_message(self) -> Optional[Message]:
        for message in reversed(self._messages):
            if message.is_from_user():
                return message
        return None

    def is_empty(self) -> bool:
        return not self._messages

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Conversation) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"Conversation(id={self.id!r}, messages={len(self._messages)}, "
            f"current_order_id={self._current_order_id!r})"
        )
