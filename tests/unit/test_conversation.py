"""Unit tests for the conversation aggregate."""
import pytest

from barista.core.config import OrderingLimits
from barista.services.conversation.models import Conversation, Message, MessageRole
from barista.services.ordering.errors import InvalidValueError
from barista.services.ordering.models import is_valid_id


class TestMessage:
    def test_empty_content_rejected(self):
        with pytest.raises(InvalidValueError):
            Message(role=MessageRole.USER, content="  ")

    def test_str(self):
        assert str(Message(role=MessageRole.ASSISTANT, content="Hi")) == "[assistant]: Hi"


class TestConversation:
    """Test transcript handling."""

    def test_create(self):
        conversation = Conversation.create()
        assert is_valid_id(conversation.id)
        assert conversation.is_empty()
        assert not conversation.has_active_order()

    def test_messages_in_order(self):
        conversation = Conversation.create()
        conversation.add_user_message("A latte please")
        conversation.add_assistant_message("Coming up!")

        assert [message.role for message in conversation.messages] == [
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert conversation.last_user_message().content == "A latte please"

    def test_oldest_messages_evicted(self):
        conversation = Conversation.create(OrderingLimits(max_messages=3))
        for number in range(5):
            conversation.add_user_message(f"message {number}")

        assert conversation.message_count == 3
        assert [message.content for message in conversation.messages] == [
            "message 2",
            "message 3",
            "message 4",
        ]

    def test_history_text_uses_window(self):
        conversation = Conversation.create(OrderingLimits(history_window=2))
        conversation.add_user_message("one")
        conversation.add_assistant_message("two")
        conversation.add_user_message("three")

        assert conversation.history_text() == "[assistant]: two\n[user]: three"
        assert conversation.history_text(5).startswith("[user]: one")

    def test_recent_messages_non_positive(self):
        conversation = Conversation.create()
        conversation.add_user_message("hi")
        assert conversation.recent_messages(0) == ()

    def test_current_order_reference(self):
        conversation = Conversation.create()
        before = conversation.updated_at

        conversation.set_current_order("abc")
        assert conversation.has_active_order()
        assert conversation.current_order_id == "abc"
        assert conversation.updated_at >= before

        conversation.clear_current_order()
        assert conversation.current_order_id is None
