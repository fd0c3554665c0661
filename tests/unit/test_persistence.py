"""Unit tests for persistence services (conversations and orders)."""
import pytest

from barista.core.config import OrderingLimits
from barista.services.cache.context import ConversationContext
from barista.services.conversation.models import Conversation, MessageRole
from barista.services.ordering.models import Customizations, DrinkSize, Money, OrderItem, OrderStatus
from barista.services.ordering.order import Order
from barista.services.persistence.conversations import SqlConversationStore


def latte_order() -> Order:
    order = Order.create()
    order.add_item(
        OrderItem(
            drink_id="latte",
            drink_name="Caffè Latte",
            size=DrinkSize.VENTI,
            quantity=2,
            unit_price=Money(cents=475),
            customizations=Customizations(milk="oat", syrup="vanilla"),
        )
    )
    return order


class TestConversationPersistence:
    """Test conversation store."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, conversation_store):
        conversation = Conversation.create()
        conversation.add_user_message("A latte please")
        conversation.add_assistant_message("Coming right up!")
        conversation.set_current_order("a" * 32)

        await conversation_store.save(conversation)
        loaded = await conversation_store.find_by_id(conversation.id)

        assert loaded is not None
        assert loaded.id == conversation.id
        assert loaded.current_order_id == "a" * 32
        assert [(m.role, m.content) for m in loaded.messages] == [
            (MessageRole.USER, "A latte please"),
            (MessageRole.ASSISTANT, "Coming right up!"),
        ]

    @pytest.mark.asyncio
    async def test_find_unknown(self, conversation_store):
        assert await conversation_store.find_by_id("b" * 32) is None

    @pytest.mark.asyncio
    async def test_save_replaces_messages(self, test_db):
        store = SqlConversationStore(test_db, OrderingLimits(max_messages=2))
        conversation = Conversation.create(OrderingLimits(max_messages=2))
        conversation.add_user_message("one")
        await store.save(conversation)

        conversation.add_assistant_message("two")
        conversation.add_user_message("three")
        conversation.clear_current_order()
        await store.save(conversation)

        loaded = await store.find_by_id(conversation.id)
        assert [m.content for m in loaded.messages] == ["two", "three"]
        assert loaded.current_order_id is None


class TestOrderPersistence:
    """Test order store."""

    @pytest.mark.asyncio
    async def test_save_and_find_by_id(self, order_store):
        order = latte_order()
        await order_store.save_with_conversation(order, "c" * 32)

        loaded = await order_store.find_by_id(order.id)

        assert loaded.id == order.id
        assert loaded.status is OrderStatus.PENDING
        item = loaded.items[0]
        assert item.drink_name == "Caffè Latte"
        assert item.size is DrinkSize.VENTI
        assert item.quantity == 2
        assert item.customizations == Customizations(milk="oat", syrup="vanilla")
        assert loaded.total_price == Money(cents=950)

    @pytest.mark.asyncio
    async def test_find_unknown_order(self, order_store):
        assert await order_store.find_by_id("d" * 32) is None

    @pytest.mark.asyncio
    async def test_find_conversation_id(self, order_store):
        order = latte_order()
        await order_store.save_with_conversation(order, "c" * 32)

        assert await order_store.find_conversation_id(order.id) == "c" * 32
        assert await order_store.find_conversation_id("d" * 32) is None

    @pytest.mark.asyncio
    async def test_update_status_and_items(self, order_store):
        order = latte_order()
        await order_store.save_with_conversation(order, "c" * 32)

        order.remove_item_at(0)
        order.cancel()
        await order_store.save_with_conversation(order, "c" * 32)

        loaded = await order_store.find_by_id(order.id)
        assert loaded.status is OrderStatus.CANCELLED
        assert loaded.is_empty()

    @pytest.mark.asyncio
    async def test_active_order_excludes_closed(self, order_store):
        conversation_id = "e" * 32
        closed = latte_order()
        closed.cancel()
        await order_store.save_with_conversation(closed, conversation_id)
        assert await order_store.find_active_by_conversation(conversation_id) is None

        confirmed = latte_order()
        confirmed.confirm()
        await order_store.save_with_conversation(confirmed, conversation_id)

        active = await order_store.find_active_by_conversation(conversation_id)
        assert active.id == confirmed.id
        assert active.status is OrderStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_active_order_is_per_conversation(self, order_store):
        await order_store.save_with_conversation(latte_order(), "f" * 32)
        assert await order_store.find_active_by_conversation("0" * 32) is None

    @pytest.mark.asyncio
    async def test_save_invalidates_cached_context(self, order_store, context_cache):
        conversation_id = "1" * 32
        await context_cache.set(conversation_id, ConversationContext(has_active_order=False))

        await order_store.save_with_conversation(latte_order(), conversation_id)

        assert await context_cache.get(conversation_id) is None

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_save(self, order_store, context_cache, monkeypatch):
        async def broken_invalidate(conversation_id):
            raise ConnectionError("cache down")

        monkeypatch.setattr(context_cache, "invalidate", broken_invalidate)
        order = latte_order()

        await order_store.save_with_conversation(order, "2" * 32)

        assert await order_store.find_by_id(order.id) is not None
