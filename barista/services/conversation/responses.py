"""Response models returned by the turn coordinator."""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel

from barista.services.agent.models import Intent
from barista.services.conversation.models import Conversation
from barista.services.ordering.models import OrderStatus
from barista.services.ordering.order import Order


class OrderItemSummary(BaseModel):
    """Order line for display."""

    index: int  # 1-based, as customers refer to it
    drink_name: str
    size: Optional[str] = None
    quantity: int
    customizations: Dict[str, str] = {}
    price: str


class OrderSummary(BaseModel):
    """Order state for display."""

    order_id: str
    status: str
    items: List[OrderItemSummary]
    total_price: str
    item_count: int
    can_confirm: bool

    @classmethod
    def from_order(cls, order: Order) -> "OrderSummary":
        return cls(
            order_id=order.id,
            status=order.status.value,
            items=[
                OrderItemSummary(
                    index=index,
                    drink_name=item.drink_name,
                    size=item.size.value if item.size else None,
                    quantity=item.quantity,
                    customizations={
                        key: value
                        for key, value in item.customizations.as_dict().items()
                        if value
                    },
                    price=item.total_price.format(),
                )
                for index, item in enumerate(order.items, start=1)
            ],
            total_price=order.total_price.format(),
            item_count=order.total_quantity,
            can_confirm=order.can_be_confirmed(),
        )


class TurnResponse(BaseModel):
    """Outcome of one customer message."""

    reply: str
    conversation_id: str
    intent: Intent
    order: Optional[OrderSummary] = None
    suggested_replies: List[str] = []


class MessageView(BaseModel):
    role: str
    content: str
    timestamp: datetime


class ConversationHistory(BaseModel):
    """Transcript and state of a conversation."""

    conversation_id: str
    messages: List[MessageView]
    current_order_id: Optional[str] = None
    message_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationHistory":
        return cls(
            conversation_id=conversation.id,
            messages=[
                MessageView(
                    role=message.role.value,
                    content=message.content,
                    timestamp=message.timestamp,
                )
                for message in conversation.messages
            ],
            current_order_id=conversation.current_order_id,
            message_count=conversation.message_count,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


NO_ORDER_REPLIES = ["Browse our menu", "Ask about a specific drink", "Start an order"]

STATUS_REPLIES = {
    OrderStatus.PENDING: ["Add another drink", "Modify your order", "Confirm your order", "Cancel your order"],
    OrderStatus.CONFIRMED: ["Proceed to payment", "Start a new order"],
    OrderStatus.COMPLETED: ["Start a new order", "Browse our menu"],
}


def suggested_replies(order: Optional[Order]) -> List[str]:
    """Quick replies that depend only on the order status."""
    if order is None:
        return list(NO_ORDER_REPLIES)
    return list(STATUS_REPLIES.get(order.status, NO_ORDER_REPLIES))
