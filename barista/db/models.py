"""Database models."""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(Base):
    """Conversation model."""

    __tablename__ = "conversations"

    id = Column(String(32), primary_key=True)
    current_order_id = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.position",
    )
    orders = relationship("Order", back_populates="conversation")


class Message(Base):
    """Conversation message model."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(String(32), ForeignKey("conversations.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    role = Column(String, nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")


class Order(Base):
    """Order model."""

    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    conversation_id = Column(String(32), ForeignKey("conversations.id"), nullable=False, index=True)
    status = Column(String, default="pending", nullable=False)  # pending, confirmed, completed, cancelled
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    conversation = relationship("Conversation", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )


class OrderItem(Base):
    """Order item model."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, nullable=False)
    drink_id = Column(String(32), nullable=False)
    drink_name = Column(String, nullable=False)
    size = Column(String, nullable=True)  # tall, grande, venti
    quantity = Column(Integer, default=1, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    customizations = Column(JSON, nullable=True)  # {"milk": "oat", "syrup": "vanilla", ...}

    # Relationships
    order = relationship("Order", back_populates="items")


class Drink(Base):
    """Menu drink model."""

    __tablename__ = "drinks"

    id = Column(String(32), primary_key=True)
    name = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    price_cents = Column(Integer, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    category = Column(String, nullable=True)
    customizations = Column(JSON, nullable=True)  # list of supported axes
