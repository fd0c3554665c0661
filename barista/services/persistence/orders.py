"""Order persistence service."""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.orm import selectinload

from barista.core.config import OrderingLimits
from barista.core.metrics import track_query
from barista.db.models import Order as OrderRecord
from barista.db.models import OrderItem as OrderItemRecord
from barista.services.cache.context import ContextCache
from barista.services.ordering.models import (
    Customizations,
    DrinkSize,
    Money,
    OrderItem,
    OrderStatus,
)
from barista.services.ordering.order import Order
from barista.services.persistence.base import OrderStore

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value)


class SqlOrderStore(OrderStore):
    """Stores orders and their items in SQL tables."""

    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[ContextCache] = None,
        limits: Optional[OrderingLimits] = None,
    ):
        self.db = db
        self.cache = cache
        self.limits = limits or OrderingLimits()

    def _to_order(self, record: OrderRecord) -> Order:
        return Order(
            order_id=record.id,
            status=OrderStatus(record.status),
            items=[
                OrderItem(
                    drink_id=item.drink_id,
                    drink_name=item.drink_name,
                    size=DrinkSize(item.size) if item.size else None,
                    quantity=item.quantity,
                    unit_price=Money(cents=item.unit_price_cents, currency=item.currency),
                    customizations=Customizations(**(item.customizations or {})),
                )
                for item in record.items
            ],
            created_at=record.created_at,
            updated_at=record.updated_at,
            limits=self.limits,
        )

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        """Get order by ID with items."""
        with track_query("find_by_id", "orders"):
            record = await self.db.get(
                OrderRecord, order_id, options=[selectinload(OrderRecord.items)]
            )
        return self._to_order(record) if record else None

    async def find_conversation_id(self, order_id: str) -> Optional[str]:
        result = await self.db.execute(
            select(OrderRecord.conversation_id).where(OrderRecord.id == order_id)
        )
        return result.scalar_one_or_none()

    async def find_active_by_conversation(self, conversation_id: str) -> Optional[Order]:
        with track_query("find_active", "orders"):
            result = await self.db.execute(
                select(OrderRecord)
                .where(OrderRecord.conversation_id == conversation_id)
                .where(OrderRecord.status.in_(ACTIVE_STATUSES))
                .options(selectinload(OrderRecord.items))
                .order_by(desc(OrderRecord.created_at))
                .limit(1)
            )
        record = result.scalars().first()
        return self._to_order(record) if record else None

    async def save_with_conversation(self, order: Order, conversation_id: str) -> None:
        with track_query("save", "orders"):
            await self._save(order, conversation_id)
        logger.info(
            f"[ORDER STORE] Saved order {order.id} ({order.status.value}, "
            f"{order.total_quantity} drinks) for conversation {conversation_id}"
        )
        await self._invalidate_context(conversation_id)

    async def _save(self, order: Order, conversation_id: str) -> None:
        record = await self.db.get(
            OrderRecord, order.id, options=[selectinload(OrderRecord.items)]
        )
        if record is None:
            record = OrderRecord(id=order.id, created_at=order.created_at)
            self.db.add(record)

        record.conversation_id = conversation_id
        record.status = order.status.value
        record.updated_at = order.updated_at
        record.items = [
            OrderItemRecord(
                position=position,
                drink_id=item.drink_id,
                drink_name=item.drink_name,
                size=item.size.value if item.size else None,
                quantity=item.quantity,
                unit_price_cents=item.unit_price.cents,
                currency=item.unit_price.currency,
                customizations={
                    key: value
                    for key, value in item.customizations.as_dict().items()
                    if value
                },
            )
            for position, item in enumerate(order.items)
        ]
        await self.db.commit()

    async def _invalidate_context(self, conversation_id: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.invalidate(conversation_id)
        except Exception as e:
            logger.warning(
                f"[CACHE] Could not invalidate context for {conversation_id}: {e}",
                exc_info=True,
            )
