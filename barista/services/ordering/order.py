"""Order aggregate."""
from datetime import datetime
from typing import List, Optional, Tuple

from barista.core.config import OrderingLimits
from barista.services.ordering.errors import InvalidOrderError
from barista.services.ordering.models import (
    Money,
    OrderItem,
    OrderStatus,
    new_id,
    utcnow,
)


class Order:
    """A customer order. Items are only reachable through the aggregate."""

    def __init__(
        self,
        order_id: Optional[str] = None,
        status: OrderStatus = OrderStatus.PENDING,
        items: Optional[List[OrderItem]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        limits: Optional[OrderingLimits] = None,
    ):
        now = utcnow()
        self.id = order_id or new_id()
        self._status = status
        self._items: List[OrderItem] = list(items or [])
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        self.limits = limits or OrderingLimits()

    @classmethod
    def create(cls, limits: Optional[OrderingLimits] = None) -> "Order":
        return cls(limits=limits)

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def items(self) -> Tuple[OrderItem, ...]:
        return tuple(self._items)

    @property
    def total_price(self) -> Money:
        total = Money.zero()
        for item in self._items:
            total = total.add(item.total_price)
        return total

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items)

    def add_item(self, item: OrderItem) -> None:
        """Add an item, merging it into an existing line with the same drink, size and customizations."""
        self._ensure_can_be_modified()
        self._ensure_item_quantity(item.quantity)
        self._ensure_total_quantity(self.total_quantity + item.quantity)

        for index, existing in enumerate(self._items):
            if existing.same_line_as(item):
                merged_quantity = existing.quantity + item.quantity
                self._ensure_item_quantity(merged_quantity)
                self._items[index] = existing.with_quantity(merged_quantity)
                break
        else:
            self._items.append(item)
        self._touch()

    def remove_item_at(self, index: int) -> OrderItem:
        self._ensure_can_be_modified()
        self._ensure_index(index)
        removed = self._items.pop(index)
        self._touch()
        return removed

    def replace_item_at(self, index: int, item: OrderItem) -> None:
        self._ensure_can_be_modified()
        self._ensure_index(index)
        self._ensure_item_quantity(item.quantity)
        self._ensure_total_quantity(
            self.total_quantity - self._items[index].quantity + item.quantity
        )
        self._items[index] = item
        self._touch()

    def confirm(self) -> None:
        if self._status is not OrderStatus.PENDING:
            raise InvalidOrderError("Only pending orders can be confirmed")
        if not self._items:
            raise InvalidOrderError("Cannot confirm an empty order")
        self._status = OrderStatus.CONFIRMED
        self._touch()

    def complete(self) -> None:
        if self._status is not OrderStatus.CONFIRMED:
            raise InvalidOrderError("Only confirmed orders can be completed")
        self._status = OrderStatus.COMPLETED
        self._touch()

    def cancel(self) -> None:
        if self._status is OrderStatus.COMPLETED:
            raise InvalidOrderError("Cannot cancel a completed order")
        if self._status is OrderStatus.CANCELLED:
            raise InvalidOrderError("Order is already cancelled")
        self._status = OrderStatus.CANCELLED
        self._touch()

    def can_be_confirmed(self) -> bool:
        return self._status is OrderStatus.PENDING and bool(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def to_summary(self) -> str:
        """Plain-text summary used as context for the language model."""
        if not self._items:
            return "Empty order"
        lines = [f"Order {self.id} ({self._status.value}):"]
        lines.extend(
            f"{index}. {item.to_summary()}"
            for index, item in enumerate(self._items, start=1)
        )
        lines.append(f"Total: {self.total_price.format()}")
        return "\n".join(lines)

    def _ensure_can_be_modified(self) -> None:
        if not self._status.can_be_modified:
            raise InvalidOrderError(
                f"Cannot modify order in '{self._status.value}' status"
            )

    def _ensure_index(self, index: int) -> None:
        if index < 0 or index >= len(self._items):
            raise InvalidOrderError(f"No item at position {index + 1}")

    def _ensure_item_quantity(self, quantity: int) -> None:
        if quantity > self.limits.max_item_quantity:
            raise InvalidOrderError(
                f"Cannot order more than {self.limits.max_item_quantity} of one drink"
            )

    def _ensure_total_quantity(self, total: int) -> None:
        if total > self.limits.max_total_items:
            raise InvalidOrderError(
                f"Cannot add items. Maximum total items is {self.limits.max_total_items}"
            )

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Order) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Order(id={self.id!r}, status={self._status.value!r}, items={len(self._items)})"
