"""Order value objects."""
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, Optional
from pydantic import BaseModel, ConfigDict, model_validator

from barista.services.ordering.errors import InvalidValueError

CUSTOMIZATION_KEYS = ("milk", "syrup", "sweetener", "topping")

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def new_id() -> str:
    """Generate a new entity identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_id(value: Optional[str]) -> bool:
    """Check whether a string looks like an identifier produced by new_id."""
    return bool(value) and bool(_ID_PATTERN.match(value.strip().lower()))


class Money(BaseModel):
    """Amount of money in minor units."""

    model_config = ConfigDict(frozen=True)

    cents: int
    currency: str = "USD"

    @model_validator(mode="after")
    def check_values(self) -> "Money":
        if self.cents < 0:
            raise InvalidValueError("money", "amount cannot be negative")
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise InvalidValueError("money", f"'{self.currency}' is not a 3-letter currency code")
        return self

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(cents=0, currency=currency)

    @classmethod
    def from_dollars(cls, amount: float, currency: str = "USD") -> "Money":
        return cls(cents=int(round(amount * 100)), currency=currency)

    def add(self, other: "Money") -> "Money":
        if other.currency != self.currency:
            raise InvalidValueError(
                "money", f"cannot add {other.currency} to {self.currency}"
            )
        return Money(cents=self.cents + other.cents, currency=self.currency)

    def multiply(self, factor: int) -> "Money":
        if factor < 0:
            raise InvalidValueError("money", "factor cannot be negative")
        return Money(cents=self.cents * factor, currency=self.currency)

    def format(self) -> str:
        """Render as $4.75 for USD, or '4.75 EUR' otherwise."""
        amount = f"{self.cents // 100}.{self.cents % 100:02d}"
        if self.currency == "USD":
            return f"${amount}"
        return f"{amount} {self.currency}"

    def __str__(self) -> str:
        return self.format()


class DrinkSize(str, Enum):
    """Cup sizes."""

    TALL = "tall"
    GRANDE = "grande"
    VENTI = "venti"

    @classmethod
    def from_string(cls, value: str) -> "DrinkSize":
        normalized = (value or "").strip().lower()
        for size in cls:
            if size.value == normalized:
                return size
        raise InvalidValueError("size", f"'{value}' is not one of tall, grande, venti")

    @property
    def capacity_oz(self) -> int:
        return {"tall": 12, "grande": 16, "venti": 20}[self.value]


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def can_be_modified(self) -> bool:
        return self is OrderStatus.PENDING

    @property
    def is_active(self) -> bool:
        return self in (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class Customizations(BaseModel):
    """Optional drink customizations, one value per axis."""

    model_config = ConfigDict(frozen=True)

    milk: Optional[str] = None
    syrup: Optional[str] = None
    sweetener: Optional[str] = None
    topping: Optional[str] = None

    def merged(
        self,
        adds: Optional["Customizations"] = None,
        removes: Iterable[str] = (),
    ) -> "Customizations":
        """Return a copy with `adds` applied and the `removes` axes cleared.

        Removes accept either an axis name ("milk") or the current value of an
        axis ("oat milk").
        """
        values: Dict[str, Optional[str]] = self.as_dict()
        if adds is not None:
            for key, value in adds.as_dict().items():
                if value:
                    values[key] = value
        for entry in removes:
            target = (entry or "").strip().lower()
            for key in CUSTOMIZATION_KEYS:
                current = values.get(key)
                if target == key or (current and current.lower() == target):
                    values[key] = None
        return Customizations(**values)

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {key: getattr(self, key) for key in CUSTOMIZATION_KEYS}

    def is_empty(self) -> bool:
        return not any(self.as_dict().values())

    def describe(self) -> str:
        parts = []
        for key in CUSTOMIZATION_KEYS:
            value = getattr(self, key)
            if not value:
                continue
            # "oat" -> "oat milk", but keep "oat milk" and "whipped cream" as is
            if key in ("milk", "syrup") and key not in value.lower():
                value = f"{value} {key}"
            parts.append(value)
        return ", ".join(parts)


class OrderItem(BaseModel):
    """One line of an order."""

    model_config = ConfigDict(frozen=True)

    drink_id: str
    drink_name: str
    size: Optional[DrinkSize] = None
    quantity: int = 1
    unit_price: Money
    customizations: Customizations = Customizations()

    @model_validator(mode="after")
    def check_values(self) -> "OrderItem":
        if not self.drink_name.strip():
            raise InvalidValueError("order item", "drink name cannot be empty")
        if self.quantity < 1:
            raise InvalidValueError("quantity", "must be at least 1")
        return self

    @property
    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)

    def _replace(self, **changes) -> "OrderItem":
        # model_copy skips validation
        data = {
            "drink_id": self.drink_id,
            "drink_name": self.drink_name,
            "size": self.size,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "customizations": self.customizations,
        }
        data.update(changes)
        return OrderItem(**data)

    def with_quantity(self, quantity: int) -> "OrderItem":
        return self._replace(quantity=quantity)

    def with_size(self, size: Optional[DrinkSize]) -> "OrderItem":
        return self._replace(size=size)

    def with_customizations(
        self,
        adds: Optional[Customizations] = None,
        removes: Iterable[str] = (),
    ) -> "OrderItem":
        return self._replace(customizations=self.customizations.merged(adds, removes))

    def same_line_as(self, other: "OrderItem") -> bool:
        """Two items belong on the same line when only their quantity differs."""
        return (
            self.drink_id == other.drink_id
            and self.size == other.size
            and self.customizations == other.customizations
        )

    def to_summary(self) -> str:
        """e.g. '2x Caffè Latte (grande) with oat milk, vanilla syrup - $9.50'"""
        text = f"{self.quantity}x {self.drink_name}"
        if self.size is not None:
            text += f" ({self.size.value})"
        if not self.customizations.is_empty():
            text += f" with {self.customizations.describe()}"
        return f"{text} - {self.total_price.format()}"
