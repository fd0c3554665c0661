"""SQL-backed menu provider."""
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from barista.db.models import Drink as DrinkRecord
from barista.services.menu.base import CustomizationCapabilities, Drink, MenuProvider
from barista.services.ordering.models import Money


def record_to_drink(record: DrinkRecord) -> Drink:
    return Drink(
        id=record.id,
        name=record.name,
        description=record.description,
        price=Money(cents=record.price_cents, currency=record.currency or "USD"),
        category=record.category,
        capabilities=CustomizationCapabilities.from_axes(record.customizations or []),
    )


def drink_to_record(drink: Drink) -> DrinkRecord:
    return DrinkRecord(
        id=drink.id,
        name=drink.name,
        description=drink.description,
        price_cents=drink.price.cents,
        currency=drink.price.currency,
        category=drink.category,
        customizations=drink.capabilities.supported(),
    )


class SqlMenuProvider(MenuProvider):
    """Menu provider reading the drinks table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self) -> List[Drink]:
        result = await self.db.execute(select(DrinkRecord).order_by(DrinkRecord.name))
        return [record_to_drink(record) for record in result.scalars().all()]

    async def find_by_name(self, name: str) -> Optional[Drink]:
        result = await self.db.execute(
            select(DrinkRecord).where(func.lower(DrinkRecord.name) == name.strip().lower())
        )
        record = result.scalars().first()
        return record_to_drink(record) if record else None

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(DrinkRecord))
        return result.scalar_one()

    async def save_many(self, drinks: List[Drink]) -> None:
        for drink in drinks:
            self.db.add(drink_to_record(drink))
        await self.db.commit()
