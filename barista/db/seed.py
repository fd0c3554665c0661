"""Load the bundled drink catalogue into an empty drinks table."""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from barista.services.menu.in_memory_menu import InMemoryMenuProvider
from barista.services.menu.sql_menu import SqlMenuProvider

logger = logging.getLogger(__name__)


async def seed_menu(db: AsyncSession, menu_file: Optional[str] = None) -> int:
    """Insert the YAML menu when no drinks are stored yet.

    Returns the number of drinks inserted.
    """
    store = SqlMenuProvider(db)
    existing = await store.count()
    if existing:
        logger.info(f"[SEED] Menu already has {existing} drinks, skipping")
        return 0

    drinks = await InMemoryMenuProvider(menu_file).find_all()
    await store.save_many(drinks)
    logger.info(f"[SEED] Inserted {len(drinks)} drinks")
    return len(drinks)
