"""Resolve the drink name a customer used to a drink on the menu."""
import logging
from typing import List, Optional, Sequence

from barista.core.config import OrderingLimits
from barista.services.menu.base import Drink
from barista.services.menu.repository import MenuRepository
from barista.services.search.base import SemanticSearch

logger = logging.getLogger(__name__)

# Plural "s" is only stripped when the singular ends with one of these
PLURAL_SUFFIXES = (
    "latte",
    "mocha",
    "macchiato",
    "cappuccino",
    "americano",
    "espresso",
    "frappuccino",
    "refresher",
    "brew",
    "chai",
    "coffee",
    "tea",
    "drink",
    "white",
    "chocolate",
)

# Colloquial and Spanish names, keyed by normalized form
DRINK_ALIASES = {
    "latte": "Caffè Latte",
    "caffe latte": "Caffè Latte",
    "cafe latte": "Caffè Latte",
    "leche": "Caffè Latte",
    "café con leche": "Caffè Latte",
    "cafe con leche": "Caffè Latte",
    "capuchino": "Cappuccino",
    "mocha": "Caffè Mocha",
    "moca": "Caffè Mocha",
    "caffe mocha": "Caffè Mocha",
    "cafe mocha": "Caffè Mocha",
    "chocolate caliente": "Hot Chocolate",
    "hot cocoa": "Hot Chocolate",
    "chai": "Chai Tea Latte",
    "chai latte": "Chai Tea Latte",
    "te chai": "Chai Tea Latte",
    "té chai": "Chai Tea Latte",
    "matcha": "Matcha Green Tea Latte",
    "matcha latte": "Matcha Green Tea Latte",
    "americano helado": "Iced Americano",
    "cafe helado": "Iced Coffee",
    "café helado": "Iced Coffee",
    "psl": "Pumpkin Spice Latte",
}


def normalize_drink_name(name: str) -> str:
    """Lowercase, trim and strip a plural 's' from known drink names."""
    normalized = " ".join((name or "").lower().split())
    if normalized.endswith("s"):
        singular = normalized[:-1]
        if singular.endswith(PLURAL_SUFFIXES):
            return singular
    return normalized


class DrinkResolver:
    """Maps free-form drink names to menu drinks, cheapest strategies first."""

    def __init__(
        self,
        menu_repository: MenuRepository,
        search: Optional[SemanticSearch] = None,
        limits: Optional[OrderingLimits] = None,
    ):
        self.menu_repository = menu_repository
        self.search = search
        self.limits = limits or OrderingLimits()

    async def resolve(self, name: str, candidates: Sequence[Drink] = ()) -> Optional[Drink]:
        if not name or not name.strip():
            return None

        normalized = normalize_drink_name(name)
        raw = " ".join(name.lower().split())
        keys = [raw] if raw == normalized else [raw, normalized]
        alias = DRINK_ALIASES.get(normalized) or DRINK_ALIASES.get(raw)

        drink = (
            self._exact_match(keys, candidates)
            or self._substring_match(keys, candidates)
            or (self._alias_match(alias, candidates) if alias else None)
        )
        if drink is not None:
            logger.debug(f"[DRINK RESOLVER] '{name}' -> '{drink.name}' (candidates)")
            return drink

        drink = await self.menu_repository.find_by_name(name)
        if drink is None and alias:
            drink = await self.menu_repository.find_by_name(alias)
        if drink is None and normalized != raw:
            drink = await self.menu_repository.find_by_name(normalized)
        if drink is not None:
            logger.debug(f"[DRINK RESOLVER] '{name}' -> '{drink.name}' (menu)")
            return drink

        drink = await self._semantic_match(name)
        if drink is None:
            logger.info(f"[DRINK RESOLVER] No drink found for '{name}'")
        return drink

    @staticmethod
    def _exact_match(keys: List[str], candidates: Sequence[Drink]) -> Optional[Drink]:
        for drink in candidates:
            if drink.name.lower() in keys:
                return drink
        return None

    @staticmethod
    def _substring_match(keys: List[str], candidates: Sequence[Drink]) -> Optional[Drink]:
        for drink in candidates:
            drink_name = drink.name.lower()
            if any(key in drink_name or drink_name in key for key in keys):
                return drink
        return None

    @staticmethod
    def _alias_match(alias: str, candidates: Sequence[Drink]) -> Optional[Drink]:
        target = alias.lower()
        for drink in candidates:
            if drink.name.lower() == target:
                return drink
        return None

    async def _semantic_match(self, name: str) -> Optional[Drink]:
        if self.search is None:
            return None
        try:
            matches = await self.search.find_similar(name, 1)
        except Exception as e:
            logger.warning(
                f"[DRINK RESOLVER] Semantic search failed for '{name}': {e}", exc_info=True
            )
            return None
        if matches and matches[0].score > self.limits.semantic_threshold:
            logger.debug(
                f"[DRINK RESOLVER] '{name}' -> '{matches[0].drink.name}' "
                f"(similarity {matches[0].score:.2f})"
            )
            return matches[0].drink
        return None
