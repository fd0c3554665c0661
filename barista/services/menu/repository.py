"""Menu repository."""
from typing import Dict, List, Optional
from barista.services.menu.base import Drink, MenuProvider

# Checked in order; the first matching group wins
MENU_GROUPS = [
    ("Seasonal", ("pumpkin",)),
    ("Frappuccinos", ("frappuccino",)),
    ("Refreshers", ("refresher", "pink drink", "dragon drink")),
    ("Teas", ("tea", "chai", "matcha")),
    ("Cold Brew & Iced Coffee", ("cold brew", "iced")),
    ("Espresso & Coffee", ("espresso", "latte", "cappuccino", "macchiato", "americano", "mocha", "flat white", "coffee")),
]
OTHER_GROUP = "Other"


def menu_group(drink: Drink) -> str:
    """Pick a display group from keywords in the drink name."""
    name = drink.name.lower()
    for group, keywords in MENU_GROUPS:
        if any(keyword in name for keyword in keywords):
            return group
    return OTHER_GROUP


class MenuRepository:
    """Repository for menu operations."""

    def __init__(self, provider: MenuProvider):
        self.provider = provider

    async def find_all(self) -> List[Drink]:
        """Get every drink."""
        return await self.provider.find_all()

    async def find_by_name(self, name: str) -> Optional[Drink]:
        """Get drink by name."""
        if not name or not name.strip():
            return None
        return await self.provider.find_by_name(name)

    async def find_by_id(self, drink_id: str) -> Optional[Drink]:
        for drink in await self.provider.find_all():
            if drink.id == drink_id:
                return drink
        return None

    async def get_menu_text(self) -> str:
        """Get menu as formatted text, grouped by kind of drink."""
        drinks = await self.find_all()
        grouped: Dict[str, List[Drink]] = {}
        for drink in drinks:
            grouped.setdefault(menu_group(drink), []).append(drink)

        lines = ["Menu:"]
        for group in [name for name, _ in MENU_GROUPS] + [OTHER_GROUP]:
            if group not in grouped:
                continue
            lines.append(f"\n{group}:")
            for drink in grouped[group]:
                lines.append(f"  - {drink.name} {drink.price.format()}")
        return "\n".join(lines)
