"""In-memory menu provider."""
import yaml
from pathlib import Path
from typing import List, Optional
from barista.services.menu.base import (
    CustomizationCapabilities,
    Drink,
    MenuProvider,
    drink_id_for,
)
from barista.services.ordering.models import Money


class InMemoryMenuProvider(MenuProvider):
    """In-memory menu provider using YAML configuration."""

    def __init__(self, menu_file: Optional[str] = None):
        """Initialize with optional menu file path."""
        if menu_file is None:
            menu_file = Path(__file__).parent / "data" / "drinks.yaml"
        self.menu_file = Path(menu_file)
        self._menu: Optional[List[Drink]] = None

    async def _load_menu(self) -> List[Drink]:
        """Load drinks from YAML file."""
        if self._menu is None:
            if not self.menu_file.exists():
                self._menu = []
            else:
                with open(self.menu_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                self._menu = [self._to_drink(entry) for entry in data.get("drinks", [])]
        return self._menu

    @staticmethod
    def _to_drink(entry: dict) -> Drink:
        name = entry["name"]
        return Drink(
            id=entry.get("id") or drink_id_for(name),
            name=name,
            description=entry.get("description", ""),
            price=Money(
                cents=entry.get("price_cents", 0),
                currency=entry.get("currency", "USD"),
            ),
            category=entry.get("category"),
            capabilities=CustomizationCapabilities.from_axes(
                entry.get("customizations", [])
            ),
        )

    async def find_all(self) -> List[Drink]:
        """Get every drink on the menu."""
        return list(await self._load_menu())

    async def find_by_name(self, name: str) -> Optional[Drink]:
        """Get a drink by name."""
        menu = await self._load_menu()
        name_lower = name.lower().strip()
        for drink in menu:
            if drink.name.lower() == name_lower:
                return drink
        return None
