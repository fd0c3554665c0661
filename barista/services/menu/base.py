"""Menu provider interface."""
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from barista.services.ordering.models import Money

CUSTOMIZATION_AXES = ("milk", "syrup", "sweetener", "topping", "size")

# Stable ids for drinks loaded from files, so a name always maps to the same id
DRINK_NAMESPACE = uuid.UUID("6f1c7d1e-3b0a-4f53-9d7e-2a4b8c5e9f10")


def drink_id_for(name: str) -> str:
    return uuid.uuid5(DRINK_NAMESPACE, name.strip().lower()).hex


class CustomizationCapabilities(BaseModel):
    """Which customization axes a drink accepts."""

    model_config = ConfigDict(frozen=True)

    milk: bool = False
    syrup: bool = False
    sweetener: bool = False
    topping: bool = False
    size: bool = False

    @classmethod
    def from_axes(cls, axes: List[str]) -> "CustomizationCapabilities":
        wanted = {axis.strip().lower() for axis in axes}
        return cls(**{axis: axis in wanted for axis in CUSTOMIZATION_AXES})

    def supported(self) -> List[str]:
        return [axis for axis in CUSTOMIZATION_AXES if getattr(self, axis)]


class Drink(BaseModel):
    """A drink on the menu."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    price: Money
    category: Optional[str] = None
    capabilities: CustomizationCapabilities = CustomizationCapabilities()

    def supports(self, axis: str) -> bool:
        return axis in CUSTOMIZATION_AXES and getattr(self.capabilities, axis)

    def to_summary(self) -> str:
        """One-line description used for prompts and embeddings."""
        labels = {
            "milk": "milk options",
            "syrup": "syrup flavors",
            "sweetener": "sweeteners",
            "topping": "toppings",
            "size": "multiple sizes",
        }
        supported = [labels[axis] for axis in self.capabilities.supported()]
        if supported:
            customization_text = f"Available customizations: {', '.join(supported)}."
        else:
            customization_text = "No customizations available."
        return (
            f"{self.name}: {self.description} "
            f"Base price: {self.price.format()}. {customization_text}"
        )

    def to_details(self) -> str:
        """Multi-line description appended to replies when a customer asks about a drink."""
        lines = [
            f"{self.name} - {self.price.format()}",
            self.description,
        ]
        supported = self.capabilities.supported()
        if supported:
            lines.append(f"Customizable: {', '.join(supported)}")
        else:
            lines.append("No customizations available")
        return "\n".join(lines)


class MenuProvider(ABC):
    """Abstract base class for menu providers."""

    @abstractmethod
    async def find_all(self) -> List[Drink]:
        """Get every drink on the menu."""
        pass

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[Drink]:
        """Get a drink by its exact name, ignoring case."""
        pass
