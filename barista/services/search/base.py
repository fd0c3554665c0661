"""Semantic drink search interface."""
from abc import ABC, abstractmethod
from typing import List
from pydantic import BaseModel

from barista.services.menu.base import Drink


class DrinkMatch(BaseModel):
    """A drink with its similarity score in [0, 1]."""

    drink: Drink
    score: float


class SemanticSearch(ABC):
    """Abstract base class for similarity search over the menu."""

    @abstractmethod
    async def find_similar(self, text: str, limit: int) -> List[DrinkMatch]:
        """Return up to `limit` drinks ordered by descending similarity."""
        pass
