"""Menu API endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from typing import List, Optional

from barista.core.dependencies import get_menu_repository, get_semantic_search
from barista.services.menu.base import Drink
from barista.services.menu.repository import MenuRepository
from barista.services.search.base import SemanticSearch


router = APIRouter()
logger = logging.getLogger(__name__)


class DrinkResponse(BaseModel):
    """Menu drink response model."""
    id: str
    name: str
    description: str
    price: str
    price_cents: int
    category: Optional[str] = None
    customizations: List[str] = []

    @classmethod
    def from_drink(cls, drink: Drink) -> "DrinkResponse":
        return cls(
            id=drink.id,
            name=drink.name,
            description=drink.description,
            price=drink.price.format(),
            price_cents=drink.price.cents,
            category=drink.category,
            customizations=drink.capabilities.supported(),
        )


class MenuResponse(BaseModel):
    """Menu response model."""
    items: List[DrinkResponse]
    categories: List[str] = []


class DrinkMatchResponse(BaseModel):
    drink: DrinkResponse
    score: float


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(
    request: Request,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the full menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        drinks = await menu_repository.find_all()
    except Exception as e:
        logger.error(
            f"[MENU] Error fetching menu - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail=f"Error fetching menu: {str(e)}")

    categories: List[str] = []
    for drink in drinks:
        if drink.category and drink.category not in categories:
            categories.append(drink.category)
    logger.info(f"[MENU] Menu loaded - {len(drinks)} drinks, {len(categories)} categories")
    return MenuResponse(
        items=[DrinkResponse.from_drink(drink) for drink in drinks],
        categories=categories,
    )


@router.get("/api/menu/search", response_model=List[DrinkMatchResponse])
async def search_menu(
    q: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    search: SemanticSearch = Depends(get_semantic_search),
):
    """Find drinks similar to a free-text description."""
    logger.info(f"[MENU] Search requested - q: {q!r}, limit: {limit}")
    try:
        matches = await search.find_similar(q, limit)
    except Exception as e:
        logger.error(
            f"[MENU] Error searching menu - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=502, detail=f"Error searching menu: {str(e)}")
    return [
        DrinkMatchResponse(drink=DrinkResponse.from_drink(match.drink), score=match.score)
        for match in matches
    ]


@router.get("/api/menu/drinks/{drink_id}", response_model=DrinkResponse)
async def get_drink(
    drink_id: str,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get one drink by id."""
    logger.info(f"[MENU] Drink requested - id: {drink_id}")
    drink = await menu_repository.find_by_id(drink_id)
    if drink is None:
        raise HTTPException(status_code=404, detail=f"Drink with ID '{drink_id}' not found")
    return DrinkResponse.from_drink(drink)
