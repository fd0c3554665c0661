"""Order API endpoints."""
import logging
from fastapi import APIRouter, Depends, Request

from barista.api.conversations import raise_for_error
from barista.core.dependencies import get_turn_coordinator
from barista.services.conversation.coordinator import TurnCoordinator
from barista.services.conversation.responses import OrderSummary


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/orders/{order_id}", response_model=OrderSummary)
async def get_order(
    order_id: str,
    request: Request,
    coordinator: TurnCoordinator = Depends(get_turn_coordinator),
):
    """Get an order by id."""
    logger.info(
        f"[ORDERS] Request received - order: {order_id}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    result = await coordinator.get_order(order_id)
    raise_for_error(result)
    return result.value


@router.post("/api/orders/{order_id}/confirm", response_model=OrderSummary)
async def confirm_order(
    order_id: str,
    coordinator: TurnCoordinator = Depends(get_turn_coordinator),
):
    """Confirm a pending order that has at least one item."""
    logger.info(f"[ORDERS] Confirm requested - order: {order_id}")
    result = await coordinator.confirm_order(order_id)
    raise_for_error(result)
    return result.value


@router.post("/api/orders/{order_id}/cancel", response_model=OrderSummary)
async def cancel_order(
    order_id: str,
    coordinator: TurnCoordinator = Depends(get_turn_coordinator),
):
    """Cancel a pending or confirmed order."""
    logger.info(f"[ORDERS] Cancel requested - order: {order_id}")
    result = await coordinator.cancel_order(order_id)
    raise_for_error(result)
    return result.value
