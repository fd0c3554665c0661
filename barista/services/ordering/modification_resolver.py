"""Locate the order line a modification refers to."""
from typing import Optional

from barista.services.agent.models import ExtractedModification
from barista.services.ordering.order import Order


def resolve_index(modification: ExtractedModification, order: Order) -> Optional[int]:
    """Return the 0-based position of the targeted item, or None.

    A 1-based item_index within range wins. Otherwise the drink name is matched
    case-insensitively: exact name first, then containment in either direction.
    Out-of-range indexes are never clamped.
    """
    items = order.items
    index = modification.item_index
    if index is not None and 1 <= index <= len(items):
        return index - 1

    target = " ".join((modification.drink_name or "").lower().split())
    if not target:
        return None

    for position, item in enumerate(items):
        if item.drink_name.lower() == target:
            return position
    for position, item in enumerate(items):
        name = item.drink_name.lower()
        if target in name or name in target:
            return position
    return None
