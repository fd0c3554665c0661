"""Collect the extractions worth acting on from a model response."""
from typing import List, Optional

from barista.core.config import OrderingLimits
from barista.services.agent.models import (
    ExtractedModification,
    ExtractedOrderItem,
    NluResponse,
)


class ExtractionAggregator:
    """Filters extracted items and modifications by confidence, keeping their order."""

    def __init__(self, limits: Optional[OrderingLimits] = None):
        self.limits = limits or OrderingLimits()

    def collect_items(self, response: NluResponse) -> List[ExtractedOrderItem]:
        if response.extracted_orders is not None:
            items = list(response.extracted_orders)
        elif response.extracted_order is not None:
            items = [response.extracted_order]
        else:
            items = []
        return [
            item
            for item in items
            if item.drink_name.strip() and item.confidence >= self.limits.confidence_floor
        ]

    def collect_modifications(self, response: NluResponse) -> List[ExtractedModification]:
        return [
            modification
            for modification in response.extracted_modifications
            if modification.confidence >= self.limits.confidence_floor
        ]

    def primary_item(self, response: NluResponse) -> Optional[ExtractedOrderItem]:
        items = self.collect_items(response)
        return items[0] if items else None
