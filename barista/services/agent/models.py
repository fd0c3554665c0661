"""Records exchanged with the language model."""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from barista.services.menu.base import Drink
from barista.services.ordering.models import Customizations, DrinkSize


class Intent(str, Enum):
    """What the customer wants to do with this message."""

    ORDER_DRINK = "order_drink"  # Add one or more drinks
    MODIFY_ORDER = "modify_order"  # Change or remove items
    CONFIRM_ORDER = "confirm_order"  # Done ordering, lock the order
    PROCESS_PAYMENT = "process_payment"  # Pay for a confirmed order
    CANCEL_ORDER = "cancel_order"
    ASK_QUESTION = "ask_question"  # Menu, prices, recommendations
    GREETING = "greeting"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Optional[str]) -> "Intent":
        """Map a free-form label to an intent; anything unrecognized is UNKNOWN."""
        label = (value or "").strip().lower()
        aliases = {
            "get_recommendations": cls.ASK_QUESTION,
            "remove_item": cls.MODIFY_ORDER,
            "farewell": cls.GREETING,
            "other": cls.UNKNOWN,
        }
        if label in aliases:
            return aliases[label]
        for intent in cls:
            if intent.value == label:
                return intent
        return cls.UNKNOWN


class SuggestedActionType(str, Enum):
    """Follow-up actions the model proposes alongside its reply."""

    ADD_ITEM = "add_item"
    UPDATE_ITEM = "update_item"
    REMOVE_ITEM = "remove_item"
    CONFIRM_ORDER = "confirm_order"
    CANCEL_ORDER = "cancel_order"
    SEARCH_DRINKS = "search_drinks"
    GET_SUMMARY = "get_summary"
    GET_FULL_MENU = "get_full_menu"
    GET_DRINK_DETAILS = "get_drink_details"


class SuggestedAction(BaseModel):
    type: SuggestedActionType
    payload: Dict[str, Any] = {}


class ExtractedOrderItem(BaseModel):
    """A drink the model extracted from the customer's message."""

    drink_name: str
    size: Optional[DrinkSize] = None
    quantity: int = 1
    customizations: Customizations = Customizations()
    confidence: float = 1.0


class ModificationAction(str, Enum):
    MODIFY = "modify"
    REMOVE = "remove"


class ModificationChanges(BaseModel):
    new_quantity: Optional[int] = None
    new_size: Optional[DrinkSize] = None
    add_customizations: Optional[Customizations] = None
    remove_customizations: List[str] = []


class ExtractedModification(BaseModel):
    """A change to an existing order line.

    item_index is 1-based, as spoken by the customer ("the second one").
    """

    action: ModificationAction
    item_index: Optional[int] = None
    drink_name: Optional[str] = None
    changes: ModificationChanges = ModificationChanges()
    confidence: float = 1.0


class NluRequest(BaseModel):
    """Everything the model sees for one turn."""

    user_message: str
    conversation_history: str = ""
    relevant_drinks: List[Drink] = []
    current_order_summary: Optional[str] = None


class NluResponse(BaseModel):
    """Structured result of one model call."""

    reply: str
    intent: Intent = Intent.UNKNOWN
    # Single extraction kept for older adapters; extracted_orders wins when set
    extracted_order: Optional[ExtractedOrderItem] = None
    extracted_orders: Optional[List[ExtractedOrderItem]] = None
    extracted_modifications: List[ExtractedModification] = Field(default_factory=list)
    suggested_actions: List[SuggestedAction] = Field(default_factory=list)
