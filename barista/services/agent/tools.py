"""Tool definitions offered to the model."""
from barista.services.agent.models import Intent, SuggestedActionType

SIZE_ENUM = ["tall", "grande", "venti"]

_CUSTOMIZATION_PROPERTIES = {
    "milk": {"type": "string", "description": "Milk type, e.g. oat, almond, soy, whole, nonfat, coconut"},
    "syrup": {"type": "string", "description": "Syrup flavor, e.g. vanilla, caramel, hazelnut"},
    "sweetener": {"type": "string", "description": "Sweetener, e.g. sugar, honey, stevia"},
    "topping": {"type": "string", "description": "Topping, e.g. whipped cream, caramel drizzle, cinnamon"},
}

_ITEM_REFERENCE_PROPERTIES = {
    "drink_name": {
        "type": "string",
        "description": "Name of the drink in the order (optional when item_index is given)",
    },
    "item_index": {
        "type": "integer",
        "minimum": 1,
        "description": "1-based position of the item in the order. Use when the customer says 'the first one', 'item 2', etc.",
    },
}


def _function(name: str, description: str, properties: dict, required: list = None) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required or [],
            },
        },
    }


BARISTA_TOOLS = [
    _function(
        "create_order",
        "Add a drink to the customer's order. Call once per drink when several drinks are ordered. "
        "Use the exact menu name. Default size is grande and default quantity is 1.",
        {
            "drink_name": {"type": "string", "description": "Exact drink name from the menu, e.g. 'Caffè Latte'"},
            "size": {"type": "string", "enum": SIZE_ENUM},
            "quantity": {"type": "integer", "minimum": 1, "maximum": 10},
            "customizations": {"type": "object", "properties": _CUSTOMIZATION_PROPERTIES},
        },
        ["drink_name"],
    ),
    _function(
        "modify_order",
        "Change quantity, size or customizations of an item already in the order. "
        "Identify the item by drink_name or item_index; item_index takes precedence.",
        {
            **_ITEM_REFERENCE_PROPERTIES,
            "changes": {
                "type": "object",
                "properties": {
                    "new_quantity": {
                        "type": "integer",
                        "minimum": 0,
                        "maximum": 10,
                        "description": "New quantity (0 removes the item)",
                    },
                    "new_size": {"type": "string", "enum": SIZE_ENUM},
                    "add_customizations": {"type": "object", "properties": _CUSTOMIZATION_PROPERTIES},
                    "remove_customizations": {
                        "type": "array",
                        "items": {"type": "string", "enum": list(_CUSTOMIZATION_PROPERTIES)},
                    },
                },
            },
        },
        ["changes"],
    ),
    _function(
        "remove_from_order",
        "Remove an item from the order entirely. Identify it by drink_name or item_index.",
        dict(_ITEM_REFERENCE_PROPERTIES),
    ),
    _function(
        "search_drinks",
        "Look for drinks when the customer asks for recommendations or describes what they want, "
        "e.g. 'something cold', 'a chocolate drink'.",
        {"query": {"type": "string"}},
        ["query"],
    ),
    _function(
        "confirm_order",
        "Confirm the order once the customer explicitly agrees to the summarized order.",
        {"confirmation_message": {"type": "string"}},
    ),
    _function(
        "cancel_order",
        "Cancel the whole current order when the customer explicitly asks to cancel or start over.",
        {"reason": {"type": "string"}},
    ),
    _function(
        "get_order_summary",
        "Summarize the current order when the customer asks what they have ordered.",
        {},
    ),
    _function(
        "process_payment",
        "Take payment and complete the order when the customer wants to pay. Only for confirmed orders.",
        {"payment_message": {"type": "string"}},
    ),
    _function(
        "get_full_menu",
        "Show the complete menu when the customer asks to see everything that is offered.",
        {},
    ),
    _function(
        "get_drink_details",
        "Show description, price and customization options of one drink.",
        {"drink_name": {"type": "string"}},
        ["drink_name"],
    ),
]

TOOL_INTENTS = {
    "create_order": Intent.ORDER_DRINK,
    "modify_order": Intent.MODIFY_ORDER,
    "remove_from_order": Intent.MODIFY_ORDER,
    "search_drinks": Intent.ASK_QUESTION,
    "confirm_order": Intent.CONFIRM_ORDER,
    "cancel_order": Intent.CANCEL_ORDER,
    "get_order_summary": Intent.ASK_QUESTION,
    "process_payment": Intent.PROCESS_PAYMENT,
    "get_full_menu": Intent.ASK_QUESTION,
    "get_drink_details": Intent.ASK_QUESTION,
}

TOOL_ACTIONS = {
    "create_order": SuggestedActionType.ADD_ITEM,
    "modify_order": SuggestedActionType.UPDATE_ITEM,
    "remove_from_order": SuggestedActionType.REMOVE_ITEM,
    "search_drinks": SuggestedActionType.SEARCH_DRINKS,
    "confirm_order": SuggestedActionType.CONFIRM_ORDER,
    "cancel_order": SuggestedActionType.CANCEL_ORDER,
    "get_order_summary": SuggestedActionType.GET_SUMMARY,
    # Payment reuses the confirm action with a flag in the payload
    "process_payment": SuggestedActionType.CONFIRM_ORDER,
    "get_full_menu": SuggestedActionType.GET_FULL_MENU,
    "get_drink_details": SuggestedActionType.GET_DRINK_DETAILS,
}

# Confidence assigned to extractions that arrive through a tool call
TOOL_CALL_CONFIDENCE = 0.95
