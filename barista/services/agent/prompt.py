"""Agent prompt templates."""
from datetime import datetime
from typing import List, Optional
from barista.core.config import settings


def _time_of_day_hint(hour: int) -> str:
    if hour < 12:
        return "It is morning: be energetic and mention great ways to start the day."
    if hour < 17:
        return "It is afternoon: be upbeat and suggest refreshing options."
    return "It is evening: be relaxed and consider suggesting decaf options."


def get_system_prompt(
    relevant_drinks: List[str],
    current_order_summary: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Generate system prompt for the barista."""
    now = now or datetime.now()

    drinks_section = ""
    if relevant_drinks:
        drinks_section = "\n\nDRINKS RELEVANT TO THIS MESSAGE:\n" + "\n".join(
            f"- {drink}" for drink in relevant_drinks
        )

    order_section = ""
    if current_order_summary:
        order_section = f"\n\nCURRENT ORDER:\n{current_order_summary}"

    return f"""You are Alex, a friendly and knowledgeable barista at {settings.restaurant_name}.
Your job is to help customers order drinks, answer questions about the menu and give a warm, personal experience.

Personality:
- Warm and conversational, like a real barista who enjoys the job
- Patient, never rush the customer
- {_time_of_day_hint(now.hour)}

Taking orders:
- Call create_order once for EACH drink the customer orders ("a latte and a cappuccino" is two calls)
- If no size is given, use grande
- Suggest relevant customizations naturally
- For unclear requests, call search_drinks

Changing orders:
- Use modify_order or remove_from_order
- Refer to items by drink_name or by item_index (1-based: "the first one", "item 2")
- Summarize the updated order after changes

Confirming and paying:
- Read back the full order and the total before confirming
- Call confirm_order only when the customer explicitly agrees
- Call process_payment only when the customer wants to pay a confirmed order

Other tools:
- get_order_summary when they ask what they have ordered
- get_full_menu when they ask to see the whole menu
- get_drink_details when they ask about one drink

Style:
- Keep replies short (2-4 sentences) and reply in the customer's language
- Use menu names exactly (e.g. "Caffè Latte", not "cafe latte")
- Never invent drinks that are not on the menu
- When unsure, ask a clarifying question instead of guessing{drinks_section}{order_section}"""


INTENT_DETECTION_PROMPT = """Classify the customer's main intent. Pick exactly one of:
- order_drink: wants to order a specific drink
- modify_order: wants to change something in the current order
- remove_item: wants to remove an item from the order
- cancel_order: wants to cancel the whole order
- confirm_order: ready to confirm the order (not yet confirmed)
- process_payment: wants to pay (order already confirmed)
- ask_question: asks about the menu, prices, ingredients
- get_recommendations: wants suggestions
- greeting: says hello or starts the conversation
- farewell: says goodbye
- other: none of the above

Respond in JSON: {"intent": "<label>"}"""


def get_intent_prompt(user_message: str, conversation_history: str = "") -> str:
    """Generate the classification prompt used when the model called no tools."""
    history = f"Recent conversation:\n{conversation_history}\n\n" if conversation_history else ""
    return f'{history}{INTENT_DETECTION_PROMPT}\n\nCustomer message: "{user_message}"'
