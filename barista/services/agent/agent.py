"""LLM agent service."""
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union
from openai import AsyncOpenAI, OpenAIError
from barista.core.config import settings
from barista.core.metrics import track_ai_call
from barista.services.agent.base import ConversationAI
from barista.services.agent.models import (
    ExtractedModification,
    ExtractedOrderItem,
    Intent,
    ModificationAction,
    ModificationChanges,
    NluRequest,
    NluResponse,
    SuggestedAction,
)
from barista.services.agent.prompt import get_intent_prompt, get_system_prompt
from barista.services.agent.tools import (
    BARISTA_TOOLS,
    TOOL_ACTIONS,
    TOOL_CALL_CONFIDENCE,
    TOOL_INTENTS,
)
from barista.services.ordering.errors import InvalidValueError
from barista.services.ordering.models import CUSTOMIZATION_KEYS, Customizations, DrinkSize

logger = logging.getLogger(__name__)

DEFAULT_REPLIES = {
    Intent.ORDER_DRINK: "I've added that to your order!",
    Intent.MODIFY_ORDER: "I've updated your order.",
    Intent.CANCEL_ORDER: "Your order has been cancelled.",
    Intent.CONFIRM_ORDER: "Your order is confirmed! You can go ahead and pay whenever you're ready.",
    Intent.PROCESS_PAYMENT: "Thanks for your purchase! Your order is complete. Enjoy your drinks!",
    Intent.ASK_QUESTION: "Let me help you with that.",
    Intent.GREETING: f"Welcome to {settings.restaurant_name}! What can I get started for you?",
    Intent.UNKNOWN: "How can I help you today?",
}

ERROR_REPLY = "I'm having a little trouble right now. Could you try again?"

# (tool name, raw JSON arguments)
ToolCall = Tuple[str, str]


class OpenAIConversationAI(ConversationAI):
    """Barista conversation backed by OpenAI chat completions with tool calling."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.openai_model

    def _build_messages(self, request: NluRequest) -> List[Dict[str, str]]:
        """Turn the '[role]: content' transcript back into chat messages."""
        system_prompt = get_system_prompt(
            [drink.to_summary() for drink in request.relevant_drinks],
            request.current_order_summary,
        )
        messages: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]

        current: Optional[Dict[str, str]] = None
        for line in (request.conversation_history or "").split("\n"):
            role = None
            for candidate in ("user", "assistant"):
                prefix = f"[{candidate}]: "
                if line.startswith(prefix):
                    role = candidate
                    line = line[len(prefix):]
                    break
            if role is not None:
                current = {"role": role, "content": line}
                messages.append(current)
            elif current is not None:
                # Continuation of a multi-line message
                current["content"] += "\n" + line

        messages.append({"role": "user", "content": request.user_message})
        return messages

    async def generate_response(self, request: NluRequest) -> NluResponse:
        messages = self._build_messages(request)
        logger.info(
            f"[AGENT INPUT] Message: '{request.user_message}', "
            f"{len(request.relevant_drinks)} relevant drinks, "
            f"order: {'yes' if request.current_order_summary else 'no'}"
        )
        try:
            with track_ai_call(self.model, "chat"):
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    tools=BARISTA_TOOLS,
                    tool_choice="auto",
                    temperature=0.7,
                )
        except OpenAIError as e:
            logger.error(f"[AGENT] OpenAI call failed: {type(e).__name__}: {e}", exc_info=True)
            return NluResponse(reply=ERROR_REPLY, intent=Intent.UNKNOWN)

        message = response.choices[0].message
        calls = [
            (tool_call.function.name, tool_call.function.arguments or "")
            for tool_call in (message.tool_calls or [])
        ]
        return await self._build_response(message.content or "", calls, request)

    async def stream(self, request: NluRequest) -> AsyncIterator[Union[str, NluResponse]]:
        messages = self._build_messages(request)
        try:
            with track_ai_call(self.model, "chat_stream"):
                stream = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    tools=BARISTA_TOOLS,
                    tool_choice="auto",
                    temperature=0.7,
                    stream=True,
                )
        except OpenAIError as e:
            logger.error(f"[AGENT] OpenAI stream failed: {type(e).__name__}: {e}", exc_info=True)
            yield ERROR_REPLY
            yield NluResponse(reply=ERROR_REPLY, intent=Intent.UNKNOWN)
            return

        content_parts: List[str] = []
        # Tool calls arrive in fragments keyed by their index
        partial_calls: Dict[int, Dict[str, str]] = {}
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta.content:
                content_parts.append(delta.content)
                yield delta.content
            for tool_call in delta.tool_calls or []:
                entry = partial_calls.setdefault(tool_call.index, {"name": "", "arguments": ""})
                if tool_call.function is not None:
                    entry["name"] += tool_call.function.name or ""
                    entry["arguments"] += tool_call.function.arguments or ""

        calls = [
            (entry["name"], entry["arguments"])
            for _, entry in sorted(partial_calls.items())
        ]
        yield await self._build_response("".join(content_parts), calls, request)

    async def _build_response(
        self, content: str, calls: List[ToolCall], request: NluRequest
    ) -> NluResponse:
        items: List[ExtractedOrderItem] = []
        modifications: List[ExtractedModification] = []
        actions: List[SuggestedAction] = []
        primary_tool: Optional[str] = None

        for name, raw_arguments in calls:
            if name not in TOOL_ACTIONS:
                logger.warning(f"[AGENT] Ignoring unknown tool call '{name}'")
                continue
            arguments = self._parse_arguments(name, raw_arguments)
            logger.info(f"[AGENT TOOL] {name}: {arguments}")
            primary_tool = primary_tool or name

            if name == "create_order":
                item = self._to_order_item(arguments)
                if item is not None:
                    items.append(item)
            elif name in ("modify_order", "remove_from_order"):
                modifications.append(self._to_modification(name, arguments))

            payload = dict(arguments)
            if name == "process_payment":
                payload["is_payment"] = True
            actions.append(SuggestedAction(type=TOOL_ACTIONS[name], payload=payload))

        if primary_tool is not None:
            intent = TOOL_INTENTS[primary_tool]
        else:
            intent = await self.detect_intent(request.user_message, request.conversation_history)

        reply = content.strip() or DEFAULT_REPLIES[intent]
        logger.info(
            f"[AGENT OUTPUT] Intent: {intent.value}, items: {len(items)}, "
            f"modifications: {len(modifications)}, actions: {[a.type.value for a in actions]}"
        )
        return NluResponse(
            reply=reply,
            intent=intent,
            extracted_order=items[0] if items else None,
            extracted_orders=items or None,
            extracted_modifications=modifications,
            suggested_actions=actions,
        )

    async def detect_intent(self, user_message: str, conversation_history: str = "") -> Intent:
        """Classify a message that produced no tool calls."""
        try:
            with track_ai_call(self.model, "intent"):
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": get_intent_prompt(user_message, conversation_history)}],
                    temperature=0,
                    response_format={"type": "json_object"},
                )
            content = response.choices[0].message.content or "{}"
            return Intent.parse(json.loads(content).get("intent"))
        except (OpenAIError, json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"[AGENT] Intent detection failed: {type(e).__name__}: {e}")
            return Intent.UNKNOWN

    @staticmethod
    def _parse_arguments(name: str, raw_arguments: str) -> Dict[str, Any]:
        if not raw_arguments:
            return {}
        try:
            arguments = json.loads(raw_arguments)
        except json.JSONDecodeError:
            logger.warning(f"[AGENT] Could not parse arguments for {name}: {raw_arguments!r}")
            return {}
        return arguments if isinstance(arguments, dict) else {}

    @staticmethod
    def _to_int(value: Any) -> Optional[int]:
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _to_size(value: Any) -> Optional[DrinkSize]:
        if not value:
            return None
        try:
            return DrinkSize.from_string(str(value))
        except InvalidValueError:
            return None

    @staticmethod
    def _to_customizations(value: Any) -> Customizations:
        if not isinstance(value, dict):
            return Customizations()
        return Customizations(
            **{key: str(value[key]) for key in CUSTOMIZATION_KEYS if value.get(key)}
        )

    def _to_order_item(self, arguments: Dict[str, Any]) -> Optional[ExtractedOrderItem]:
        drink_name = str(arguments.get("drink_name") or "").strip()
        if not drink_name:
            return None
        size = self._to_size(arguments.get("size"))
        if arguments.get("size") and size is None:
            # Unrecognized sizes fall back to the default cup
            size = DrinkSize.GRANDE
        return ExtractedOrderItem(
            drink_name=drink_name,
            size=size,
            quantity=self._to_int(arguments.get("quantity")) or 1,
            customizations=self._to_customizations(arguments.get("customizations")),
            confidence=TOOL_CALL_CONFIDENCE,
        )

    def _to_modification(self, name: str, arguments: Dict[str, Any]) -> ExtractedModification:
        changes = arguments.get("changes") if isinstance(arguments.get("changes"), dict) else {}
        removes = changes.get("remove_customizations")
        if not isinstance(removes, list):
            removes = []
        add_customizations = None
        if isinstance(changes.get("add_customizations"), dict):
            add_customizations = self._to_customizations(changes["add_customizations"])
        return ExtractedModification(
            action=ModificationAction.REMOVE if name == "remove_from_order" else ModificationAction.MODIFY,
            item_index=self._to_int(arguments.get("item_index")),
            drink_name=(str(arguments["drink_name"]).strip() or None) if arguments.get("drink_name") else None,
            changes=ModificationChanges(
                new_quantity=self._to_int(changes.get("new_quantity")),
                new_size=self._to_size(changes.get("new_size")),
                add_customizations=add_customizations,
                remove_customizations=[str(entry) for entry in removes if entry],
            ),
            confidence=TOOL_CALL_CONFIDENCE,
        )
