"""Unit tests for the OpenAI-backed conversation AI."""
import json
import pytest
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock
from openai import OpenAIError

from barista.services.agent.agent import DEFAULT_REPLIES, ERROR_REPLY, OpenAIConversationAI
from barista.services.agent.models import (
    Intent,
    ModificationAction,
    NluRequest,
    SuggestedActionType,
)
from barista.services.agent.prompt import get_system_prompt
from barista.services.agent.tools import BARISTA_TOOLS
from barista.services.ordering.models import DrinkSize


def tool_call(name: str, arguments: dict, index: int = 0):
    return SimpleNamespace(
        index=index,
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments)),
    )


def completion(content=None, tool_calls=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))]
    )


def request(message: str = "Hi", history: str = "") -> NluRequest:
    return NluRequest(user_message=message, conversation_history=history)


class TestGenerateResponse:
    """Test turning completions into structured responses."""

    @pytest.mark.asyncio
    async def test_create_order_tool(self, mock_openai):
        mock_openai.chat.completions.create.return_value = completion(
            content="Two lattes coming up!",
            tool_calls=[
                tool_call(
                    "create_order",
                    {
                        "drink_name": "latte",
                        "size": "venti",
                        "quantity": 2,
                        "customizations": {"milk": "oat", "flavor": "ignored"},
                    },
                ),
                tool_call("create_order", {"drink_name": "Espresso", "size": "huge"}),
            ],
        )
        ai = OpenAIConversationAI(client=mock_openai, model="test-model")

        response = await ai.generate_response(request("Two venti oat lattes and an espresso"))

        assert response.intent is Intent.ORDER_DRINK
        assert response.reply == "Two lattes coming up!"
        latte, espresso = response.extracted_orders
        assert latte.drink_name == "latte"
        assert latte.size is DrinkSize.VENTI
        assert latte.quantity == 2
        assert latte.customizations.milk == "oat"
        assert latte.confidence == pytest.approx(0.95)
        assert espresso.size is DrinkSize.GRANDE
        assert response.extracted_order == latte
        assert [action.type for action in response.suggested_actions] == [
            SuggestedActionType.ADD_ITEM,
            SuggestedActionType.ADD_ITEM,
        ]

        kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["tools"] == BARISTA_TOOLS
        assert kwargs["tool_choice"] == "auto"

    @pytest.mark.asyncio
    async def test_modify_and_remove_tools(self, mock_openai):
        mock_openai.chat.completions.create.return_value = completion(
            tool_calls=[
                tool_call(
                    "modify_order",
                    {
                        "item_index": 1,
                        "changes": {
                            "new_size": "tall",
                            "add_customizations": {"syrup": "caramel"},
                            "remove_customizations": ["milk"],
                        },
                    },
                ),
                tool_call("remove_from_order", {"drink_name": "Espresso"}),
            ],
        )
        ai = OpenAIConversationAI(client=mock_openai)

        response = await ai.generate_response(request("Make the first one tall with caramel"))

        assert response.intent is Intent.MODIFY_ORDER
        assert response.reply == DEFAULT_REPLIES[Intent.MODIFY_ORDER]
        modify, remove = response.extracted_modifications
        assert modify.action is ModificationAction.MODIFY
        assert modify.item_index == 1
        assert modify.changes.new_size is DrinkSize.TALL
        assert modify.changes.add_customizations.syrup == "caramel"
        assert modify.changes.remove_customizations == ["milk"]
        assert remove.action is ModificationAction.REMOVE
        assert remove.drink_name == "Espresso"

    @pytest.mark.asyncio
    async def test_payment_flag(self, mock_openai):
        mock_openai.chat.completions.create.return_value = completion(
            content="Thanks!", tool_calls=[tool_call("process_payment", {})]
        )
        response = await OpenAIConversationAI(client=mock_openai).generate_response(request("Pay"))

        assert response.intent is Intent.PROCESS_PAYMENT
        action = response.suggested_actions[0]
        assert action.type is SuggestedActionType.CONFIRM_ORDER
        assert action.payload["is_payment"] is True

    @pytest.mark.asyncio
    async def test_malformed_arguments_are_ignored(self, mock_openai):
        broken = SimpleNamespace(index=0, function=SimpleNamespace(name="create_order", arguments="{not json"))
        mock_openai.chat.completions.create.return_value = completion(content="Hm?", tool_calls=[broken])

        response = await OpenAIConversationAI(client=mock_openai).generate_response(request("Latte"))

        assert response.intent is Intent.ORDER_DRINK
        assert response.extracted_orders is None

    @pytest.mark.asyncio
    async def test_no_tool_call_detects_intent(self, mock_openai):
        mock_openai.chat.completions.create.side_effect = [
            completion(content="We have great lattes."),
            completion(content='{"intent": "get_recommendations"}'),
        ]
        ai = OpenAIConversationAI(client=mock_openai)

        response = await ai.generate_response(request("What do you recommend?"))

        assert response.intent is Intent.ASK_QUESTION
        assert response.reply == "We have great lattes."
        second_call = mock_openai.chat.completions.create.call_args_list[1].kwargs
        assert second_call["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_openai_error_returns_apology(self, mock_openai):
        mock_openai.chat.completions.create.side_effect = OpenAIError("rate limited")

        response = await OpenAIConversationAI(client=mock_openai).generate_response(request())

        assert response.reply == ERROR_REPLY
        assert response.intent is Intent.UNKNOWN


class TestMessages:
    def test_history_becomes_chat_messages(self, mock_openai):
        ai = OpenAIConversationAI(client=mock_openai)
        messages = ai._build_messages(
            request(
                "And a muffin?",
                "[user]: A latte\n[assistant]: Sure!\nAnything else?",
            )
        )

        assert messages[0]["role"] == "system"
        assert messages[1:] == [
            {"role": "user", "content": "A latte"},
            {"role": "assistant", "content": "Sure!\nAnything else?"},
            {"role": "user", "content": "And a muffin?"},
        ]

    def test_system_prompt_includes_drinks_and_order(self):
        prompt = get_system_prompt(
            ["Cappuccino: Foamy."],
            "Order abc (pending):\n1. 1x Cappuccino - $4.50",
            now=datetime(2024, 1, 1, 20, 0),
        )
        assert "- Cappuccino: Foamy." in prompt
        assert "CURRENT ORDER:" in prompt
        assert "decaf" in prompt


async def stream_of(*chunks):
    for chunk in chunks:
        yield chunk


def delta(content=None, tool_calls=None):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content, tool_calls=tool_calls))])


class TestStream:
    @pytest.mark.asyncio
    async def test_stream_yields_text_then_response(self, mock_openai):
        fragments = [
            SimpleNamespace(index=0, function=SimpleNamespace(name="create_order", arguments='{"drink_')),
            SimpleNamespace(index=0, function=SimpleNamespace(name=None, arguments='name": "Cappuccino"}')),
        ]
        mock_openai.chat.completions.create.return_value = stream_of(
            delta(content="One "),
            delta(content="cappuccino!"),
            delta(tool_calls=[fragments[0]]),
            delta(tool_calls=[fragments[1]]),
        )
        ai = OpenAIConversationAI(client=mock_openai)

        events = [event async for event in ai.stream(request("A cappuccino"))]

        assert events[:2] == ["One ", "cappuccino!"]
        final = events[-1]
        assert final.reply == "One cappuccino!"
        assert final.intent is Intent.ORDER_DRINK
        assert final.extracted_orders[0].drink_name == "Cappuccino"
        assert mock_openai.chat.completions.create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_error(self, mock_openai):
        mock_openai.chat.completions.create.side_effect = OpenAIError("down")
        events = [event async for event in OpenAIConversationAI(client=mock_openai).stream(request())]
        assert events[0] == ERROR_REPLY
        assert events[-1].reply == ERROR_REPLY
