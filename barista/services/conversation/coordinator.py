"""Dialogue turn coordinator.

One customer message runs through a fixed, sequential pipeline:

1. reject empty messages
2. load or create the conversation
3. retrieve candidate drinks by semantic similarity (failures mean no candidates)
4. load the active order, unless the context cache says there is none
5. ask the language model for a reply, an intent and extracted order data
6. apply the intent to the order
7. append menu or drink details the model asked to show
8. record both messages and the active order on the conversation and save it
9. cache a small context record for the next turn (best effort)
10. build the response

Errors come back as a Result instead of being raised.
"""
import logging
from typing import Awaitable, Callable, List, Optional

from barista.core.config import OrderingLimits
from barista.core.metrics import record_order
from barista.services.agent.base import ConversationAI
from barista.services.agent.models import NluRequest, NluResponse, SuggestedActionType
from barista.services.cache.context import ContextCache, ConversationContext
from barista.services.conversation.models import Conversation
from barista.services.conversation.responses import (
    ConversationHistory,
    OrderSummary,
    TurnResponse,
    suggested_replies,
)
from barista.services.conversation.result import Result, TurnError
from barista.services.menu.base import Drink
from barista.services.menu.repository import MenuRepository
from barista.services.ordering.aggregator import ExtractionAggregator
from barista.services.ordering.dispatcher import IntentDispatcher
from barista.services.ordering.drink_resolver import DrinkResolver
from barista.services.ordering.errors import DomainError
from barista.services.ordering.models import is_valid_id
from barista.services.ordering.order import Order
from barista.services.persistence.base import ConversationStore, OrderStore
from barista.services.search.base import SemanticSearch

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], Awaitable[None]]

FALLBACK_REPLY = "Sorry, could you say that again?"


class TurnCoordinator:
    """Runs one dialogue turn end to end."""

    def __init__(
        self,
        conversation_store: ConversationStore,
        order_store: OrderStore,
        menu_repository: MenuRepository,
        search: SemanticSearch,
        ai: ConversationAI,
        cache: Optional[ContextCache] = None,
        limits: Optional[OrderingLimits] = None,
        drink_resolver: Optional[DrinkResolver] = None,
        dispatcher: Optional[IntentDispatcher] = None,
    ):
        self.conversation_store = conversation_store
        self.order_store = order_store
        self.menu_repository = menu_repository
        self.search = search
        self.ai = ai
        self.cache = cache
        self.limits = limits or OrderingLimits()
        self.aggregator = ExtractionAggregator(self.limits)
        self.drink_resolver = drink_resolver or DrinkResolver(menu_repository, search, self.limits)
        self.dispatcher = dispatcher or IntentDispatcher(
            order_store, self.drink_resolver, self.aggregator, self.limits
        )

    async def process_turn(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> Result[TurnResponse]:
        """Process one customer message.

        When `on_chunk` is given, reply text is forwarded to it as the model
        produces it; the returned result still carries the complete reply.
        """
        if message is None or not message.strip():
            return Result.fail(TurnError.empty_message())
        try:
            return await self._process_turn(message.strip(), conversation_id, on_chunk)
        except Exception as e:
            logger.error(
                f"[TURN] Unexpected error for conversation {conversation_id or 'new'}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            return Result.fail(TurnError.unexpected(str(e)))

    async def _process_turn(
        self,
        message: str,
        conversation_id: Optional[str],
        on_chunk: Optional[ChunkCallback],
    ) -> Result[TurnResponse]:
        if conversation_id and conversation_id.strip():
            conversation = await self._find_conversation(conversation_id)
            if conversation is None:
                return Result.fail(TurnError.conversation_not_found(conversation_id))
        else:
            conversation = Conversation.create(self.limits)
            await self.conversation_store.save(conversation)
            logger.info(f"[TURN] Started conversation {conversation.id}")

        candidates = await self._find_candidates(message)
        current_order = await self._load_active_order(conversation.id)

        request = NluRequest(
            user_message=message,
            conversation_history=conversation.history_text(self.limits.history_window),
            relevant_drinks=candidates,
            current_order_summary=current_order.to_summary() if current_order else None,
        )
        response = await self._ask_ai(request, on_chunk)

        order = await self.dispatcher.dispatch(
            response.intent, current_order, conversation, response, candidates
        )
        reply = await self._augment_reply(response, candidates)

        conversation.add_user_message(message)
        conversation.add_assistant_message(reply)
        if order is not None:
            if conversation.current_order_id != order.id:
                conversation.set_current_order(order.id)
        elif conversation.has_active_order():
            conversation.clear_current_order()
        await self.conversation_store.save(conversation)

        await self._remember_context(conversation.id, response, order)

        logger.info(
            f"[TURN] Conversation {conversation.id}: intent={response.intent.value}, "
            f"order={order.id if order else 'none'}"
        )
        return Result.ok(
            TurnResponse(
                reply=reply,
                conversation_id=conversation.id,
                intent=response.intent,
                order=OrderSummary.from_order(order) if order else None,
                suggested_replies=suggested_replies(order),
            )
        )

    async def get_conversation(self, conversation_id: str) -> Result[ConversationHistory]:
        """Transcript and active order of a conversation."""
        if not conversation_id or not conversation_id.strip():
            return Result.fail(TurnError.validation("Conversation ID is required", "conversation_id"))
        try:
            conversation = await self._find_conversation(conversation_id)
        except Exception as e:
            logger.error(f"[TURN] Could not load conversation {conversation_id}: {e}", exc_info=True)
            return Result.fail(TurnError.unexpected(str(e)))
        if conversation is None:
            return Result.fail(TurnError.conversation_not_found(conversation_id))
        return Result.ok(ConversationHistory.from_conversation(conversation))

    async def get_order(self, order_id: str) -> Result[OrderSummary]:
        """Read-only view of an order."""
        error = self._check_order_id(order_id)
        if error is not None:
            return Result.fail(error)
        try:
            order = await self.order_store.find_by_id(order_id.strip().lower())
        except Exception as e:
            logger.error(f"[TURN] Could not load order {order_id}: {e}", exc_info=True)
            return Result.fail(TurnError.unexpected(str(e)))
        if order is None:
            return Result.fail(TurnError.order_not_found(order_id))
        return Result.ok(OrderSummary.from_order(order))

    async def confirm_order(self, order_id: str) -> Result[OrderSummary]:
        """Confirm a pending order without going through a chat turn.

        The order stays the active order of its conversation.
        """
        return await self._transition_order(order_id, Order.confirm, "confirmed")

    async def cancel_order(self, order_id: str) -> Result[OrderSummary]:
        """Cancel a pending or confirmed order and release it from its conversation."""
        return await self._transition_order(order_id, Order.cancel, "cancelled")

    async def _transition_order(
        self, order_id: str, transition: Callable[[Order], None], done: str
    ) -> Result[OrderSummary]:
        error = self._check_order_id(order_id)
        if error is not None:
            return Result.fail(error)
        order_id = order_id.strip().lower()
        try:
            order = await self.order_store.find_by_id(order_id)
            if order is None:
                return Result.fail(TurnError.order_not_found(order_id))
            try:
                transition(order)
            except DomainError as e:
                logger.warning(f"[ORDERS] Order {order_id} cannot be {done}: {e}")
                return Result.fail(
                    TurnError.invalid_order_state(
                        f"Order cannot be {done}. Current status: {order.status.value}"
                    )
                )
            conversation_id = await self.order_store.find_conversation_id(order_id)
            await self.order_store.save_with_conversation(order, conversation_id)
            record_order(done)
            if not order.status.is_active:
                await self._release_order(conversation_id, order_id)
        except Exception as e:
            logger.error(f"[ORDERS] Could not update order {order_id}: {e}", exc_info=True)
            return Result.fail(TurnError.unexpected(str(e)))
        logger.info(f"[ORDERS] Order {order_id} {done}, total {order.total_price.format()}")
        return Result.ok(OrderSummary.from_order(order))

    async def _release_order(self, conversation_id: str, order_id: str) -> None:
        conversation = await self.conversation_store.find_by_id(conversation_id)
        if conversation is not None and conversation.current_order_id == order_id:
            conversation.clear_current_order()
            await self.conversation_store.save(conversation)

    @staticmethod
    def _check_order_id(order_id: str) -> Optional[TurnError]:
        if not order_id or not order_id.strip():
            return TurnError.validation("Order ID is required", "order_id")
        # Malformed ids cannot exist in the store
        if not is_valid_id(order_id):
            return TurnError.order_not_found(order_id)
        return None

    async def _find_conversation(self, conversation_id: str) -> Optional[Conversation]:
        # Malformed ids cannot exist in the store
        if not is_valid_id(conversation_id):
            return None
        return await self.conversation_store.find_by_id(conversation_id.strip().lower())

    async def _find_candidates(self, message: str) -> List[Drink]:
        try:
            matches = await self.search.find_similar(message, self.limits.rag_limit)
        except Exception as e:
            logger.warning(f"[TURN] Drink search failed, continuing without candidates: {e}", exc_info=True)
            return []
        return [match.drink for match in matches]

    async def _load_active_order(self, conversation_id: str) -> Optional[Order]:
        context = await self._read_context(conversation_id)
        if context is not None and not context.has_active_order:
            logger.debug(f"[TURN] Cache says conversation {conversation_id} has no active order")
            return None
        return await self.order_store.find_active_by_conversation(conversation_id)

    async def _ask_ai(self, request: NluRequest, on_chunk: Optional[ChunkCallback]) -> NluResponse:
        if on_chunk is None:
            return await self.ai.generate_response(request)

        final: Optional[NluResponse] = None
        async for event in self.ai.stream(request):
            if isinstance(event, NluResponse):
                final = event
            elif event:
                await on_chunk(event)
        if final is None:
            raise RuntimeError("Model stream ended without a final response")
        return final

    async def _augment_reply(self, response: NluResponse, candidates: List[Drink]) -> str:
        blocks: List[str] = []
        menu_added = False
        for action in response.suggested_actions:
            if action.type is SuggestedActionType.GET_FULL_MENU and not menu_added:
                blocks.append(await self.menu_repository.get_menu_text())
                menu_added = True
            elif action.type is SuggestedActionType.GET_DRINK_DETAILS:
                name = action.payload.get("drink_name") or action.payload.get("drinkName")
                if not name:
                    continue
                drink = await self.drink_resolver.resolve(str(name), candidates)
                if drink is not None:
                    blocks.append(drink.to_details())

        parts = [response.reply.strip()] if response.reply and response.reply.strip() else []
        parts.extend(blocks)
        return "\n\n".join(parts) or FALLBACK_REPLY

    async def _read_context(self, conversation_id: str) -> Optional[ConversationContext]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(conversation_id)
        except Exception as e:
            logger.warning(f"[CACHE] Read failed for {conversation_id}: {e}", exc_info=True)
            return None

    async def _remember_context(
        self, conversation_id: str, response: NluResponse, order: Optional[Order]
    ) -> None:
        if self.cache is None:
            return
        primary = self.aggregator.primary_item(response)
        context = ConversationContext(
            current_intent=response.intent.value,
            has_active_order=order is not None,
            last_drink_mentioned=primary.drink_name if primary else None,
        )
        try:
            await self.cache.set(conversation_id, context)
        except Exception as e:
            logger.warning(f"[CACHE] Write failed for {conversation_id}: {e}", exc_info=True)
