"""Apply the detected intent to the active order."""
import logging
from typing import Optional, Sequence, assert_never

from barista.core.config import OrderingLimits
from barista.core.metrics import record_order
from barista.services.agent.models import (
    ExtractedModification,
    Intent,
    ModificationAction,
    NluResponse,
)
from barista.services.conversation.models import Conversation
from barista.services.menu.base import Drink
from barista.services.ordering.aggregator import ExtractionAggregator
from barista.services.ordering.drink_resolver import DrinkResolver
from barista.services.ordering.errors import DomainError
from barista.services.ordering.modification_resolver import resolve_index
from barista.services.ordering.models import OrderItem
from barista.services.ordering.order import Order
from barista.services.persistence.base import OrderStore

logger = logging.getLogger(__name__)


class IntentDispatcher:
    """Order state machine driven by intents.

    Domain rule violations never escape: the affected step is skipped and the
    prior order state is returned.
    """

    def __init__(
        self,
        order_store: OrderStore,
        drink_resolver: DrinkResolver,
        aggregator: Optional[ExtractionAggregator] = None,
        limits: Optional[OrderingLimits] = None,
    ):
        self.order_store = order_store
        self.drink_resolver = drink_resolver
        self.limits = limits or OrderingLimits()
        self.aggregator = aggregator or ExtractionAggregator(self.limits)

    async def dispatch(
        self,
        intent: Intent,
        current_order: Optional[Order],
        conversation: Conversation,
        response: NluResponse,
        candidates: Sequence[Drink] = (),
    ) -> Optional[Order]:
        logger.info(
            f"[DISPATCH] Intent '{intent.value}' for conversation {conversation.id}, "
            f"current order: {current_order.id if current_order else 'none'}"
        )
        if intent is Intent.ORDER_DRINK:
            return await self._order_drinks(current_order, conversation, response, candidates)
        elif intent is Intent.MODIFY_ORDER:
            return await self._modify_order(current_order, conversation, response)
        elif intent is Intent.CONFIRM_ORDER:
            return await self._confirm_order(current_order, conversation)
        elif intent is Intent.PROCESS_PAYMENT:
            return await self._process_payment(current_order, conversation)
        elif intent is Intent.CANCEL_ORDER:
            return await self._cancel_order(current_order, conversation)
        elif intent is Intent.ASK_QUESTION or intent is Intent.GREETING or intent is Intent.UNKNOWN:
            return current_order
        else:
            assert_never(intent)

    async def _order_drinks(
        self,
        current_order: Optional[Order],
        conversation: Conversation,
        response: NluResponse,
        candidates: Sequence[Drink],
    ) -> Optional[Order]:
        extracted_items = self.aggregator.collect_items(response)
        if not extracted_items:
            logger.info("[DISPATCH] No drinks extracted above the confidence floor")
            return current_order

        order = current_order if current_order and current_order.status.can_be_modified else None
        added = 0
        for extracted in extracted_items:
            drink = await self.drink_resolver.resolve(extracted.drink_name, candidates)
            if drink is None:
                logger.info(f"[DISPATCH] Skipping unknown drink '{extracted.drink_name}'")
                continue
            try:
                item = OrderItem(
                    drink_id=drink.id,
                    drink_name=drink.name,
                    size=extracted.size,
                    quantity=extracted.quantity,
                    unit_price=drink.price,
                    customizations=extracted.customizations,
                )
                if order is None:
                    order = Order.create(self.limits)
                order.add_item(item)
                added += 1
            except DomainError as e:
                logger.info(f"[DISPATCH] Could not add '{drink.name}': {e}")

        if added == 0 or order is None:
            return current_order

        await self.order_store.save_with_conversation(order, conversation.id)
        if order is not current_order:
            record_order("created")
        logger.info(f"[DISPATCH] Added {added} item(s) to order {order.id}")
        return order

    async def _modify_order(
        self,
        current_order: Optional[Order],
        conversation: Conversation,
        response: NluResponse,
    ) -> Optional[Order]:
        if current_order is None:
            return None
        modifications = self.aggregator.collect_modifications(response)
        if not modifications:
            return current_order

        changed = False
        for modification in modifications:
            index = resolve_index(modification, current_order)
            if index is None:
                logger.info(
                    f"[DISPATCH] No order item matches index={modification.item_index} "
                    f"name={modification.drink_name!r}"
                )
                continue
            try:
                self._apply_modification(current_order, index, modification)
                changed = True
            except DomainError as e:
                logger.info(f"[DISPATCH] Modification skipped: {e}")

        if not changed:
            return current_order

        if current_order.is_empty():
            # An emptied order leaves the active set but stays in storage
            current_order.cancel()
            await self.order_store.save_with_conversation(current_order, conversation.id)
            record_order("cancelled")
            conversation.clear_current_order()
            logger.info(f"[DISPATCH] Order {current_order.id} emptied and closed")
            return None

        await self.order_store.save_with_conversation(current_order, conversation.id)
        return current_order

    @staticmethod
    def _apply_modification(order: Order, index: int, modification: ExtractedModification) -> None:
        changes = modification.changes
        if modification.action is ModificationAction.REMOVE or changes.new_quantity == 0:
            order.remove_item_at(index)
            return

        item = order.items[index]
        if changes.new_quantity is not None:
            item = item.with_quantity(changes.new_quantity)
        if changes.new_size is not None:
            item = item.with_size(changes.new_size)
        if changes.add_customizations is not None or changes.remove_customizations:
            item = item.with_customizations(
                changes.add_customizations, changes.remove_customizations
            )
        order.replace_item_at(index, item)

    async def _confirm_order(
        self, current_order: Optional[Order], conversation: Conversation
    ) -> Optional[Order]:
        if current_order is None:
            return None
        try:
            current_order.confirm()
        except DomainError as e:
            logger.info(f"[DISPATCH] Cannot confirm order {current_order.id}: {e}")
            return current_order
        await self.order_store.save_with_conversation(current_order, conversation.id)
        record_order("confirmed")
        return current_order

    async def _process_payment(
        self, current_order: Optional[Order], conversation: Conversation
    ) -> Optional[Order]:
        if current_order is None:
            return None
        confirmed_now = False
        try:
            if current_order.can_be_confirmed():
                current_order.confirm()
                confirmed_now = True
            current_order.complete()
        except DomainError as e:
            logger.info(f"[DISPATCH] Cannot take payment for order {current_order.id}: {e}")
            return current_order
        await self.order_store.save_with_conversation(current_order, conversation.id)
        if confirmed_now:
            record_order("confirmed")
        record_order("completed")
        conversation.clear_current_order()
        logger.info(f"[DISPATCH] Order {current_order.id} paid and completed")
        return None

    async def _cancel_order(
        self, current_order: Optional[Order], conversation: Conversation
    ) -> Optional[Order]:
        if current_order is None:
            return None
        try:
            current_order.cancel()
        except DomainError as e:
            logger.info(f"[DISPATCH] Cannot cancel order {current_order.id}: {e}")
            return current_order
        await self.order_store.save_with_conversation(current_order, conversation.id)
        record_order("cancelled")
        conversation.clear_current_order()
        return None
