"""Conversation AI interface."""
from abc import ABC, abstractmethod
from typing import AsyncIterator, Union

from barista.services.agent.models import NluRequest, NluResponse


class ConversationAI(ABC):
    """Abstract base class for the language understanding step."""

    @abstractmethod
    async def generate_response(self, request: NluRequest) -> NluResponse:
        """Produce a reply plus intent and extracted order data."""
        pass

    async def stream(self, request: NluRequest) -> AsyncIterator[Union[str, NluResponse]]:
        """Yield reply text chunks, then exactly one final NluResponse.

        The default emits the whole reply as a single chunk.
        """
        response = await self.generate_response(request)
        if response.reply:
            yield response.reply
        yield response
