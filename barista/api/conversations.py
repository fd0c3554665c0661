"""Conversation API endpoints."""
import asyncio
import json
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import async_sessionmaker

from barista.core.dependencies import (
    TurnCoordinatorFactory,
    get_session_factory,
    get_turn_coordinator,
    get_turn_coordinator_factory,
)
from barista.services.conversation.coordinator import TurnCoordinator
from barista.services.conversation.responses import ConversationHistory, TurnResponse
from barista.services.conversation.result import Result, TurnError

router = APIRouter()
logger = logging.getLogger(__name__)


class SendMessageRequest(BaseModel):
    """Customer message request model."""
    message: str
    conversation_id: Optional[str] = None


def raise_for_error(result: Result) -> None:
    """Translate a failed result into an HTTP error."""
    if not result.is_ok:
        error: TurnError = result.error
        raise HTTPException(
            status_code=error.status_code,
            detail={"code": error.kind.value, "message": error.message, "field": error.field},
        )


def sse_event(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.post("/api/conversations/messages", response_model=TurnResponse)
async def send_message(
    body: SendMessageRequest,
    request: Request,
    coordinator: TurnCoordinator = Depends(get_turn_coordinator),
):
    """Process one customer message and return the barista's reply."""
    logger.info(
        f"[CONVERSATIONS] Message received - conversation: {body.conversation_id or 'new'}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    result = await coordinator.process_turn(body.message, body.conversation_id)
    raise_for_error(result)
    return result.value


@router.post("/api/conversations/messages/stream")
async def send_message_stream(
    body: SendMessageRequest,
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    build_coordinator: TurnCoordinatorFactory = Depends(get_turn_coordinator_factory),
):
    """Streaming version of the message endpoint.

    Emits `chunk` events with reply text as it is generated, then a single
    `result` or `error` event.
    """
    logger.info(
        f"[CONVERSATIONS] Streaming message received - conversation: {body.conversation_id or 'new'}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    queue: asyncio.Queue = asyncio.Queue()

    async def on_chunk(text: str) -> None:
        await queue.put(sse_event("chunk", {"text": text}))

    async def run_turn(coordinator: TurnCoordinator) -> None:
        try:
            result = await coordinator.process_turn(body.message, body.conversation_id, on_chunk)
            if result.is_ok:
                await queue.put(sse_event("result", result.value.model_dump(mode="json")))
            else:
                await queue.put(sse_event("error", result.error.model_dump(mode="json")))
        finally:
            await queue.put(None)

    async def generate_stream():
        # The request-scoped session is gone once streaming starts
        async with session_factory() as db:
            task = asyncio.create_task(run_turn(build_coordinator(db)))
            try:
                while True:
                    event = await queue.get()
                    if event is None:
                        break
                    yield event
                await task
            finally:
                if not task.done():
                    task.cancel()

    return StreamingResponse(
        generate_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/api/conversations/{conversation_id}", response_model=ConversationHistory)
async def get_conversation(
    conversation_id: str,
    coordinator: TurnCoordinator = Depends(get_turn_coordinator),
):
    """Get the transcript and active order of a conversation."""
    logger.debug(f"[CONVERSATIONS] History requested for {conversation_id}")
    result = await coordinator.get_conversation(conversation_id)
    raise_for_error(result)
    return result.value
