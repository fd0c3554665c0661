"""Tagged success-or-failure values returned by the turn coordinator."""
from enum import Enum
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class TurnErrorKind(str, Enum):
    EMPTY_MESSAGE = "EMPTY_MESSAGE"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INVALID_ORDER_STATE = "INVALID_ORDER_STATE"
    VALIDATION = "VALIDATION_ERROR"
    UNEXPECTED = "UNEXPECTED_ERROR"


_STATUS_CODES = {
    TurnErrorKind.EMPTY_MESSAGE: 400,
    TurnErrorKind.CONVERSATION_NOT_FOUND: 404,
    TurnErrorKind.ORDER_NOT_FOUND: 404,
    TurnErrorKind.INVALID_ORDER_STATE: 400,
    TurnErrorKind.VALIDATION: 400,
    TurnErrorKind.UNEXPECTED: 500,
}


class TurnError(BaseModel):
    """A failure reported to the caller instead of raised."""

    kind: TurnErrorKind
    message: str
    field: Optional[str] = None

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]

    @classmethod
    def empty_message(cls) -> "TurnError":
        return cls(kind=TurnErrorKind.EMPTY_MESSAGE, message="Message cannot be empty", field="message")

    @classmethod
    def conversation_not_found(cls, conversation_id: str) -> "TurnError":
        return cls(
            kind=TurnErrorKind.CONVERSATION_NOT_FOUND,
            message=f"Conversation with ID '{conversation_id}' not found",
        )

    @classmethod
    def order_not_found(cls, order_id: str) -> "TurnError":
        return cls(kind=TurnErrorKind.ORDER_NOT_FOUND, message=f"Order with ID '{order_id}' not found")

    @classmethod
    def invalid_order_state(cls, message: str) -> "TurnError":
        return cls(kind=TurnErrorKind.INVALID_ORDER_STATE, message=message)

    @classmethod
    def validation(cls, message: str, field: Optional[str] = None) -> "TurnError":
        return cls(kind=TurnErrorKind.VALIDATION, message=message, field=field)

    @classmethod
    def unexpected(cls, reason: str) -> "TurnError":
        return cls(kind=TurnErrorKind.UNEXPECTED, message=f"An unexpected error occurred: {reason}")


class Result(Generic[T]):
    """Exactly one of `value` or `error` is set."""

    __slots__ = ("value", "error")

    def __init__(self, value: Optional[T] = None, error: Optional[TurnError] = None):
        if (value is None) == (error is None):
            raise ValueError("Result needs exactly one of value or error")
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: TurnError) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.is_ok:
            return f"Result.ok({self.value!r})"
        return f"Result.fail({self.error!r})"
