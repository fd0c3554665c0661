"""Domain errors raised by the order and conversation aggregates."""


class DomainError(Exception):
    """Base class for business rule violations."""

    code = "DOMAIN_ERROR"


class InvalidValueError(DomainError):
    """A value object received a value outside its allowed range."""

    code = "INVALID_VALUE"

    def __init__(self, value_name: str, reason: str):
        super().__init__(f"Invalid {value_name}: {reason}")
        self.value_name = value_name
        self.reason = reason


class InvalidOrderError(DomainError):
    """An order operation would break an order invariant."""

    code = "INVALID_ORDER"
