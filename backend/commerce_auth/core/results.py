"""Tagged operation results for expected, policy-driven outcomes"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_OK_MESSAGE = "Operation completed successfully."
DEFAULT_NOT_FOUND_MESSAGE = "The requested item could not be found."
DEFAULT_INTERNAL_ERROR_MESSAGE = "An error occurred. Please try again later."
DEFAULT_BAD_REQUEST_MESSAGE = "Invalid request. Please check the input and try again."


class Outcome(str, Enum):
    """Outcome tag, each mapped to an HTTP status code analog"""
    OK = "ok"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL_ERROR = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    Outcome.OK: 200,
    Outcome.BAD_REQUEST: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.CONFLICT: 409,
    Outcome.INTERNAL_ERROR: 500,
}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Result of a service operation.

    Failed results never carry an entity; internal exception detail is
    never placed in the message.
    """
    outcome: Outcome
    message: str
    entity: Optional[T] = None

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    @classmethod
    def ok(cls, entity: Optional[T] = None, message: str = DEFAULT_OK_MESSAGE) -> "OperationResult[T]":
        return cls(Outcome.OK, message, entity)

    @classmethod
    def bad_request(cls, message: str = DEFAULT_BAD_REQUEST_MESSAGE) -> "OperationResult[T]":
        return cls(Outcome.BAD_REQUEST, message)

    @classmethod
    def not_found(cls, message: str = DEFAULT_NOT_FOUND_MESSAGE) -> "OperationResult[T]":
        return cls(Outcome.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "OperationResult[T]":
        return cls(Outcome.CONFLICT, message)

    @classmethod
    def internal_error(cls, message: str = DEFAULT_INTERNAL_ERROR_MESSAGE) -> "OperationResult[T]":
        return cls(Outcome.INTERNAL_ERROR, message)

    def failure(self) -> "OperationResult":
        """Re-tag a failed result for a caller with a different payload type"""
        return OperationResult(self.outcome, self.message)
