"""Exception types raised by mintkit."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .purchase.models import Order, Receipt, TransactionStep


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_STARTED = "NOT_STARTED"
    ENDED = "ENDED"
    SOLD_OUT = "SOLD_OUT"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
    UNSUPPORTED_NETWORK = "UNSUPPORTED_NETWORK"
    STEP_EXECUTION_FAILED = "STEP_EXECUTION_FAILED"
    API_ERROR = "API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class MintkitError(Exception):
    """Base exception for all mintkit errors."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary format for structured output."""
        result: dict[str, Any] = {
            "error": self.message,
            "code": self.code.value,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidInputError(MintkitError):
    """Malformed address, quantity, identifier or configuration value."""

    code = ErrorCode.INVALID_INPUT


class NotStartedError(MintkitError):
    code = ErrorCode.NOT_STARTED


class EndedError(MintkitError):
    code = ErrorCode.ENDED


class SoldOutError(MintkitError):
    code = ErrorCode.SOLD_OUT


class NotEligibleError(MintkitError):
    code = ErrorCode.NOT_ELIGIBLE


class InsufficientFundsError(MintkitError):
    code = ErrorCode.INSUFFICIENT_FUNDS


class CurrencyMismatchError(MintkitError):
    """Raised when arithmetic or comparison mixes incompatible currencies."""

    code = ErrorCode.CURRENCY_MISMATCH


class UnsupportedNetworkError(MintkitError):
    """Raised when no provider is reachable for the target network."""

    code = ErrorCode.UNSUPPORTED_NETWORK


class ApiError(MintkitError):
    """Raised when the catalog backend fails or returns unusable data."""

    code = ErrorCode.API_ERROR


class UnknownError(MintkitError):
    code = ErrorCode.UNKNOWN_ERROR


class StepExecutionFailedError(MintkitError):
    """Raised when a transaction step fails to submit or confirm.

    Carries the failing step so callers can resume from it, the underlying
    cause, and (in automatic mode) the receipts of every step that completed
    before the failure.
    """

    code = ErrorCode.STEP_EXECUTION_FAILED

    def __init__(
        self,
        step: TransactionStep,
        cause: BaseException,
        receipts: list[Receipt] | None = None,
        order: Order | None = None,
    ):
        super().__init__(
            f"Transaction failed at step '{step.id}': {cause}",
            details={"step": step.id, "network_id": step.network_id},
        )
        self.step = step
        self.cause = cause
        self.receipts = list(receipts or [])
        self.order = order

    @property
    def cause_code(self) -> ErrorCode:
        """Code of the underlying error, UNKNOWN_ERROR for foreign exceptions."""
        if isinstance(self.cause, MintkitError):
            return self.cause.code
        return ErrorCode.UNKNOWN_ERROR

    def with_progress(
        self, receipts: list[Receipt], order: Order
    ) -> StepExecutionFailedError:
        """Return a copy of this error annotated with the receipts collected so far."""
        error = StepExecutionFailedError(self.step, self.cause, receipts, order)
        error.__cause__ = self.__cause__
        return error
