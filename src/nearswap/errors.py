"""Error kinds and exceptions shared by route resolution and swap execution.

Internal code raises ``SwapError`` subclasses. The resolver and the execution
engine convert them to result objects at their boundaries, so callers only
ever see ``ResolutionError`` or ``SwapExecutionResult``.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of a failed resolution or execution."""

    INVALID_INPUT = "InvalidInput"
    NO_ROUTE_AVAILABLE = "NoRouteAvailable"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"
    CONFIRMATION_TIMEOUT = "ConfirmationTimeout"
    EXECUTION_TIMEOUT = "ExecutionTimeout"
    RATE_LIMITED = "RateLimited"
    UPSTREAM_ERROR = "UpstreamError"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    STEP_FAILED = "StepFailed"
    INTENT_REJECTED = "IntentRejected"
    INVALID_QUOTE = "InvalidQuote"
    USER_CANCELLED = "UserCancelled"

    @property
    def http_status(self) -> int:
        """HTTP status used when this kind crosses the API boundary."""
        return _HTTP_STATUS.get(self, 500)

    @property
    def action(self) -> str:
        """What the user should do: fix_input, retry_later, contact_support or none."""
        return _ACTIONS.get(self, "contact_support")


_HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.INVALID_QUOTE: 400,
    ErrorKind.NO_ROUTE_AVAILABLE: 404,
    ErrorKind.UPSTREAM_TIMEOUT: 408,
    ErrorKind.CONFIRMATION_TIMEOUT: 408,
    ErrorKind.EXECUTION_TIMEOUT: 408,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_ERROR: 500,
    ErrorKind.STEP_FAILED: 500,
    ErrorKind.INTENT_REJECTED: 500,
    ErrorKind.UPSTREAM_UNAVAILABLE: 503,
    ErrorKind.USER_CANCELLED: 499,
}

_ACTIONS = {
    ErrorKind.INVALID_INPUT: "fix_input",
    ErrorKind.NO_ROUTE_AVAILABLE: "fix_input",
    ErrorKind.INVALID_QUOTE: "fix_input",
    ErrorKind.UPSTREAM_TIMEOUT: "retry_later",
    ErrorKind.CONFIRMATION_TIMEOUT: "retry_later",
    ErrorKind.EXECUTION_TIMEOUT: "retry_later",
    ErrorKind.RATE_LIMITED: "retry_later",
    ErrorKind.UPSTREAM_UNAVAILABLE: "retry_later",
    ErrorKind.UPSTREAM_ERROR: "contact_support",
    ErrorKind.STEP_FAILED: "contact_support",
    ErrorKind.INTENT_REJECTED: "contact_support",
    ErrorKind.USER_CANCELLED: "none",
}


class SwapError(Exception):
    """Base exception for resolution and execution failures."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, message: str, detail: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status = status


class InvalidInputError(SwapError):
    kind = ErrorKind.INVALID_INPUT


class NoRouteError(SwapError):
    kind = ErrorKind.NO_ROUTE_AVAILABLE


class UpstreamTimeoutError(SwapError):
    kind = ErrorKind.UPSTREAM_TIMEOUT


class RateLimitedError(SwapError):
    kind = ErrorKind.RATE_LIMITED


class UpstreamError(SwapError):
    kind = ErrorKind.UPSTREAM_ERROR


class UpstreamUnavailableError(SwapError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class ConfirmationTimeoutError(SwapError):
    kind = ErrorKind.CONFIRMATION_TIMEOUT


class StepFailedError(SwapError):
    kind = ErrorKind.STEP_FAILED


class TransactionFailedError(StepFailedError):
    """A submitted transaction finalized with an on-chain failure."""


class IntentRejectedError(SwapError):
    kind = ErrorKind.INTENT_REJECTED


class InvalidQuoteError(SwapError):
    kind = ErrorKind.INVALID_QUOTE


class UserCancelledError(SwapError):
    """Raised by a signing handle when the user dismisses the wallet prompt."""

    kind = ErrorKind.USER_CANCELLED

    def __init__(self, message: str = "User cancelled the request", detail: Optional[str] = None):
        super().__init__(message, detail=detail)
