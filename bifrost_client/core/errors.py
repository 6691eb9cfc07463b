"""
Error Classification

Defines the error taxonomy for deposit sessions.
Configuration and usage errors are raised synchronously; protocol and
transport errors reject the start call; ledger errors after start are
reported to the caller as error events.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors raised by the client."""

    CONFIGURATION = "configuration"  # Invalid or missing session parameters
    PROTOCOL = "protocol"            # Chain or protocol version negotiation failed
    TRANSPORT = "transport"          # HTTP request to Bifrost or Horizon failed
    LEDGER = "ledger"                # Ledger rejected a request or transaction
    STREAM = "stream"                # Event stream connection noise
    USAGE = "usage"                  # API misuse (start twice, bad transition)
    UNKNOWN = "unknown"


class BifrostClientError(Exception):
    """Base class for all errors raised by the client."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BifrostClientError, ValueError):
    """Session parameters failed validation."""

    category = ErrorCategory.CONFIGURATION


class ProtocolNegotiationError(BifrostClientError):
    """Bifrost answered the registration with something this client cannot use."""

    category = ErrorCategory.PROTOCOL


class ChainMismatchError(ProtocolNegotiationError):
    def __init__(self, expected: str, received: Any):
        super().__init__(
            f"Invalid chain: requested {expected!r}, Bifrost answered {received!r}",
            details={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class ProtocolVersionMismatchError(ProtocolNegotiationError):
    def __init__(self, expected: int, received: Any):
        super().__init__(
            f"Invalid protocol_version {received!r} (expected {expected}). "
            "Make sure Bifrost server is using the same protocol version.",
            details={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class AddressDecodeError(ProtocolNegotiationError):
    """Deposit address could not be split into its parts."""


class TransportError(BifrostClientError):
    """HTTP request failed before producing a usable answer."""

    category = ErrorCategory.TRANSPORT

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code


class BridgeTransportError(TransportError):
    """Request to the Bifrost server failed."""


class LedgerTransportError(TransportError):
    """Request to the Horizon server failed."""


class LedgerError(BifrostClientError):
    """The ledger refused a query or a transaction."""

    category = ErrorCategory.LEDGER


class AccountNotFoundError(LedgerError):
    def __init__(self, account_id: str):
        super().__init__(f"Account {account_id} not found", details={"account_id": account_id})
        self.account_id = account_id


class LedgerSubmissionError(LedgerError):
    """Horizon rejected a submitted transaction."""

    def __init__(
        self,
        message: str,
        result_codes: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details={"result_codes": result_codes or {}})
        self.result_codes = result_codes or {}
        self.status_code = status_code

    @property
    def transaction_code(self) -> Optional[str]:
        return self.result_codes.get("transaction")

    @property
    def operation_codes(self) -> List[str]:
        return list(self.result_codes.get("operations") or [])


class StreamError(BifrostClientError):
    """Event stream connection problem. Logged, never raised to the caller."""

    category = ErrorCategory.STREAM


class SessionAlreadyStartedError(BifrostClientError, RuntimeError):
    category = ErrorCategory.USAGE

    def __init__(self, message: str = "Session already started"):
        super().__init__(message)


class InvalidTransitionError(BifrostClientError, RuntimeError):
    """Raised when a session phase transition is not allowed."""

    category = ErrorCategory.USAGE

    def __init__(self, from_phase: Any, to_phase: Any, message: Optional[str] = None):
        super().__init__(
            message or f"Invalid transition from {from_phase} to {to_phase}",
            details={"from": str(from_phase), "to": str(to_phase)},
        )
        self.from_phase = from_phase
        self.to_phase = to_phase


def classify_error(error: BaseException) -> ErrorCategory:
    """
    Classify an exception for logging.

    Client errors carry their own category; raw httpx errors are
    transport problems; anything else is unknown.
    """
    if isinstance(error, BifrostClientError):
        return error.category

    if isinstance(error, (httpx.RequestError, httpx.HTTPStatusError)):
        return ErrorCategory.TRANSPORT

    if isinstance(error, ValueError):
        return ErrorCategory.CONFIGURATION

    return ErrorCategory.UNKNOWN
