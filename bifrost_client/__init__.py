"""Python client for the Bifrost cross-chain deposit protocol."""

from .core.errors import (
    AccountNotFoundError,
    AddressDecodeError,
    BifrostClientError,
    BridgeTransportError,
    ChainMismatchError,
    ConfigurationError,
    ErrorCategory,
    LedgerSubmissionError,
    LedgerTransportError,
    ProtocolNegotiationError,
    ProtocolVersionMismatchError,
    SessionAlreadyStartedError,
)
from .core.session import (
    Chain,
    ProtocolEventKind,
    Session,
    SessionConfig,
    SessionPhase,
    StartResult,
)
from .logging_config import setup_logging

TransactionReceivedEvent = ProtocolEventKind.TRANSACTION_RECEIVED
AccountCreatedEvent = ProtocolEventKind.ACCOUNT_CREATED
AccountConfiguredEvent = ProtocolEventKind.ACCOUNT_CONFIGURED
ExchangedEvent = ProtocolEventKind.EXCHANGED
ExchangedTimelockedEvent = ProtocolEventKind.EXCHANGED_TIMELOCKED
ErrorEvent = ProtocolEventKind.ERROR

__all__ = [
    "Session",
    "SessionConfig",
    "SessionPhase",
    "StartResult",
    "Chain",
    "ProtocolEventKind",
    "TransactionReceivedEvent",
    "AccountCreatedEvent",
    "AccountConfiguredEvent",
    "ExchangedEvent",
    "ExchangedTimelockedEvent",
    "ErrorEvent",
    "setup_logging",
    "ErrorCategory",
    "BifrostClientError",
    "ConfigurationError",
    "ProtocolNegotiationError",
    "ChainMismatchError",
    "ProtocolVersionMismatchError",
    "AddressDecodeError",
    "BridgeTransportError",
    "LedgerTransportError",
    "AccountNotFoundError",
    "LedgerSubmissionError",
    "SessionAlreadyStartedError",
]
