"""
Deposit Session Module

Registers a deposit address with Bifrost, follows its event stream and
configures the deposit account on the ledger.
"""

from .account_setup import AccountConfigurator, is_signer_configured
from .models import (
    Chain,
    DepositAddress,
    PhaseTransition,
    ProtocolEvent,
    ProtocolEventKind,
    SessionConfig,
    SessionPhase,
    StartResult,
    decode_deposit_address,
)
from .state_machine import Session

__all__ = [
    # Session
    "Session",
    # Account configuration
    "AccountConfigurator",
    "is_signer_configured",
    # Models
    "Chain",
    "DepositAddress",
    "PhaseTransition",
    "ProtocolEvent",
    "ProtocolEventKind",
    "SessionConfig",
    "SessionPhase",
    "StartResult",
    "decode_deposit_address",
]
