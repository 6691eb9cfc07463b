"""
Deposit Session Models

Defines configuration, phases, transitions and results for a deposit session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from stellar_sdk import Keypair, StrKey

from bifrost_client.config import Settings, settings as default_settings
from bifrost_client.core.errors import AddressDecodeError
from bifrost_client.services.events.models import ProtocolEventKind


class Chain(str, Enum):
    """Chains Bifrost can issue deposit addresses on."""

    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"
    LUMEN = "lumen"


class SessionPhase(str, Enum):
    """Phases a session moves through."""

    CREATED = "created"                    # Constructed, nothing sent yet
    STARTED = "started"                    # Start called, keypair ready
    AWAITING_ADDRESS = "awaiting_address"  # Registration request in flight
    STREAMING = "streaming"                # Address handed out, listening for events
    FINALIZING = "finalizing"              # Configuring the created account
    SUCCEEDED = "succeeded"                # Exchange completed
    FAILED = "failed"                      # Unrecoverable error


TERMINAL_PHASES = frozenset({SessionPhase.SUCCEEDED, SessionPhase.FAILED})


class SessionConfig(BaseModel):
    """Immutable session parameters, validated on construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    network: Literal["live", "test"]
    bifrost_url: str = Field(min_length=1)
    horizon_url: str = Field(min_length=1)
    secret: Optional[str] = None
    recovery_public_key: Optional[str] = None
    horizon_allow_http: Optional[bool] = None

    @field_validator("bifrost_url", "horizon_url", mode="before")
    @classmethod
    def _require_string(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("required and must be of type 'string'")
        return value.rstrip("/") or value

    @field_validator("secret")
    @classmethod
    def _valid_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not StrKey.is_valid_ed25519_secret_seed(value):
            raise ValueError("secret is not a valid Stellar secret seed")
        return value

    @field_validator("recovery_public_key")
    @classmethod
    def _valid_recovery_key(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not StrKey.is_valid_ed25519_public_key(value):
            raise ValueError("recovery_public_key is not a valid Stellar public key")
        return value

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None, **overrides: Any) -> "SessionConfig":
        """Build a config from environment settings, with explicit overrides."""
        source = source or default_settings
        values: Dict[str, Any] = {
            "network": source.network,
            "bifrost_url": source.bifrost_url,
            "horizon_url": source.horizon_url,
            "horizon_allow_http": source.horizon_allow_http,
            "recovery_public_key": source.recovery_public_key or None,
        }
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        # Never print the secret seed
        return (
            f"SessionConfig(network={self.network!r}, bifrost_url={self.bifrost_url!r}, "
            f"horizon_url={self.horizon_url!r}, recovery_public_key={self.recovery_public_key!r})"
        )

    __str__ = __repr__


@dataclass(frozen=True)
class DepositAddress:
    """Where the user should send funds."""

    chain: Chain
    address: str
    memo: Optional[str] = None

    @property
    def stream_name(self) -> str:
        """Bifrost keys lumen streams by memo, other chains by address."""
        return self.memo if self.chain == Chain.LUMEN and self.memo else self.address


def decode_deposit_address(chain: Chain, raw: str) -> DepositAddress:
    """
    Split a Bifrost address into its parts.

    Lumen addresses arrive as "<account>;<memo>" and are split on the
    first ';'. Other chains use the value as is.
    """
    if chain != Chain.LUMEN:
        if not raw:
            raise AddressDecodeError(f"Bifrost returned an empty {chain.value} address")
        return DepositAddress(chain=chain, address=raw)

    address, delimiter, memo = raw.partition(";")
    if not delimiter or not address or not memo:
        raise AddressDecodeError(
            f"Lumen deposit address {raw!r} is not of the form '<account>;<memo>'",
            details={"address": raw},
        )
    return DepositAddress(chain=chain, address=address, memo=memo)


@dataclass(frozen=True)
class StartResult:
    """What a successful start hands back to the caller."""

    address: str
    keypair: Keypair
    chain: Chain
    memo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"address": self.address, "keypair": self.keypair}
        if self.chain == Chain.LUMEN:
            result["memo"] = self.memo
        return result


@dataclass
class ProtocolEvent:
    """A notification emitted to the session owner."""

    kind: ProtocolEventKind
    payload: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class PhaseTransition:
    """Record of a session phase change."""

    from_phase: SessionPhase
    to_phase: SessionPhase
    reason: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromPhase": self.from_phase.value,
            "toPhase": self.to_phase.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }
