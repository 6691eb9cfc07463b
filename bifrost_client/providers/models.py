"""Typed models for Bifrost and Horizon responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class AddressRegistration(BaseModel):
    """Bifrost's answer to a generate-address request."""

    model_config = ConfigDict(extra="ignore")

    chain: str
    protocol_version: int
    address: str
    signer: Optional[str] = None

    @field_validator("signer", mode="before")
    @classmethod
    def _empty_signer_is_none(cls, value: Any) -> Any:
        # Bifrost sends an empty string when no signer is required
        return value or None


@dataclass
class AccountSigner:
    key: str
    weight: int
    type: str = "ed25519_public_key"

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AccountSigner":
        return cls(
            key=data.get("key") or data.get("public_key", ""),
            weight=int(data.get("weight", 0)),
            type=data.get("type", "ed25519_public_key"),
        )


@dataclass
class LedgerAccount:
    """Account state as reported by Horizon."""

    account_id: str
    sequence: int
    signers: List[AccountSigner] = field(default_factory=list)
    thresholds: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LedgerAccount":
        """Parse an account from Horizon's /accounts/{id} response."""
        return cls(
            account_id=data.get("account_id") or data.get("id", ""),
            sequence=int(data.get("sequence", 0)),
            signers=[AccountSigner.from_api(s) for s in data.get("signers") or []],
            thresholds={k: int(v) for k, v in (data.get("thresholds") or {}).items()},
        )

    def signer_weight(self, key: str) -> Optional[int]:
        for signer in self.signers:
            if signer.key == key:
                return signer.weight
        return None


@dataclass
class SubmissionResult:
    """Outcome of a successful transaction submission."""

    hash: str
    ledger: Optional[int] = None
    successful: bool = True
    envelope_xdr: Optional[str] = None
    result_xdr: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SubmissionResult":
        ledger = data.get("ledger")
        return cls(
            hash=data.get("hash", ""),
            ledger=int(ledger) if ledger is not None else None,
            successful=bool(data.get("successful", True)),
            envelope_xdr=data.get("envelope_xdr"),
            result_xdr=data.get("result_xdr"),
        )
