"""
Account configuration run when Bifrost reports the deposit account exists.

The account's signer list on the ledger is the source of truth: if it
already matches the target shape nothing is submitted, so the handler
can run any number of times for the same account.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, List, Optional

from stellar_sdk import Keypair

from bifrost_client.core.errors import classify_error
from bifrost_client.core.execution.tx_builder import (
    BRIDGE_SIGNER_WEIGHT,
    MASTER_WEIGHT_REVOKED,
    DepositTransactionBuilder,
)
from bifrost_client.providers.base import LedgerGateway
from bifrost_client.providers.bifrost import BifrostProvider
from bifrost_client.providers.models import AccountSigner, LedgerAccount
from bifrost_client.services.events.models import ProtocolEventKind

logger = logging.getLogger(__name__)

Emit = Callable[[ProtocolEventKind, Any], Coroutine[Any, Any, None]]


def is_signer_configured(signers: List[AccountSigner], bridge_signer: str) -> bool:
    """True when only `bridge_signer` holds weight, and exactly weight 1."""
    found = False
    for signer in signers:
        if signer.key == bridge_signer:
            if signer.weight == BRIDGE_SIGNER_WEIGHT:
                found = True
        elif signer.weight != MASTER_WEIGHT_REVOKED:
            return False
    return found


class AccountConfigurator:
    """
    Installs the Bifrost signer and stages the recovery merge.

    Errors never propagate: each failure is reported through `emit` as an
    error event carrying the exception.
    """

    def __init__(
        self,
        ledger: LedgerGateway,
        bifrost: BifrostProvider,
        builder: DepositTransactionBuilder,
        keypair: Keypair,
        emit: Emit,
        bridge_signer: Optional[str] = None,
        recovery_public_key: Optional[str] = None,
    ):
        self.ledger = ledger
        self.bifrost = bifrost
        self.builder = builder
        self.keypair = keypair
        self.bridge_signer = bridge_signer
        self.recovery_public_key = recovery_public_key
        self._emit = emit

    async def run(self) -> bool:
        """
        Configure the account.

        Returns:
            False only when installing the Bifrost signer failed. A failed
            account lookup is reported and returns True: the account may
            not be visible on the ledger yet, and the exchange can still
            complete.
        """
        try:
            account = await self.ledger.load_account(self.keypair.public_key)
        except Exception as e:
            await self._report(e, "loading account")
            return True

        configured, _ = await asyncio.gather(
            self._configure_signers(account),
            self._stage_recovery(account.sequence),
        )
        return configured

    async def _configure_signers(self, account: LedgerAccount) -> bool:
        try:
            if not self.bridge_signer:
                logger.info(f"No Bifrost signer required for {account.account_id}")
            elif is_signer_configured(account.signers, self.bridge_signer):
                logger.info(f"Bifrost signer already configured on {account.account_id}")
            else:
                envelope = self.builder.build_signer_installation(account, self.bridge_signer)
                self.builder.sign(envelope, self.keypair)
                result = await self.ledger.submit_transaction(envelope)
                logger.info(f"Installed Bifrost signer on {account.account_id} in {result.hash}")
        except Exception as e:
            await self._report(e, "configuring signers")
            return False

        await self._emit(ProtocolEventKind.ACCOUNT_CONFIGURED, None)
        return True

    async def _stage_recovery(self, sequence: int) -> None:
        if self.recovery_public_key is None:
            return

        try:
            envelope = self.builder.build_recovery_merge(
                self.keypair.public_key,
                sequence,
                self.recovery_public_key,
            )
            self.builder.sign(envelope, self.keypair)
            await self.bifrost.submit_recovery_transaction(self.builder.to_transport(envelope))
        except Exception as e:
            await self._report(e, "submitting recovery transaction")

    async def _report(self, error: Exception, stage: str) -> None:
        logger.error(f"Account configuration failed while {stage} ({classify_error(error).value}): {error}")
        await self._emit(ProtocolEventKind.ERROR, error)
