"""
Transaction builder for the deposit account's Stellar transactions.
"""

import logging
from typing import Optional

from stellar_sdk import Account, Keypair, Network, Signer, TransactionBuilder, TransactionEnvelope

from ...config import settings
from ...providers.models import LedgerAccount

logger = logging.getLogger(__name__)

NETWORK_PASSPHRASES = {
    "live": Network.PUBLIC_NETWORK_PASSPHRASE,
    "test": Network.TESTNET_NETWORK_PASSPHRASE,
}

# Weight given to the Bifrost signer; the master key is dropped to zero.
BRIDGE_SIGNER_WEIGHT = 1
MASTER_WEIGHT_REVOKED = 0


class DepositTransactionBuilder:
    """
    Builds the two transactions a deposit account ever needs.

    Handles:
    - Signer installation (master key revoked, Bifrost signer added)
    - Recovery merge (whole balance merged into the recovery account)
    """

    def __init__(self, network: str, base_fee: Optional[int] = None):
        if network not in NETWORK_PASSPHRASES:
            raise ValueError(f"Unknown network {network!r}")
        self.network = network
        self.network_passphrase = NETWORK_PASSPHRASES[network]
        self.base_fee = base_fee if base_fee is not None else settings.base_fee

    def _builder(self, account: Account) -> TransactionBuilder:
        return TransactionBuilder(
            source_account=account,
            network_passphrase=self.network_passphrase,
            base_fee=self.base_fee,
        )

    def build_signer_installation(
        self,
        account: LedgerAccount,
        signer_key: str,
    ) -> TransactionEnvelope:
        """
        Build a set-options transaction that hands control to Bifrost.

        Args:
            account: Current account state loaded from Horizon
            signer_key: Public key Bifrost asked to install

        Returns:
            Unsigned TransactionEnvelope at account.sequence + 1
        """
        envelope = (
            self._builder(Account(account.account_id, account.sequence))
            .append_set_options_op(
                master_weight=MASTER_WEIGHT_REVOKED,
                signer=Signer.ed25519_public_key(signer_key, BRIDGE_SIGNER_WEIGHT),
            )
            .add_time_bounds(0, 0)
            .build()
        )
        logger.debug(f"Built signer installation for {account.account_id} (signer {signer_key})")
        return envelope

    def build_recovery_merge(
        self,
        account_id: str,
        sequence: int,
        destination: str,
    ) -> TransactionEnvelope:
        """
        Build an account-merge transaction into the recovery account.

        The account reference is constructed locally at the sequence seen
        when the account was created, so the envelope can be pre-signed
        before any other transaction lands.
        """
        envelope = (
            self._builder(Account(account_id, sequence))
            .append_account_merge_op(destination=destination)
            .add_time_bounds(0, 0)
            .build()
        )
        logger.debug(f"Built recovery merge {account_id} -> {destination} at sequence {sequence}")
        return envelope

    @staticmethod
    def sign(envelope: TransactionEnvelope, keypair: Keypair) -> TransactionEnvelope:
        envelope.sign(keypair)
        return envelope

    @staticmethod
    def to_transport(envelope: TransactionEnvelope) -> str:
        """Base64 XDR encoding used on the wire."""
        return envelope.to_xdr()
