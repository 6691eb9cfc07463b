"""
Tests for the deposit transaction builder.
"""

import pytest
from stellar_sdk import AccountMerge, Keypair, Network, SetOptions, Signer, TransactionEnvelope

from bifrost_client.core.execution import DepositTransactionBuilder
from bifrost_client.providers.models import AccountSigner, LedgerAccount


@pytest.fixture
def keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture
def account(keypair: Keypair) -> LedgerAccount:
    return LedgerAccount(
        account_id=keypair.public_key,
        sequence=4294967296,
        signers=[AccountSigner(key=keypair.public_key, weight=1)],
    )


@pytest.fixture
def builder() -> DepositTransactionBuilder:
    return DepositTransactionBuilder("test", base_fee=100)


def test_unknown_network_rejected():
    with pytest.raises(ValueError):
        DepositTransactionBuilder("futurenet")


def test_network_passphrase_selection():
    assert DepositTransactionBuilder("live").network_passphrase == Network.PUBLIC_NETWORK_PASSPHRASE
    assert DepositTransactionBuilder("test").network_passphrase == Network.TESTNET_NETWORK_PASSPHRASE


def test_signer_installation_shape(builder, account, keypair):
    bridge_signer = Keypair.random().public_key

    envelope = builder.build_signer_installation(account, bridge_signer)
    tx = envelope.transaction

    assert tx.source.account_id == keypair.public_key
    assert tx.sequence == account.sequence + 1
    assert len(tx.operations) == 1

    op = tx.operations[0]
    assert isinstance(op, SetOptions)
    assert op.master_weight == 0
    assert op.signer == Signer.ed25519_public_key(bridge_signer, 1)


def test_signer_installation_does_not_mutate_account(builder, account):
    builder.build_signer_installation(account, Keypair.random().public_key)
    assert account.sequence == 4294967296


def test_recovery_merge_shape(builder, keypair):
    recovery = Keypair.random().public_key

    envelope = builder.build_recovery_merge(keypair.public_key, 100, recovery)
    tx = envelope.transaction

    assert tx.sequence == 101
    assert len(tx.operations) == 1
    op = tx.operations[0]
    assert isinstance(op, AccountMerge)
    assert op.destination.account_id == recovery


def test_signed_envelope_survives_transport_encoding(builder, keypair):
    recovery = Keypair.random().public_key
    envelope = builder.build_recovery_merge(keypair.public_key, 7, recovery)
    builder.sign(envelope, keypair)

    xdr = builder.to_transport(envelope)
    decoded = TransactionEnvelope.from_xdr(xdr, Network.TESTNET_NETWORK_PASSPHRASE)

    assert len(decoded.signatures) == 1
    keypair.verify(decoded.hash(), decoded.signatures[0].signature)
