"""
Tests for the Horizon ledger gateway.
"""

from typing import List
from urllib.parse import parse_qs

import httpx
import pytest
from stellar_sdk import Keypair

from bifrost_client.core.errors import (
    AccountNotFoundError,
    ConfigurationError,
    LedgerSubmissionError,
    LedgerTransportError,
)
from bifrost_client.core.execution import DepositTransactionBuilder
from bifrost_client.providers import HorizonGateway, LedgerAccount


HORIZON_URL = "https://horizon.example.com"


def _account_json(account_id: str, bridge_signer: str) -> dict:
    return {
        "id": account_id,
        "account_id": account_id,
        "sequence": "8589934592",
        "thresholds": {"low_threshold": 0, "med_threshold": 0, "high_threshold": 0},
        "signers": [
            {"weight": 0, "key": account_id, "type": "ed25519_public_key"},
            {"weight": 1, "key": bridge_signer, "type": "ed25519_public_key"},
        ],
    }


def _gateway(handler, requests: List[httpx.Request], **kwargs) -> HorizonGateway:
    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return HorizonGateway(HORIZON_URL, transport=httpx.MockTransport(record), **kwargs)


class TestConstruction:

    def test_plain_http_rejected_by_default(self):
        with pytest.raises(ConfigurationError):
            HorizonGateway("http://localhost:8000")

    def test_plain_http_allowed_with_flag(self):
        gateway = HorizonGateway("http://localhost:8000/", allow_http=True)
        assert gateway.base_url == "http://localhost:8000"

    def test_garbage_url_rejected(self):
        with pytest.raises(ConfigurationError):
            HorizonGateway("horizon.stellar.org")


class TestLoadAccount:

    @pytest.mark.asyncio
    async def test_parses_sequence_and_signers(self):
        account_id = Keypair.random().public_key
        bridge_signer = Keypair.random().public_key
        requests: List[httpx.Request] = []
        gateway = _gateway(lambda r: httpx.Response(200, json=_account_json(account_id, bridge_signer)), requests)

        account = await gateway.load_account(account_id)

        assert isinstance(account, LedgerAccount)
        assert account.account_id == account_id
        assert account.sequence == 8589934592
        assert account.signer_weight(account_id) == 0
        assert account.signer_weight(bridge_signer) == 1
        assert account.signer_weight(Keypair.random().public_key) is None
        assert requests[0].url.path == f"/accounts/{account_id}"

    @pytest.mark.asyncio
    async def test_missing_account(self):
        gateway = _gateway(lambda r: httpx.Response(404, json={"status": 404, "title": "Resource Missing"}), [])

        with pytest.raises(AccountNotFoundError):
            await gateway.load_account(Keypair.random().public_key)

    @pytest.mark.asyncio
    async def test_server_error(self):
        gateway = _gateway(lambda r: httpx.Response(503, text="unavailable"), [])

        with pytest.raises(LedgerTransportError) as exc_info:
            await gateway.load_account(Keypair.random().public_key)

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        gateway = HorizonGateway(HORIZON_URL, transport=httpx.MockTransport(refuse))

        with pytest.raises(LedgerTransportError):
            await gateway.load_account(Keypair.random().public_key)


class TestSubmitTransaction:

    @pytest.fixture
    def envelope(self):
        keypair = Keypair.random()
        envelope = DepositTransactionBuilder("test").build_recovery_merge(
            keypair.public_key, 10, Keypair.random().public_key
        )
        envelope.sign(keypair)
        return envelope

    @pytest.mark.asyncio
    async def test_submits_form_encoded_xdr(self, envelope):
        requests: List[httpx.Request] = []
        gateway = _gateway(
            lambda r: httpx.Response(200, json={"hash": "deadbeef", "ledger": 1234, "successful": True}),
            requests,
        )

        result = await gateway.submit_transaction(envelope)

        assert result.hash == "deadbeef"
        assert result.ledger == 1234
        assert result.successful is True
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/transactions"
        assert parse_qs(request.content.decode()) == {"tx": [envelope.to_xdr()]}

    @pytest.mark.asyncio
    async def test_rejected_transaction_carries_result_codes(self, envelope):
        body = {
            "type": "https://stellar.org/horizon-errors/transaction_failed",
            "title": "Transaction Failed",
            "status": 400,
            "extras": {
                "result_codes": {"transaction": "tx_failed", "operations": ["op_low_reserve"]},
            },
        }
        gateway = _gateway(lambda r: httpx.Response(400, json=body), [])

        with pytest.raises(LedgerSubmissionError) as exc_info:
            await gateway.submit_transaction(envelope)

        error = exc_info.value
        assert error.transaction_code == "tx_failed"
        assert error.operation_codes == ["op_low_reserve"]
        assert error.status_code == 400

    @pytest.mark.asyncio
    async def test_gateway_timeout_is_transport_error(self, envelope):
        gateway = _gateway(lambda r: httpx.Response(504, text="timeout"), [])

        with pytest.raises(LedgerTransportError):
            await gateway.submit_transaction(envelope)
