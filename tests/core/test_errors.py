"""
Tests for error classification.
"""

import httpx
import pytest

from bifrost_client.core.errors import (
    AccountNotFoundError,
    BifrostClientError,
    ChainMismatchError,
    ConfigurationError,
    ErrorCategory,
    LedgerSubmissionError,
    ProtocolVersionMismatchError,
    SessionAlreadyStartedError,
    StreamError,
    classify_error,
)


class TestErrorTaxonomy:

    def test_categories(self):
        assert ConfigurationError("x").category == ErrorCategory.CONFIGURATION
        assert ChainMismatchError("lumen", "bitcoin").category == ErrorCategory.PROTOCOL
        assert ProtocolVersionMismatchError(2, 1).category == ErrorCategory.PROTOCOL
        assert AccountNotFoundError("GABC").category == ErrorCategory.LEDGER
        assert StreamError("x").category == ErrorCategory.STREAM
        assert SessionAlreadyStartedError().category == ErrorCategory.USAGE

    def test_builtin_bases(self):
        assert isinstance(ConfigurationError("x"), ValueError)
        assert isinstance(SessionAlreadyStartedError(), RuntimeError)
        assert str(SessionAlreadyStartedError()) == "Session already started"

    def test_to_dict(self):
        data = ChainMismatchError("lumen", "bitcoin").to_dict()

        assert data["category"] == "protocol"
        assert data["type"] == "ChainMismatchError"
        assert data["details"] == {"expected": "lumen", "received": "bitcoin"}

    def test_submission_error_codes(self):
        error = LedgerSubmissionError("Transaction Failed")

        assert error.transaction_code is None
        assert error.operation_codes == []


class TestClassifyError:

    def test_client_errors_keep_their_category(self):
        assert classify_error(AccountNotFoundError("GABC")) == ErrorCategory.LEDGER

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
        ],
    )
    def test_httpx_errors_are_transport(self, error):
        assert classify_error(error) == ErrorCategory.TRANSPORT

    def test_value_error_is_configuration(self):
        assert classify_error(ValueError("bad seed")) == ErrorCategory.CONFIGURATION

    def test_unknown(self):
        assert classify_error(KeyError("x")) == ErrorCategory.UNKNOWN
        assert issubclass(BifrostClientError, Exception)
