"""Async Horizon client used as the ledger gateway."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
from stellar_sdk import TransactionEnvelope

from ..config import settings
from ..core.errors import (
    AccountNotFoundError,
    ConfigurationError,
    LedgerSubmissionError,
    LedgerTransportError,
)
from .base import LedgerGateway
from .models import LedgerAccount, SubmissionResult

logger = logging.getLogger(__name__)


class HorizonGateway(LedgerGateway):
    """Thin wrapper around the Horizon /accounts and /transactions endpoints."""

    name = "horizon"

    def __init__(
        self,
        base_url: str,
        *,
        allow_http: bool = False,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        scheme = urlparse(base_url).scheme
        if scheme == "http" and not allow_http:
            raise ConfigurationError(
                "Cannot connect to insecure horizon server; set horizon_allow_http to allow it"
            )
        if scheme not in ("http", "https"):
            raise ConfigurationError(f"Invalid horizon URL: {base_url!r}")

        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": "BifrostPythonClient/0.1",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.RequestError as exc:
            raise LedgerTransportError(f"Horizon request error: {exc}") from exc

    async def load_account(self, account_id: str) -> LedgerAccount:
        response = await self._request("GET", f"/accounts/{account_id}")
        if response.status_code == 404:
            raise AccountNotFoundError(account_id)
        if response.is_error:
            raise LedgerTransportError(
                f"Horizon API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        account = LedgerAccount.from_api(response.json())
        logger.debug(
            f"Loaded account {account.account_id} at sequence {account.sequence} "
            f"with {len(account.signers)} signer(s)"
        )
        return account

    async def submit_transaction(self, envelope: TransactionEnvelope) -> SubmissionResult:
        response = await self._request("POST", "/transactions", data={"tx": envelope.to_xdr()})

        if response.is_success:
            result = SubmissionResult.from_api(response.json())
            logger.info(f"Transaction {result.hash} included in ledger {result.ledger}")
            return result

        body = _json_or_empty(response)
        result_codes = (body.get("extras") or {}).get("result_codes") or {}
        if 400 <= response.status_code < 500 and body:
            raise LedgerSubmissionError(
                body.get("title") or "Transaction Failed",
                result_codes=result_codes,
                status_code=response.status_code,
            )
        raise LedgerTransportError(
            f"Horizon API error ({response.status_code}): {response.text}",
            status_code=response.status_code,
        )


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
