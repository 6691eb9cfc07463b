"""Async client for the Bifrost bridge HTTP API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import (
    BridgeTransportError,
    ChainMismatchError,
    ProtocolVersionMismatchError,
)
from .models import AddressRegistration

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = 2


class BifrostProvider:
    """Wrapper around the Bifrost address generation and recovery endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": "BifrostPythonClient/0.1",
        }

    async def _post_form(self, path: str, data: Dict[str, str]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.post(path, data=data, headers=self._headers())
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise BridgeTransportError(
                f"Bifrost API error ({status}): {exc.response.text}",
                status_code=status,
            ) from exc
        except httpx.RequestError as exc:
            raise BridgeTransportError(f"Bifrost request error: {exc}") from exc

    async def register_address(self, chain: str, public_key: str) -> AddressRegistration:
        """Ask Bifrost for a deposit address on `chain` bound to `public_key`.

        Raises ChainMismatchError or ProtocolVersionMismatchError when the
        answer does not match what was asked for.
        """

        response = await self._post_form(
            f"/generate-{chain}-address",
            {"stellar_public_key": public_key},
        )
        try:
            data: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise BridgeTransportError(f"Bifrost returned a non-JSON response: {response.text}") from exc

        if data.get("chain") != chain:
            raise ChainMismatchError(chain, data.get("chain"))

        if data.get("protocol_version") != PROTOCOL_VERSION:
            raise ProtocolVersionMismatchError(PROTOCOL_VERSION, data.get("protocol_version"))

        registration = AddressRegistration.model_validate(data)
        logger.info(
            f"Registered {chain} deposit address for {public_key}"
            f"{' (bridge signer required)' if registration.signer else ''}"
        )
        return registration

    async def submit_recovery_transaction(self, transaction_xdr: str) -> None:
        """Hand a signed recovery envelope (base64 XDR) to Bifrost."""

        await self._post_form("/recovery-transaction", {"transaction_xdr": transaction_xdr})
        logger.info("Recovery transaction submitted to Bifrost")
