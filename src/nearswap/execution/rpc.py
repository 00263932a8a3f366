"""Minimal NEAR JSON-RPC client: transaction status and view calls."""

import asyncio
import base64
import json
import logging
import time
from typing import Any, Optional

import httpx

from nearswap.config import Settings, get_settings
from nearswap.errors import ConfirmationTimeoutError, TransactionFailedError, UpstreamError

logger = logging.getLogger(__name__)


class NearRpcError(UpstreamError):
    """JSON-RPC level error returned by a NEAR node."""


class NearRpcClient:
    """NEAR RPC client used for confirmations and balance lookups."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.rpc_url = self.settings.near_rpc_url
        self._client = client

    async def call(self, method: str, params: Any, timeout: float = 10.0) -> Any:
        """Issue one JSON-RPC call and return its ``result``.

        Raises:
            NearRpcError: RPC returned an error object
            httpx.HTTPError: Transport failure
        """
        body = {"jsonrpc": "2.0", "id": f"nearswap-{int(time.time() * 1000)}", "method": method, "params": params}

        if self._client is not None:
            response = await self._client.post(self.rpc_url, json=body, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(self.rpc_url, json=body)

        try:
            data = response.json()
        except ValueError:
            raise NearRpcError(f"NEAR RPC returned non-JSON response ({response.status_code})")

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            cause = error.get("cause", {}) if isinstance(error, dict) else {}
            name = cause.get("name") if isinstance(cause, dict) else None
            message = error.get("message", "RPC error") if isinstance(error, dict) else str(error)
            raise NearRpcError(f"{method}: {name or message}", detail=json.dumps(error)[:2000])

        return data.get("result") if isinstance(data, dict) else None

    async def tx_status(self, tx_hash: str, sender_id: str) -> dict:
        """Fetch the execution status of a transaction."""
        result = await self.call(
            "tx",
            {"tx_hash": tx_hash, "sender_account_id": sender_id, "wait_until": "FINAL"},
        )
        return result if isinstance(result, dict) else {}

    async def wait_for_transaction(
        self,
        tx_hash: str,
        sender_id: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> dict:
        """Poll until a transaction is final and successful.

        Args:
            tx_hash: Transaction hash
            sender_id: Signer account
            timeout: Maximum seconds to wait (default from settings)
            poll_interval: Seconds between polls (default from settings)

        Returns:
            Final transaction status

        Raises:
            ConfirmationTimeoutError: Not finalized within timeout
            TransactionFailedError: Transaction finalized with a failure
        """
        timeout = self.settings.confirmation_timeout if timeout is None else timeout
        poll_interval = self.settings.confirmation_poll_interval if poll_interval is None else poll_interval

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeoutError(f"Transaction {tx_hash} not confirmed after {timeout:g}s")

            try:
                status = await asyncio.wait_for(self.tx_status(tx_hash, sender_id), timeout=remaining)
            except asyncio.TimeoutError:
                raise ConfirmationTimeoutError(f"Transaction {tx_hash} not confirmed after {timeout:g}s")
            except (NearRpcError, httpx.HTTPError) as e:
                # Unknown or pending transactions surface as RPC errors
                logger.debug(f"Status of {tx_hash} not available yet: {e}")
                status = {}

            outcome = status.get("status")
            if isinstance(outcome, dict):
                if "SuccessValue" in outcome:
                    logger.info(f"Transaction {tx_hash} final")
                    return status
                if "Failure" in outcome:
                    raise TransactionFailedError(
                        f"Transaction {tx_hash} failed on-chain",
                        detail=json.dumps(outcome["Failure"])[:2000],
                    )

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeoutError(f"Transaction {tx_hash} not confirmed after {timeout:g}s")
            await asyncio.sleep(min(poll_interval, remaining))

    async def view_function(self, contract_id: str, method: str, args: Optional[dict] = None) -> Any:
        """Call a view method and JSON-decode its return value."""
        args_base64 = base64.b64encode(json.dumps(args or {}).encode()).decode()
        result = await self.call(
            "query",
            {
                "request_type": "call_function",
                "finality": "final",
                "account_id": contract_id,
                "method_name": method,
                "args_base64": args_base64,
            },
        )
        raw = bytes((result or {}).get("result", []))
        return json.loads(raw.decode()) if raw else None

    async def ft_balance_of(self, contract_id: str, account_id: str) -> int:
        """Fungible token balance in base units."""
        balance = await self.view_function(contract_id, "ft_balance_of", {"account_id": account_id})
        return int(balance or 0)
