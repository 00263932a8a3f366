"""NEAR Intents solver relay client.

Publishes a signed intent for a solver quote. Exactly one request is sent per
publication: a timed-out publication may still settle, so it is reported,
never retried.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from nearswap.config import Settings, get_settings
from nearswap.errors import IntentRejectedError, UpstreamError, UpstreamTimeoutError, UpstreamUnavailableError
from nearswap.utils.fields import FieldSpec, extract_all

logger = logging.getLogger(__name__)

RELAY_RESULT_FIELDS = (
    FieldSpec("hash", ("hash", "transaction_hash", "intent_hash")),
    FieldSpec("receipts", ("receipts",), default=[]),
    FieldSpec("status", ("status",)),
    FieldSpec("reason", ("reason", "message")),
)


@dataclass(frozen=True)
class PublishResult:
    """Relay acknowledgement of a published intent."""
    intent_hash: Optional[str]
    receipts: list[Any] = field(default_factory=list)
    raw: dict = field(default_factory=dict)


class SolverRelayClient:
    """JSON-RPC client for the solver relay."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.url = self.settings.solver_relay_url
        self._client = client

    async def publish_intent(self, quote_hash: str, signed_data: dict) -> PublishResult:
        """Publish a signed intent.

        Args:
            quote_hash: Solver quote being accepted
            signed_data: {standard, payload, signature, public_key}

        Returns:
            PublishResult with the settlement hash

        Raises:
            IntentRejectedError: Relay returned an error object or a failed status
            UpstreamTimeoutError: No answer in time (intent status unknown)
            UpstreamUnavailableError: Relay unreachable (nothing was sent)
        """
        body = {
            "jsonrpc": "2.0",
            "method": "publish_intent",
            "params": {"quote_hashes": [quote_hash], "signed_data": signed_data},
            "id": int(time.time() * 1000),
        }
        logger.info(f"Publishing intent for quote {quote_hash}")

        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.settings.solver_relay_timeout) as client:
                    response = await client.post(self.url, json=body)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise UpstreamUnavailableError("Solver relay unreachable", detail=str(e))
        except httpx.TimeoutException:
            raise UpstreamTimeoutError("Solver relay did not respond; the intent may still settle")
        except httpx.HTTPError as e:
            raise UpstreamError(f"Solver relay request failed: {type(e).__name__}", detail=str(e))

        try:
            data = response.json()
        except ValueError:
            raise IntentRejectedError(
                f"Solver relay returned {response.status_code}",
                detail=response.text[:2000],
                status=response.status_code,
            )

        if not isinstance(data, dict):
            raise IntentRejectedError("Malformed solver relay response", detail=str(data)[:2000])

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise IntentRejectedError(message or "Intent publication failed", detail=str(error)[:2000])

        result = data.get("result")
        if not isinstance(result, dict):
            raise IntentRejectedError("Solver relay returned no result", status=response.status_code)

        fields = extract_all(result, RELAY_RESULT_FIELDS)
        if str(fields["status"] or "").upper() == "FAILED":
            raise IntentRejectedError(str(fields["reason"] or "Intent publication failed"))

        logger.info(f"Intent published: {fields['hash']}")
        receipts = fields["receipts"] if isinstance(fields["receipts"], list) else []
        return PublishResult(intent_hash=fields["hash"], receipts=receipts, raw=result)
