"""Intear router integration for NEAR.

Queries the Intear DEX router for the best route across NEAR venues (Rhea,
Veax, MetaPool, ...) and NEAR Intents, and normalizes the response into a
``Route``.
API: GET https://router.intear.tech/route
"""

import asyncio
import json
import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, AsyncIterator, Optional

import httpx

from nearswap.config import Settings, get_settings
from nearswap.errors import (
    InvalidInputError,
    NoRouteError,
    RateLimitedError,
    SwapError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from nearswap.routing.base import (
    INTENTS_DEX_ID,
    ChainTransaction,
    FunctionCallAction,
    IntentsQuote,
    Route,
    RouteResolver,
    SwapRequest,
)
from nearswap.utils.amounts import base_units_to_display, coerce_base_units, to_base_units, validate_decimals
from nearswap.utils.fields import FieldSpec, extract, extract_all, matched_path

logger = logging.getLogger(__name__)

# Synonyms seen across router deployments, highest priority first
ROUTE_FIELDS = (
    FieldSpec("dex_id", ("dex_id", "dexId", "dex")),
    FieldSpec("path", ("path", "route_path", "routePath")),
    FieldSpec(
        "amount_out",
        (
            "estimated_amount.amount_out",
            "estimatedAmount.amountOut",
            "estimated_amount_out",
            "amount_out",
            "amountOut",
            "expected_amount_out",
        ),
    ),
    FieldSpec(
        "minimum_received",
        (
            "worst_case_amount.amount_out",
            "worstCaseAmount.amountOut",
            "worst_case_amount_out",
            "min_amount_out",
            "minimum_amount_out",
            "minimumReceived",
        ),
    ),
    FieldSpec("price_impact", ("price_impact", "priceImpact", "price_impact_pct")),
    FieldSpec("estimated_gas", ("estimated_gas", "estimatedGas", "gas_estimate")),
    FieldSpec("fee", ("fee", "total_fee", "totalFee", "fee_amount")),
    FieldSpec(
        "instructions",
        ("execution_instructions", "executionInstructions", "transactions", "instructions"),
        default=[],
    ),
    FieldSpec("needs_unwrap", ("needs_unwrap", "needsUnwrap"), default=False),
    FieldSpec("has_slippage", ("has_slippage", "hasSlippage"), default=False),
    FieldSpec("deadline", ("deadline", "expires_at", "expiresAt")),
)

TRANSACTION_FIELDS = (
    FieldSpec("receiver_id", ("receiver_id", "receiverId"), default=""),
    FieldSpec("actions", ("actions",), default=[]),
    FieldSpec("continue_if_failed", ("continue_if_failed", "continueIfFailed"), default=False),
)

FUNCTION_CALL_FIELDS = (
    FieldSpec("method_name", ("method_name", "methodName"), default=""),
    FieldSpec("args", ("args",), default=""),
    FieldSpec("gas", ("gas",), default="0"),
    FieldSpec("deposit", ("deposit",), default="0"),
)

INTENTS_QUOTE_FIELDS = (
    FieldSpec("message_to_sign", ("message_to_sign", "messageToSign", "message")),
    FieldSpec("quote_hash", ("quote_hash", "quoteHash")),
)

ROUTE_FIELD_BY_NAME = {field_spec.name: field_spec for field_spec in ROUTE_FIELDS}

ROUTE_LIST_FIELD = FieldSpec("routes", ("routes", "data"))

# Best-effort markers for classifying error bodies; wording is not contractual
NO_ROUTE_MARKERS = ("no route", "no path", "not found", "insufficient liquidity")
INVALID_INPUT_MARKERS = ("invalid", "failed to parse", "malformed", "missing field", "unknown variant")
RATE_LIMIT_MARKERS = ("rate limit", "too many requests")


def classify_error(status_code: int, body: str) -> SwapError:
    """Map a failed router response to a typed error."""
    text = (body or "").lower()
    detail = (body or "")[:2000] or None

    if status_code == 429 or any(m in text for m in RATE_LIMIT_MARKERS):
        return RateLimitedError("Router rate limit reached, try again shortly", detail=detail, status=status_code)
    if status_code == 404 or any(m in text for m in NO_ROUTE_MARKERS):
        return NoRouteError("No routes available", detail=detail, status=status_code)
    if status_code in (400, 422) or any(m in text for m in INVALID_INPUT_MARKERS):
        return InvalidInputError("Router rejected the request parameters", detail=detail, status=status_code)
    return UpstreamError(f"Router request failed: {status_code}", detail=detail, status=status_code)


def select_best_route(data: Any) -> dict:
    """Pick the best (first) route from a single object or best-first list."""
    if isinstance(data, dict):
        nested = extract(data, ROUTE_LIST_FIELD)
        if isinstance(nested, list):
            data = nested

    if isinstance(data, list):
        if not data:
            raise NoRouteError("No routes available")
        data = data[0]

    if not isinstance(data, dict) or not data:
        raise NoRouteError("No routes available")
    return data


def parse_deadline(raw: Any) -> Optional[int]:
    """Parse a router deadline into epoch milliseconds."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(Decimal(text))
    except (InvalidOperation, ValueError, OverflowError):
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable deadline {text!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def parse_action(raw: Any) -> FunctionCallAction:
    """Parse one action ({"FunctionCall": {...}} or the flattened form)."""
    if not isinstance(raw, dict):
        raise UpstreamError(f"Unsupported action in route: {raw!r}")

    body = raw.get("FunctionCall", raw)
    if not isinstance(body, dict):
        raise UpstreamError("Malformed FunctionCall action in route")

    fields = extract_all(body, FUNCTION_CALL_FIELDS)
    if not fields["method_name"]:
        kinds = ", ".join(str(k) for k in raw.keys())
        raise UpstreamError(f"Unsupported action in route: {kinds}")

    return FunctionCallAction(
        method_name=str(fields["method_name"]),
        args=str(fields["args"]),
        gas=str(fields["gas"]),
        deposit=str(fields["deposit"]),
    )


def parse_intents_quote(raw: Any) -> IntentsQuote:
    body = raw if isinstance(raw, dict) else {}
    fields = extract_all(body, INTENTS_QUOTE_FIELDS)
    message = fields["message_to_sign"]
    if message is not None and not isinstance(message, str):
        message = json.dumps(message, separators=(",", ":"))
    return IntentsQuote(
        message_to_sign=message,
        quote_hash=fields["quote_hash"],
        raw=body,
    )


def parse_instructions(instructions: Any) -> tuple[list[ChainTransaction], Optional[IntentsQuote]]:
    """Split router execution instructions into transaction steps and an intents quote.

    Instructions are tagged by their single key ("NearTransaction",
    "IntentsQuote"); untagged objects with a receiver are read as transactions.
    """
    steps: list[ChainTransaction] = []
    intents_quote: Optional[IntentsQuote] = None

    if not isinstance(instructions, list):
        logger.warning(f"Ignoring non-list execution instructions: {type(instructions).__name__}")
        return steps, None

    for instruction in instructions:
        if not isinstance(instruction, dict):
            logger.warning(f"Skipping malformed instruction: {instruction!r}")
            continue

        if "IntentsQuote" in instruction:
            if intents_quote is None:
                intents_quote = parse_intents_quote(instruction["IntentsQuote"])
            continue

        body = instruction.get("NearTransaction", instruction)
        fields = extract_all(body, TRANSACTION_FIELDS)
        if not fields["receiver_id"]:
            logger.warning(f"Skipping instruction without receiver: {list(instruction.keys())}")
            continue

        actions = fields["actions"] if isinstance(fields["actions"], list) else []
        steps.append(
            ChainTransaction(
                receiver_id=str(fields["receiver_id"]),
                actions=tuple(parse_action(action) for action in actions),
                continue_if_failed=bool(fields["continue_if_failed"]),
            )
        )

    return steps, intents_quote


def normalize_route(best: dict, raw_response: Any, request: SwapRequest, settings: Settings) -> Route:
    """Build a Route from a single router route object."""
    fields = extract_all(best, ROUTE_FIELDS)

    amount_out_units = coerce_base_units(fields["amount_out"])
    minimum_units = coerce_base_units(fields["minimum_received"])
    if fields["amount_out"] is None:
        logger.warning(f"Route has no output amount (keys: {sorted(best.keys())})")
    else:
        logger.debug(f"Output amount read from {matched_path(best, ROUTE_FIELD_BY_NAME['amount_out'])}")
    if minimum_units > amount_out_units:
        logger.warning(f"Worst-case amount {minimum_units} exceeds estimate {amount_out_units}, clamping")
        minimum_units = amount_out_units

    has_slippage = bool(fields["has_slippage"])
    price_impact = fields["price_impact"]
    if price_impact is None:
        price_impact = "0.5" if has_slippage else "0"

    dex_id = str(fields["dex_id"] or "")
    path = fields["path"]
    if not isinstance(path, list) or not path:
        path = [dex_id] if dex_id else []

    steps, intents_quote = parse_instructions(fields["instructions"])

    use_intents = dex_id == INTENTS_DEX_ID
    if use_intents and intents_quote is None:
        raise UpstreamError("NearIntents route is missing its IntentsQuote payload")

    return Route(
        route=[str(venue) for venue in path],
        amount_out=base_units_to_display(amount_out_units, request.decimals_out),
        minimum_received=base_units_to_display(minimum_units, request.decimals_out),
        price_impact=str(price_impact),
        estimated_gas=str(fields["estimated_gas"] or settings.default_gas_estimate),
        fee=str(fields["fee"] or settings.default_fee),
        steps=steps,
        needs_unwrap=bool(fields["needs_unwrap"]),
        deadline=parse_deadline(fields["deadline"]),
        has_slippage=has_slippage,
        dex_id=dex_id,
        use_intents=use_intents,
        intents_quote=intents_quote if use_intents else None,
        raw_response=raw_response,
    )


class IntearRouteResolver(RouteResolver):
    """Route resolver backed by the Intear DEX router.

    The router aggregates NEAR AMMs and NEAR Intents solvers and returns
    ready-to-sign execution instructions.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        """Initialize the resolver.

        Args:
            settings: Settings override (defaults to environment settings)
            client: Shared HTTP client; one is created per request when omitted
        """
        self.settings = settings or get_settings()
        self._client = client

    @property
    def name(self) -> str:
        return "Intear"

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.settings.router_timeout) as client:
            yield client

    def build_params(self, request: SwapRequest) -> dict[str, str]:
        """Build router query parameters. Validates the request first."""
        decimals_in = validate_decimals(request.decimals_in, "decimalsIn")
        validate_decimals(request.decimals_out, "decimalsOut")
        amount_units = to_base_units(request.amount_in, decimals_in)
        if amount_units <= 0:
            raise InvalidInputError(f"Amount {request.amount_in} is below the token's smallest unit")

        params = {
            "token_in": request.token_in,
            "token_out": request.token_out,
            "amount_in": str(amount_units),
            "max_wait_ms": str(self.settings.router_max_wait_ms),
        }
        params.update(request.slippage.to_params())
        params["dexes"] = ",".join(self.settings.dex_list)

        if request.trader_account_id:
            params["trader_account_id"] = request.trader_account_id
        if request.signing_public_key:
            params["signing_public_key"] = request.signing_public_key
        return params

    async def fetch_route(self, request: SwapRequest) -> Route:
        params = self.build_params(request)
        logger.info(f"Fetching route from Intear: {request.amount_in} {request.token_in} -> {request.token_out}")

        response = await self._request(params)

        if not response.is_success:
            raise classify_error(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError(
                "Router returned a non-JSON response",
                detail=response.text[:2000],
                status=response.status_code,
            )

        best = select_best_route(data)
        return normalize_route(best, data, request, self.settings)

    async def _request(self, params: dict[str, str]) -> httpx.Response:
        """GET /route, moving to the next deployment only when one is unreachable."""
        unreachable = []
        timeout = self.settings.router_timeout

        async with self._http() as client:
            for base_url in self.settings.router_urls:
                url = f"{base_url}/route"
                try:
                    # wait_for cancels the request, which closes the connection
                    return await asyncio.wait_for(
                        client.get(url, params=params, headers={"Accept": "application/json"}),
                        timeout=timeout,
                    )
                except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                    logger.warning(f"Router {base_url} unreachable: {type(e).__name__}: {e}")
                    unreachable.append(f"{base_url}: {type(e).__name__}")
                except (asyncio.TimeoutError, httpx.TimeoutException):
                    logger.error(f"Router {base_url} timed out after {timeout}s")
                    raise UpstreamTimeoutError(f"Router did not respond within {timeout:g}s")
                except httpx.HTTPError as e:
                    raise UpstreamError(f"Router request failed: {type(e).__name__}", detail=str(e))

        raise UpstreamUnavailableError(
            "All router endpoints are unreachable",
            detail="; ".join(unreachable) or "no router endpoints configured",
        )


def create_intear_resolver(settings: Optional[Settings] = None) -> IntearRouteResolver:
    """Create an Intear resolver instance."""
    return IntearRouteResolver(settings=settings)
