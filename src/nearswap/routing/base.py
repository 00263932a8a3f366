"""Route model and abstract resolver interface."""

import base64
import binascii
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from nearswap.errors import ErrorKind, InvalidQuoteError, SwapError

logger = logging.getLogger(__name__)

NATIVE_TOKEN_ID = "near"
INTENTS_DEX_ID = "NearIntents"


class SlippageKind(str, Enum):
    """How the router should bound slippage."""
    AUTO = "Auto"
    FIXED = "Fixed"


@dataclass(frozen=True)
class SlippagePolicy:
    """Slippage bounds as fractions (0.05 = 5%)."""

    kind: SlippageKind = SlippageKind.AUTO
    max_slippage: Decimal = Decimal("0.05")
    min_slippage: Decimal = Decimal("0.001")
    slippage: Optional[Decimal] = None

    @classmethod
    def auto(cls, max_slippage: Decimal, min_slippage: Decimal) -> "SlippagePolicy":
        return cls(kind=SlippageKind.AUTO, max_slippage=max_slippage, min_slippage=min_slippage)

    @classmethod
    def fixed(cls, slippage: Decimal) -> "SlippagePolicy":
        return cls(kind=SlippageKind.FIXED, slippage=slippage)

    def to_params(self) -> dict[str, str]:
        """Router query parameters for this policy."""
        if self.kind == SlippageKind.FIXED:
            value = self.slippage if self.slippage is not None else self.max_slippage
            return {"slippage_type": "Fixed", "slippage": str(value)}
        return {
            "slippage_type": "Auto",
            "max_slippage": str(self.max_slippage),
            "min_slippage": str(self.min_slippage),
        }


@dataclass
class SwapRequest:
    """A request for a swap route, built fresh on every input change."""

    token_in: str
    token_out: str
    amount_in: str  # human units, e.g. "1.5"
    decimals_in: int = 24
    decimals_out: int = 24
    slippage: SlippagePolicy = field(default_factory=SlippagePolicy)
    trader_account_id: Optional[str] = None
    signing_public_key: Optional[str] = None


@dataclass(frozen=True)
class FunctionCallAction:
    """A contract method call inside a NEAR transaction.

    ``gas`` and ``deposit`` stay strings until execution since yoctoNEAR
    values do not fit in a float.
    """

    method_name: str
    args: str  # base64
    gas: str
    deposit: str

    def decode_args(self) -> bytes:
        try:
            return base64.b64decode(self.args, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidQuoteError(f"Action {self.method_name} has malformed args", detail=str(e))

    @property
    def gas_amount(self) -> int:
        return _to_int(self.gas, f"{self.method_name} gas")

    @property
    def deposit_amount(self) -> int:
        return _to_int(self.deposit, f"{self.method_name} deposit")

    def to_dict(self) -> dict:
        return {
            "FunctionCall": {
                "method_name": self.method_name,
                "args": self.args,
                "gas": self.gas,
                "deposit": self.deposit,
            }
        }


def _to_int(value: str, what: str) -> int:
    try:
        amount = int(str(value).strip())
    except ValueError:
        raise InvalidQuoteError(f"Invalid {what}: {value!r}")
    if amount < 0:
        raise InvalidQuoteError(f"Invalid {what}: {value!r}")
    return amount


@dataclass(frozen=True)
class ChainTransaction:
    """One on-chain transaction of a route (an execution step)."""

    receiver_id: str
    actions: tuple[FunctionCallAction, ...] = ()
    continue_if_failed: bool = False

    def to_dict(self) -> dict:
        return {
            "NearTransaction": {
                "receiver_id": self.receiver_id,
                "actions": [action.to_dict() for action in self.actions],
                "continue_if_failed": self.continue_if_failed,
            }
        }


ExecutionStep = ChainTransaction


@dataclass(frozen=True)
class IntentsQuote:
    """Signed-intent settlement payload returned for NearIntents routes."""

    message_to_sign: Optional[str]
    quote_hash: Optional[str]
    raw: dict = field(default_factory=dict)

    @property
    def is_signable(self) -> bool:
        return bool(self.message_to_sign) and bool(self.quote_hash)

    def to_dict(self) -> dict:
        return {"IntentsQuote": self.raw or {
            "message_to_sign": self.message_to_sign,
            "quote_hash": self.quote_hash,
        }}


@dataclass
class Route:
    """A normalized best-execution route, ready to display and execute."""

    route: list[str]
    amount_out: str
    minimum_received: str
    price_impact: str
    estimated_gas: str
    fee: str
    steps: list[ChainTransaction] = field(default_factory=list)
    needs_unwrap: bool = False
    deadline: Optional[int] = None  # epoch millis
    has_slippage: bool = False
    dex_id: str = ""
    use_intents: bool = False
    intents_quote: Optional[IntentsQuote] = None
    raw_response: Any = None
    created_at: float = field(default_factory=time.time)

    @property
    def is_expired(self) -> bool:
        """Check if the router deadline has passed."""
        if self.deadline is None:
            return False
        return time.time() * 1000 > self.deadline

    def to_dict(self) -> dict:
        """Serialize to the JSON shape served by the API."""
        return {
            "route": list(self.route),
            "amountOut": self.amount_out,
            "minimumReceived": self.minimum_received,
            "priceImpact": self.price_impact,
            "estimatedGas": self.estimated_gas,
            "fee": self.fee,
            "transactions": [step.to_dict() for step in self.steps],
            "needsUnwrap": self.needs_unwrap,
            "deadline": self.deadline,
            "hasSlippage": self.has_slippage,
            "dexId": self.dex_id,
            "useIntents": self.use_intents,
            "intentsQuote": self.intents_quote.to_dict() if self.intents_quote else None,
            "rawResponse": self.raw_response,
        }


@dataclass(frozen=True)
class ResolutionError:
    """Typed failure of a route resolution."""

    kind: ErrorKind
    message: str
    detail: Optional[str] = None
    upstream_status: Optional[int] = None

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def to_dict(self) -> dict:
        data = {"error": self.message, "kind": self.kind.value, "action": self.kind.action}
        if self.detail:
            data["detail"] = self.detail
        if self.upstream_status is not None:
            data["upstreamStatus"] = self.upstream_status
        return data

    @classmethod
    def from_exception(cls, error: SwapError) -> "ResolutionError":
        return cls(kind=error.kind, message=error.message, detail=error.detail, upstream_status=error.status)


RouteResult = Union[Route, ResolutionError]


class RouteResolver(ABC):
    """Abstract base class for route resolvers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Resolver name identifier."""
        pass

    @abstractmethod
    async def fetch_route(self, request: SwapRequest) -> Route:
        """Fetch and normalize a route.

        Raises:
            SwapError: Typed failure (invalid input, no route, timeout, ...)
        """
        pass

    async def resolve_route(self, request: SwapRequest) -> RouteResult:
        """Resolve a route, converting every failure into a ResolutionError."""
        try:
            route = await self.fetch_route(request)
        except SwapError as e:
            logger.warning(f"{self.name} resolution failed: {e.kind.value}: {e.message}")
            return ResolutionError.from_exception(e)
        except Exception as e:
            logger.exception(f"{self.name} resolution crashed")
            return ResolutionError(
                kind=ErrorKind.UPSTREAM_ERROR,
                message="Failed to fetch swap route",
                detail=f"{type(e).__name__}: {e}",
            )

        logger.info(
            f"{self.name} route {request.token_in} -> {request.token_out}: "
            f"{request.amount_in} -> {route.amount_out} via {route.dex_id or 'unknown'}"
        )
        return route
