"""Token metadata from the Intear price service.

Token ids here are the same NEAR account ids the router expects.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Optional

import httpx

from nearswap.config import Settings, get_settings
from nearswap.errors import UpstreamError, UpstreamTimeoutError
from nearswap.utils.fields import FieldSpec, extract_all

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_DECIMALS = 18

TOKEN_FIELDS = (
    FieldSpec("id", ("account_id", "token_id")),
    FieldSpec("symbol", ("metadata.symbol", "symbol")),
    FieldSpec("name", ("metadata.name", "name")),
    FieldSpec("decimals", ("metadata.decimals", "decimals"), default=DEFAULT_TOKEN_DECIMALS),
    FieldSpec("price", ("price_usd", "price")),
    FieldSpec("change_24h", ("change_24h",)),
    FieldSpec("icon", ("metadata.icon", "icon")),
    FieldSpec("market_cap", ("market_cap",)),
    FieldSpec("volume_24h", ("volume_24h",)),
    FieldSpec("reputation", ("reputation",), default="Unknown"),
)

# Browser-like headers; the price service rejects bare clients
REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
    ),
}


@dataclass
class TokenInfo:
    """Token metadata record."""

    id: str
    symbol: str
    name: str
    decimals: int = DEFAULT_TOKEN_DECIMALS
    price: Optional[float] = None
    change_24h: Optional[float] = None
    icon: Optional[str] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    reputation: str = "Unknown"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["change24h"] = data.pop("change_24h")
        data["marketCap"] = data.pop("market_cap")
        data["volume24h"] = data.pop("volume_24h")
        return data


def _to_float(value: Any) -> Optional[float]:
    # Display-only market data
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_decimals(value: Any) -> int:
    try:
        decimals = int(value)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_DECIMALS
    return decimals if decimals >= 0 else DEFAULT_TOKEN_DECIMALS


def parse_token(raw: Any) -> Optional[TokenInfo]:
    """Map one upstream record; returns None when id, symbol or name is missing."""
    if not isinstance(raw, dict):
        return None
    fields = extract_all(raw, TOKEN_FIELDS)
    if not fields["id"] or not fields["symbol"] or not fields["name"]:
        return None

    return TokenInfo(
        id=str(fields["id"]),
        symbol=str(fields["symbol"]),
        name=str(fields["name"]),
        decimals=_to_decimals(fields["decimals"]),
        price=_to_float(fields["price"]),
        change_24h=_to_float(fields["change_24h"]),
        icon=fields["icon"],
        market_cap=_to_float(fields["market_cap"]),
        volume_24h=_to_float(fields["volume_24h"]),
        reputation=str(fields["reputation"]),
    )


class TokenListService:
    """Fetches the reputable-token list used by the token picker."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self._client = client

    async def get_tokens(self) -> list[TokenInfo]:
        """Fetch and normalize the token list.

        Raises:
            UpstreamTimeoutError: Price service timed out
            UpstreamError: Non-2xx response, bad payload or empty list
        """
        url = self.settings.tokens_api_url
        params = {"t": str(int(time.time() * 1000))}  # bypass CDN cache

        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, headers=REQUEST_HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self.settings.tokens_timeout) as client:
                    response = await client.get(url, params=params, headers=REQUEST_HEADERS)
        except httpx.TimeoutException:
            raise UpstreamTimeoutError("Token list request timed out")
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch tokens: {type(e).__name__}", detail=str(e))

        if not response.is_success:
            raise UpstreamError(f"Failed to fetch tokens: {response.status_code}", status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("Token list is not valid JSON")

        if not isinstance(data, list) or not data:
            raise UpstreamError("No tokens available")

        tokens = [token for token in (parse_token(item) for item in data) if token is not None]
        logger.info(f"Loaded {len(tokens)} tokens ({len(data) - len(tokens)} skipped)")
        return tokens
