"""Swap route request and response contracts."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nearswap.config import Settings, get_settings
from nearswap.routing.base import SlippageKind, SlippagePolicy, SwapRequest


class RouteRequest(BaseModel):
    """Request for a swap route (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    token_in: str = Field(..., alias="tokenIn", min_length=1, description="Input token id (\"near\" or a contract)")
    token_out: str = Field(..., alias="tokenOut", min_length=1, description="Output token id")
    amount_in: str = Field(..., alias="amountIn", description="Input amount in human units, e.g. \"1.5\"")
    decimals_in: int = Field(default=24, alias="decimalsIn", ge=0, description="Input token decimals")
    decimals_out: int = Field(default=24, alias="decimalsOut", ge=0, description="Output token decimals")
    slippage_type: SlippageKind = Field(default=SlippageKind.AUTO, alias="slippageType")
    max_slippage: Optional[Decimal] = Field(
        default=None, alias="maxSlippage", ge=0, le=1, description="Auto ceiling (default from settings)"
    )
    min_slippage: Optional[Decimal] = Field(
        default=None, alias="minSlippage", ge=0, le=1, description="Auto floor (default from settings)"
    )
    slippage: Optional[Decimal] = Field(default=None, ge=0, le=1, description="Fixed slippage fraction")
    trader_account_id: Optional[str] = Field(default=None, alias="traderAccountId")
    signing_public_key: Optional[str] = Field(default=None, alias="signingPublicKey")

    @field_validator("amount_in", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        # Numbers are accepted but kept as text so no precision is lost downstream
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_slippage_policy(self, settings: Optional[Settings] = None) -> SlippagePolicy:
        """Slippage policy, filling omitted bounds from settings."""
        settings = settings or get_settings()
        max_slippage = self.max_slippage if self.max_slippage is not None else settings.default_max_slippage
        min_slippage = self.min_slippage if self.min_slippage is not None else settings.default_min_slippage

        if self.slippage_type == SlippageKind.FIXED:
            return SlippagePolicy.fixed(self.slippage if self.slippage is not None else max_slippage)
        return SlippagePolicy.auto(max_slippage, min_slippage)

    def to_swap_request(self, settings: Optional[Settings] = None) -> SwapRequest:
        return SwapRequest(
            token_in=self.token_in,
            token_out=self.token_out,
            amount_in=self.amount_in,
            decimals_in=self.decimals_in,
            decimals_out=self.decimals_out,
            slippage=self.to_slippage_policy(settings),
            trader_account_id=self.trader_account_id,
            signing_public_key=self.signing_public_key,
        )


class RouteErrorResponse(BaseModel):
    """Failed route resolution."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    kind: Optional[str] = None
    action: Optional[str] = None
    detail: Optional[str] = None
    upstream_status: Optional[int] = Field(default=None, alias="upstreamStatus")
