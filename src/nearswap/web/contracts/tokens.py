"""Token list contracts."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from nearswap.routing.tokens import TokenInfo


class TokenResponse(BaseModel):
    """One entry of the token picker list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="NEAR account id of the token contract")
    symbol: str
    name: str
    decimals: int
    price: Optional[float] = None
    change_24h: Optional[float] = Field(default=None, alias="change24h")
    icon: Optional[str] = None
    market_cap: Optional[float] = Field(default=None, alias="marketCap")
    volume_24h: Optional[float] = Field(default=None, alias="volume24h")
    reputation: str = "Unknown"

    @classmethod
    def from_info(cls, token: TokenInfo) -> "TokenResponse":
        return cls(
            id=token.id,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
            price=token.price,
            change_24h=token.change_24h,
            icon=token.icon,
            market_cap=token.market_cap,
            volume_24h=token.volume_24h,
            reputation=token.reputation,
        )


class TokenErrorResponse(BaseModel):
    """Token list failure."""

    error: str
    details: Optional[str] = None
