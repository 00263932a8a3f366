"""Application configuration using pydantic-settings.

Covers the Intear router, the token list, NEAR RPC and the NEAR Intents
solver relay used during swap execution.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    dry_run: bool = Field(
        default=False, description="Serve simulated routes instead of querying the router"
    )

    # ======================
    # Intear Router
    # ======================
    router_api_urls: str = Field(
        default="https://router.intear.tech",
        description="Comma-separated router deployments, tried in order when unreachable",
    )
    router_timeout: float = Field(default=15.0, description="Hard timeout for a route request (seconds)")
    router_max_wait_ms: int = Field(default=3000, description="Wait budget passed to the router")
    router_dexes: str = Field(
        default="Rhea,Veax,Aidols,GraFun,RheaDcl,Wrap,MetaPool,Linear",
        description="Comma-separated venue allow-list",
    )
    default_max_slippage: Decimal = Field(default=Decimal("0.05"), description="Auto slippage ceiling (5%)")
    default_min_slippage: Decimal = Field(default=Decimal("0.001"), description="Auto slippage floor (0.1%)")
    default_gas_estimate: str = Field(default="0.003", description="Gas shown when the router omits it (NEAR)")
    default_fee: str = Field(default="0.003", description="Fee shown when the router omits it")

    # ======================
    # Token List
    # ======================
    tokens_api_url: str = Field(
        default="https://prices.intear.tech/tokens-reputable", description="Token list endpoint"
    )
    tokens_timeout: float = Field(default=15.0, description="Token list request timeout (seconds)")

    # ======================
    # NEAR Chain
    # ======================
    near_rpc_url: str = Field(default="https://rpc.mainnet.near.org", description="NEAR RPC URL")
    wrap_contract_id: str = Field(default="wrap.near", description="Wrapped NEAR contract")
    unwrap_gas: int = Field(default=30_000_000_000_000, description="Gas for near_withdraw (30 TGas)")
    confirmation_poll_interval: float = Field(default=2.0, description="Seconds between status polls")
    confirmation_timeout: float = Field(default=30.0, description="Max seconds to wait for finality")
    execution_timeout: Optional[float] = Field(
        default=None, description="Overall limit for one swap execution (None = unlimited)"
    )

    # ======================
    # NEAR Intents
    # ======================
    solver_relay_url: str = Field(
        default="https://solver-relay-v2.chaindefuser.com/rpc", description="Solver relay JSON-RPC URL"
    )
    solver_relay_timeout: float = Field(default=30.0, description="Solver relay request timeout (seconds)")
    intents_recipient: str = Field(default="intents.near", description="NEP-413 recipient")
    intents_callback_url: Optional[str] = Field(
        default=None, description="Callback origin included in the signed payload"
    )

    # ======================
    # Client
    # ======================
    route_debounce_ms: int = Field(default=800, description="Input quiescence before resolving a route")

    @property
    def router_urls(self) -> list[str]:
        """Parse router deployments into a list."""
        return [url.strip().rstrip("/") for url in self.router_api_urls.split(",") if url.strip()]

    @property
    def dex_list(self) -> list[str]:
        """Parse the venue allow-list into a list."""
        return [dex.strip() for dex in self.router_dexes.split(",") if dex.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for the health endpoint."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "router": {
                "urls": self.router_urls,
                "timeout": self.router_timeout,
                "max_wait_ms": self.router_max_wait_ms,
                "dexes": self.dex_list,
            },
            "near": {
                "rpc": self.near_rpc_url,
                "wrap_contract": self.wrap_contract_id,
                "confirmation_timeout": self.confirmation_timeout,
            },
            "intents": {
                "relay": self.solver_relay_url,
                "recipient": self.intents_recipient,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
