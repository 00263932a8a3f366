"""Route service for the swap form.

Resolves routes but does NOT execute swaps. Execution needs the user's
wallet and happens client-side through a signing handle.
"""

import logging
from functools import lru_cache
from typing import Optional

from nearswap.config import Settings, get_settings
from nearswap.routing.base import RouteResolver, RouteResult
from nearswap.routing.factory import create_resolver
from nearswap.web.contracts.routes import RouteRequest

logger = logging.getLogger(__name__)


class RouteService:
    """Service for fetching swap routes from the configured resolver."""

    def __init__(self, resolver: Optional[RouteResolver] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.resolver = resolver or create_resolver(self.settings)

    async def get_route(self, request: RouteRequest) -> RouteResult:
        """Resolve a route.

        Args:
            request: Validated route request

        Returns:
            Route, or ResolutionError carrying the HTTP status to answer with
        """
        logger.debug(
            f"Route request {request.token_in} -> {request.token_out} "
            f"amount={request.amount_in} slippage={request.slippage_type.value}"
        )
        return await self.resolver.resolve_route(request.to_swap_request(self.settings))


@lru_cache
def get_route_service() -> RouteService:
    """Get the shared route service."""
    return RouteService()
