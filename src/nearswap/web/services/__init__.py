"""Web services for route lookup and token metadata.

These services never sign or broadcast anything; swaps are signed by the
user's wallet.
"""

from nearswap.web.services.route_service import RouteService, get_route_service
from nearswap.web.services.token_service import TokenService, get_token_service

__all__ = [
    "RouteService",
    "TokenService",
    "get_route_service",
    "get_token_service",
]
