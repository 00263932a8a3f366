"""Request and response contracts for the web layer.

These Pydantic models define the API interface for web clients. Field names
are camelCase on the wire.
"""

from nearswap.web.contracts.routes import RouteErrorResponse, RouteRequest
from nearswap.web.contracts.tokens import TokenErrorResponse, TokenResponse

__all__ = [
    # Route contracts
    "RouteRequest",
    "RouteErrorResponse",
    # Token contracts
    "TokenResponse",
    "TokenErrorResponse",
]
