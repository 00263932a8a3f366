"""HTTP controllers for web API endpoints.

These controllers only resolve routes and serve metadata. They never sign or
broadcast transactions.
"""

from nearswap.web.controllers.routes import router as routes_router
from nearswap.web.controllers.tokens import router as tokens_router

__all__ = [
    "routes_router",
    "tokens_router",
]
