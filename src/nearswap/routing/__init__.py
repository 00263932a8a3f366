"""Route resolution for NEAR swaps.

Resolvers:
- Intear: Intear DEX router (NEAR AMMs + NEAR Intents)
- DryRun: simulated single-step routes for development
"""

from nearswap.routing.base import (
    INTENTS_DEX_ID,
    NATIVE_TOKEN_ID,
    ChainTransaction,
    ExecutionStep,
    FunctionCallAction,
    IntentsQuote,
    ResolutionError,
    Route,
    RouteResolver,
    RouteResult,
    SlippageKind,
    SlippagePolicy,
    SwapRequest,
)
from nearswap.routing.dry_run import DryRunRouteResolver
from nearswap.routing.factory import create_resolver
from nearswap.routing.intear import IntearRouteResolver, create_intear_resolver
from nearswap.routing.session import RouteSession
from nearswap.routing.tokens import TokenInfo, TokenListService

__all__ = [
    # Model
    "INTENTS_DEX_ID",
    "NATIVE_TOKEN_ID",
    "ChainTransaction",
    "ExecutionStep",
    "FunctionCallAction",
    "IntentsQuote",
    "ResolutionError",
    "Route",
    "RouteResult",
    "SlippageKind",
    "SlippagePolicy",
    "SwapRequest",
    # Resolvers
    "RouteResolver",
    "IntearRouteResolver",
    "DryRunRouteResolver",
    "create_resolver",
    "create_intear_resolver",
    "RouteSession",
    # Tokens
    "TokenInfo",
    "TokenListService",
]
