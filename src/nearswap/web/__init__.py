"""Web boundary layer.

Non-custodial by construction:
1. Routes are resolved server-side and returned with the transactions (or
   intents quote) the wallet must sign
2. Signing and submission happen in the user's wallet
3. Nothing in this layer imports ``nearswap.execution``
"""

__all__ = [
    "contracts",
    "services",
    "controllers",
]
