"""nearswap - NEAR token swap aggregator.

Resolves best-execution routes through the Intear router and settles them
through a wallet signing handle (on-chain transactions or NEAR Intents).
"""

__version__ = "0.1.0"
