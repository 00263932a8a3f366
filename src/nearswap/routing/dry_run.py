"""Dry-run resolver for simulated routes (no router access)."""

import base64
import json
import random
from decimal import Decimal

from nearswap.routing.base import (
    NATIVE_TOKEN_ID,
    ChainTransaction,
    FunctionCallAction,
    Route,
    RouteResolver,
    SwapRequest,
)
from nearswap.utils.amounts import format_amount, parse_amount, to_base_units, validate_decimals

REF_FINANCE_CONTRACT = "v2.ref-finance.near"
SIMULATED_DEX = "Rhea"
WRAP_CONTRACT = "wrap.near"


class DryRunRouteResolver(RouteResolver):
    """
    Simulated resolver for local development.

    Produces a single Ref Finance ``ft_transfer_call`` route with:
    - Near 1:1 rate, 0-2% random shortfall unless variance is disabled
    - 5% worst-case protection
    - 0.3% fee
    """

    def __init__(self, add_random_variance: bool = True, fee_percent: Decimal = Decimal("0.003")):
        self.add_random_variance = add_random_variance
        self.fee_percent = fee_percent

    @property
    def name(self) -> str:
        return "dry_run"

    async def fetch_route(self, request: SwapRequest) -> Route:
        validate_decimals(request.decimals_in, "decimalsIn")
        validate_decimals(request.decimals_out, "decimalsOut")
        amount = parse_amount(request.amount_in)

        rate = Decimal("0.98")
        if self.add_random_variance:
            rate -= Decimal(str(round(random.uniform(0, 0.02), 6)))
        amount_out = amount * rate
        minimum = amount * Decimal("0.95")
        price_impact = Decimal(str(round(random.uniform(0.1, 2.1), 2))) if self.add_random_variance else Decimal("0.5")

        amount_in_units = str(to_base_units(amount, request.decimals_in))
        min_out_units = str(to_base_units(minimum, request.decimals_out))
        msg = json.dumps({
            "actions": [{
                "amount_in": amount_in_units,
                "token_in": request.token_in,
                "token_out": request.token_out,
                "min_amount_out": min_out_units,
            }]
        })
        args = json.dumps({"amount": amount_in_units, "msg": msg, "receiver_id": REF_FINANCE_CONTRACT})

        step = ChainTransaction(
            receiver_id=WRAP_CONTRACT if request.token_in == NATIVE_TOKEN_ID else request.token_in,
            actions=(
                FunctionCallAction(
                    method_name="ft_transfer_call",
                    args=base64.b64encode(args.encode()).decode(),
                    gas="30000000000000",
                    deposit="1",
                ),
            ),
            continue_if_failed=False,
        )

        return Route(
            route=[SIMULATED_DEX],
            amount_out=format_amount(amount_out),
            minimum_received=format_amount(minimum),
            price_impact=str(price_impact),
            estimated_gas="0.003",
            fee=format_amount(amount * self.fee_percent),
            steps=[step],
            needs_unwrap=False,
            has_slippage=True,
            dex_id=SIMULATED_DEX,
            raw_response={"simulated": True},
        )
