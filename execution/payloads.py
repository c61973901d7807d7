# PATH: execution/payloads.py
"""
Route descriptors -> transaction requests.

Thin by design: every decision (pool ordering, direction flag, minimum
output, split amounts) was already made by strategy/routing.py. This
module only picks the entry function and lays out its arguments.
"""

from typing import Optional

from core.constants import RouteMode
from core.exceptions import ErrorCode, RoutingError
from core.models import TxRequest
from dex.adapters.contracts import AmmContract, ContractAddresses, RouterContract
from strategy.routing import ArbitrageLeg, RouteDescriptor


class PayloadBuilder:
    """Builds TxRequest objects for routes and arbitrage legs."""

    def __init__(self, addresses: Optional[ContractAddresses] = None):
        addresses = addresses or ContractAddresses()
        self.amm = AmmContract(addresses)
        self.router = RouterContract(addresses)

    def for_route(self, route: RouteDescriptor) -> TxRequest:
        if route.mode == RouteMode.AMM_DIRECT:
            return self.amm.swap_exact_in(
                route.token_x,
                route.token_y,
                route.fee_tier,
                route.amount_in_raw,
                route.min_amount_out_raw,
                route.x_to_y,
            )

        if route.mode == RouteMode.ROUTER_SINGLE_HOP:
            return self.router.swap_exact_input_single(
                route.token_x,
                route.token_y,
                route.fee_tier,
                route.amount_in_raw,
                route.min_amount_out_raw,
                route.x_to_y,
            )

        if route.mode == RouteMode.ROUTER_MULTI_HOP:
            # Path order: in -> intermediate -> out
            return self.router.swap_exact_input_multihop(
                route.token_in,
                route.intermediate,
                route.token_out,
                route.fee_tier,
                route.fee_tier_2,
                route.amount_in_raw,
                route.min_amount_out_raw,
            )

        if route.mode == RouteMode.SPLIT_EXECUTION and route.split is not None:
            return self.router.split_order_execution(
                route.token_in,
                route.token_out,
                route.amount_in_raw,
                route.split.amm_portion_raw,
                route.fee_tier,
                route.split.clob_price_raw,
                route.min_amount_out_raw,
            )

        raise RoutingError(
            ErrorCode.ROUTE_UNSUPPORTED,
            f"No payload for route mode {route.mode.value}",
            {"mode": route.mode.value},
        )

    def for_arbitrage(self, leg: ArbitrageLeg) -> TxRequest:
        return self.router.arbitrage_amm_clob(
            leg.token_x,
            leg.token_y,
            leg.amm_fee_tier,
            leg.clob_side,
            leg.clob_price_raw,
            leg.amount_raw,
        )
