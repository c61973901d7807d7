"""
dex/adapters/contracts.py - Entry and view function builders.

One builder per on-chain module (amm, clob, router, custom_coin). Builders
are pure: they produce TxRequest / ViewRequest and never talk to the node.

ARGUMENT CONTRACT:
- token amounts and scaled prices travel as decimal strings (u64 safe)
- fee tiers, order sides, depth levels travel as ints
- callers pass values that already went through the unit scaler
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from core.constants import DEFAULT_MODULE_ADDRESS, OrderSide
from core.logging import get_logger
from core.models import TxRequest, ViewRequest
from core.validators import validate_account_address, validate_fee_tier, validate_order_side

logger = get_logger(__name__)

RawAmount = Union[str, int]


def _amount(value: RawAmount) -> str:
    return str(int(value))


@dataclass(frozen=True)
class ContractAddresses:
    """Module identifiers derived from the deployment address."""
    module_address: str = DEFAULT_MODULE_ADDRESS

    def __post_init__(self):
        validate_account_address(self.module_address, field="module_address")

    @property
    def amm(self) -> str:
        return f"{self.module_address}::amm"

    @property
    def clob(self) -> str:
        return f"{self.module_address}::clob"

    @property
    def router(self) -> str:
        return f"{self.module_address}::router"

    @property
    def custom_coin(self) -> str:
        return f"{self.module_address}::custom_coin"

    @property
    def custom_coin_type(self) -> str:
        """Type tag of coins issued through custom_coin."""
        return f"{self.custom_coin}::CustomCoin"

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> "ContractAddresses":
        if not data or not data.get("module_address"):
            return cls()
        return cls(module_address=str(data["module_address"]))


def load_contract_addresses(path: Optional[Union[str, Path]] = None) -> ContractAddresses:
    """Load addresses from config/contracts.yaml (defaults if missing)."""
    from config import load_contracts_config

    data = load_contracts_config(path)
    addresses = ContractAddresses.from_config(data)
    logger.debug(
        "Contract addresses loaded",
        extra={"context": {"module_address": addresses.module_address}},
    )
    return addresses


# =============================================================================
# AMM
# =============================================================================

class AmmContract:
    """Constant-product pools, one per (token_x, token_y, fee_tier)."""

    def __init__(self, addresses: Optional[ContractAddresses] = None):
        self.module = (addresses or ContractAddresses()).amm

    def create_pool(self, token_x: str, token_y: str, fee_tier: int) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::create_pool",
            type_arguments=(token_x, token_y),
            function_arguments=(validate_fee_tier(fee_tier),),
        )

    def add_liquidity(
        self,
        token_x: str,
        token_y: str,
        fee_tier: int,
        amount_x: RawAmount,
        amount_y: RawAmount,
        min_liquidity: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::add_liquidity",
            type_arguments=(token_x, token_y),
            function_arguments=(
                validate_fee_tier(fee_tier),
                _amount(amount_x),
                _amount(amount_y),
                _amount(min_liquidity),
            ),
        )

    def remove_liquidity(
        self,
        token_x: str,
        token_y: str,
        fee_tier: int,
        liquidity: RawAmount,
        min_amount_x: RawAmount,
        min_amount_y: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::remove_liquidity",
            type_arguments=(token_x, token_y),
            function_arguments=(
                validate_fee_tier(fee_tier),
                _amount(liquidity),
                _amount(min_amount_x),
                _amount(min_amount_y),
            ),
        )

    def swap_exact_in(
        self,
        token_x: str,
        token_y: str,
        fee_tier: int,
        amount_in: RawAmount,
        min_amount_out: RawAmount,
        x_to_y: bool,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::swap_exact_in",
            type_arguments=(token_x, token_y),
            function_arguments=(
                validate_fee_tier(fee_tier),
                _amount(amount_in),
                _amount(min_amount_out),
                bool(x_to_y),
            ),
        )

    # Views

    def get_pool_reserves(self, token_x: str, token_y: str, fee_tier: int) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_pool_reserves",
            type_arguments=(token_x, token_y),
            function_arguments=(validate_fee_tier(fee_tier),),
        )

    def quote_swap_exact_in(
        self,
        token_x: str,
        token_y: str,
        amount_in: RawAmount,
        fee_tier: int,
        x_to_y: bool,
    ) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::quote_swap_exact_in",
            type_arguments=(token_x, token_y),
            function_arguments=(_amount(amount_in), validate_fee_tier(fee_tier), bool(x_to_y)),
        )


# =============================================================================
# CLOB
# =============================================================================

class ClobContract:
    """Central limit order book markets keyed by (base, quote)."""

    def __init__(self, addresses: Optional[ContractAddresses] = None):
        self.module = (addresses or ContractAddresses()).clob

    def create_market(
        self,
        base: str,
        quote: str,
        tick_size: RawAmount,
        lot_size: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::create_market",
            type_arguments=(base, quote),
            function_arguments=(_amount(tick_size), _amount(lot_size)),
        )

    def place_limit_order(
        self,
        base: str,
        quote: str,
        side: Union[int, OrderSide],
        price_raw: RawAmount,
        size_raw: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::place_limit_order",
            type_arguments=(base, quote),
            function_arguments=(
                int(validate_order_side(side)),
                _amount(price_raw),
                _amount(size_raw),
            ),
        )

    def place_market_order(
        self,
        base: str,
        quote: str,
        side: Union[int, OrderSide],
        size_raw: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::place_market_order",
            type_arguments=(base, quote),
            function_arguments=(int(validate_order_side(side)), _amount(size_raw)),
        )

    def cancel_order(self, base: str, quote: str, order_id: str) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::cancel_order",
            type_arguments=(base, quote),
            function_arguments=(str(order_id),),
        )

    # Views

    def get_best_bid_ask(self, base: str, quote: str) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_best_bid_ask",
            type_arguments=(base, quote),
        )

    def get_order_book_depth(self, base: str, quote: str, levels: int) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_order_book_depth",
            type_arguments=(base, quote),
            function_arguments=(int(levels),),
        )


# =============================================================================
# ROUTER
# =============================================================================

class RouterContract:
    """Router entry points: single-hop, multi-hop, arbitrage and split."""

    def __init__(self, addresses: Optional[ContractAddresses] = None):
        self.module = (addresses or ContractAddresses()).router

    def swap_exact_input_single(
        self,
        token_x: str,
        token_y: str,
        fee_tier: int,
        amount_in: RawAmount,
        min_amount_out: RawAmount,
        x_to_y: bool,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::swap_exact_input_single",
            type_arguments=(token_x, token_y),
            function_arguments=(
                validate_fee_tier(fee_tier),
                _amount(amount_in),
                _amount(min_amount_out),
                bool(x_to_y),
            ),
        )

    def swap_exact_input_multihop(
        self,
        token_in: str,
        token_mid: str,
        token_out: str,
        fee_tier_1: int,
        fee_tier_2: int,
        amount_in: RawAmount,
        min_amount_out: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::swap_exact_input_multihop",
            type_arguments=(token_in, token_mid, token_out),
            function_arguments=(
                validate_fee_tier(fee_tier_1),
                validate_fee_tier(fee_tier_2),
                _amount(amount_in),
                _amount(min_amount_out),
            ),
        )

    def arbitrage_amm_clob(
        self,
        token_x: str,
        token_y: str,
        amm_fee_tier: int,
        clob_side: Union[int, OrderSide],
        clob_price_raw: RawAmount,
        amount: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::arbitrage_amm_clob",
            type_arguments=(token_x, token_y),
            function_arguments=(
                validate_fee_tier(amm_fee_tier),
                int(validate_order_side(clob_side)),
                _amount(clob_price_raw),
                _amount(amount),
            ),
        )

    def split_order_execution(
        self,
        token_x: str,
        token_y: str,
        total_amount: RawAmount,
        amm_portion: RawAmount,
        amm_fee_tier: int,
        clob_price_raw: RawAmount,
        min_total_output: RawAmount,
    ) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::split_order_execution",
            type_arguments=(token_x, token_y),
            function_arguments=(
                _amount(total_amount),
                _amount(amm_portion),
                validate_fee_tier(amm_fee_tier),
                _amount(clob_price_raw),
                _amount(min_total_output),
            ),
        )

    # Views

    def get_best_route(self, token_x: str, token_y: str, amount_in: RawAmount, x_to_y: bool) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_best_route",
            type_arguments=(token_x, token_y),
            function_arguments=(_amount(amount_in), bool(x_to_y)),
        )

    def check_arbitrage_opportunity(self, token_x: str, token_y: str, amm_fee_tier: int) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::check_arbitrage_opportunity",
            type_arguments=(token_x, token_y),
            function_arguments=(validate_fee_tier(amm_fee_tier),),
        )


# =============================================================================
# CUSTOM COIN
# =============================================================================

class CustomCoinContract:
    """Issuance of the CustomCoin type (initialize, register, mint, ...)."""

    def __init__(self, addresses: Optional[ContractAddresses] = None):
        addresses = addresses or ContractAddresses()
        self.module = addresses.custom_coin
        self.coin_type = addresses.custom_coin_type

    def initialize_coin(
        self,
        name: str,
        symbol: str,
        decimals: int,
        monitor_supply: bool = True,
    ) -> TxRequest:
        # vector<u8> arguments: UTF-8 bytes as a list of ints
        return TxRequest(
            function=f"{self.module}::initialize_coin",
            type_arguments=(self.coin_type,),
            function_arguments=(
                list(name.encode("utf-8")),
                list(symbol.encode("utf-8")),
                int(decimals),
                bool(monitor_supply),
            ),
        )

    def register_coin(self) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::register_coin",
            type_arguments=(self.coin_type,),
        )

    def mint(self, to: str, amount: RawAmount) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::mint",
            type_arguments=(self.coin_type,),
            function_arguments=(validate_account_address(to, field="to"), _amount(amount)),
        )

    def mint_with_admin(self, to: str, amount: RawAmount) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::mint_with_admin",
            type_arguments=(self.coin_type,),
            function_arguments=(validate_account_address(to, field="to"), _amount(amount)),
        )

    def burn(self, amount: RawAmount) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::burn",
            type_arguments=(self.coin_type,),
            function_arguments=(_amount(amount),),
        )

    def transfer(self, to: str, amount: RawAmount) -> TxRequest:
        return TxRequest(
            function=f"{self.module}::transfer",
            type_arguments=(self.coin_type,),
            function_arguments=(validate_account_address(to, field="to"), _amount(amount)),
        )

    # Views

    def get_coin_info(self, admin_address: str) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_coin_info",
            function_arguments=(admin_address,),
        )

    def get_balance(self, account_address: str) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::get_balance",
            type_arguments=(self.coin_type,),
            function_arguments=(account_address,),
        )

    def is_account_registered(self, account_address: str) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::is_account_registered",
            type_arguments=(self.coin_type,),
            function_arguments=(account_address,),
        )

    def is_coin_initialized(self, admin_address: str) -> ViewRequest:
        return ViewRequest(
            function=f"{self.module}::is_coin_initialized",
            type_arguments=(self.coin_type,),
            function_arguments=(admin_address,),
        )
