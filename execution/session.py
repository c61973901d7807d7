# PATH: execution/session.py
"""
Trading session: one connected wallet, its trackers and the token registry.

The registry is an immutable snapshot; register_token swaps in a new one,
so readers holding the old snapshot keep a consistent view.

Every action needs a connected wallet (WALLET_NOT_CONNECTED otherwise);
the check runs before any submission.
"""

from decimal import Decimal
from typing import Optional, Union

from chains.client import Signer
from core.constants import ARBITRAGE_REFRESH_SECONDS, OrderSide
from core.exceptions import ErrorCode, SnapshotError, ValidationError
from core.logging import get_logger
from core.math import to_raw_units
from core.models import ArbitrageOpportunity, Order, PoolKey, Token, TxReceipt
from core.time import is_fresh
from core.validators import require_wallet, validate_account_address
from discovery.registry import TokenRegistry
from dex.adapters.contracts import (
    AmmContract,
    ClobContract,
    ContractAddresses,
    CustomCoinContract,
)
from execution.payloads import PayloadBuilder
from execution.state_machine import WorkflowRequest
from execution.workflows import (
    LiquidityManager,
    OrderTracker,
    PoolCreationWorkflow,
    TokenCreationWorkflow,
    WorkflowTracker,
    created_token,
    submit,
)
from strategy.routing import RouteDescriptor, arbitrage_leg

logger = get_logger(__name__)

HumanAmount = Union[str, int, Decimal]


class TradingSession:
    """
    Usage:
        session = TradingSession(load_token_registry(), signer, wallet_address)
        request = await session.create_pool(apt, usdc, 5)
    """

    def __init__(
        self,
        registry: TokenRegistry,
        signer: Signer,
        wallet_address: Optional[str] = None,
        addresses: Optional[ContractAddresses] = None,
        opportunity_max_age_ms: int = int(ARBITRAGE_REFRESH_SECONDS * 1000),
    ):
        self.addresses = addresses or ContractAddresses()
        self.registry = registry
        self.signer = signer
        self.wallet_address = wallet_address
        self.opportunity_max_age_ms = opportunity_max_age_ms

        self.workflows = WorkflowTracker()
        self.coin = CustomCoinContract(self.addresses)
        self.payloads = PayloadBuilder(self.addresses)
        self.orders = OrderTracker(signer, ClobContract(self.addresses))
        self.liquidity = LiquidityManager(signer, self.workflows, AmmContract(self.addresses))
        self._pools = PoolCreationWorkflow(signer, self.workflows, AmmContract(self.addresses))
        self._tokens = TokenCreationWorkflow(signer, self.workflows, self.coin)

    @property
    def is_connected(self) -> bool:
        return self.wallet_address is not None

    def connect(self, wallet_address: str) -> None:
        self.wallet_address = validate_account_address(wallet_address, field="wallet_address")
        logger.info("Wallet connected", extra={"context": {"wallet": self.wallet_address}})

    def disconnect(self) -> None:
        self.wallet_address = None

    def register_token(self, token: Token) -> TokenRegistry:
        self.registry = self.registry.add(token)
        return self.registry

    # Workflows

    async def create_pool(self, token_a: Token, token_b: Token, fee_tier: int) -> WorkflowRequest:
        require_wallet(self.wallet_address)
        return await self._pools.run(token_a, token_b, fee_tier)

    async def create_token(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: HumanAmount,
        monitor_supply: bool = True,
    ) -> WorkflowRequest:
        """Run token creation; a completed token joins the registry."""
        request = await self._tokens.run(
            name,
            symbol,
            decimals,
            initial_supply,
            self.wallet_address,
            monitor_supply=monitor_supply,
        )
        token = created_token(request)
        if token is not None:
            self.register_token(token)
        return request

    async def mint_token(self, to: str, amount: HumanAmount, decimals: int) -> TxReceipt:
        """Single-step admin mint of the created coin."""
        require_wallet(self.wallet_address)
        return await submit(self.signer, self.coin.mint(to, to_raw_units(amount, decimals)))

    async def transfer_token(self, to: str, amount: HumanAmount, decimals: int) -> TxReceipt:
        """Single-step transfer of the created coin."""
        require_wallet(self.wallet_address)
        return await submit(self.signer, self.coin.transfer(to, to_raw_units(amount, decimals)))

    async def add_liquidity(
        self,
        token_a: Token,
        token_b: Token,
        fee_tier: int,
        amount_a: HumanAmount,
        amount_b: HumanAmount,
    ) -> WorkflowRequest:
        require_wallet(self.wallet_address)
        return await self.liquidity.add(token_a, token_b, fee_tier, amount_a, amount_b)

    async def remove_liquidity(self, key: PoolKey, percent: HumanAmount) -> WorkflowRequest:
        require_wallet(self.wallet_address)
        return await self.liquidity.remove(key, percent)

    # Orders

    async def place_limit_order(
        self,
        base: Token,
        quote: Token,
        side: Union[int, OrderSide],
        price: HumanAmount,
        size: HumanAmount,
    ) -> Order:
        require_wallet(self.wallet_address)
        return await self.orders.place_limit(base, quote, side, price, size)

    async def place_market_order(
        self,
        base: Token,
        quote: Token,
        side: Union[int, OrderSide],
        size: HumanAmount,
    ) -> Order:
        require_wallet(self.wallet_address)
        return await self.orders.place_market(base, quote, side, size)

    async def cancel_order(self, order_id: str) -> Order:
        require_wallet(self.wallet_address)
        return await self.orders.cancel(order_id)

    # Routing and arbitrage

    async def execute_route(self, route: RouteDescriptor) -> TxReceipt:
        require_wallet(self.wallet_address)
        receipt = await submit(self.signer, self.payloads.for_route(route))
        logger.info(
            f"Swap submitted via {route.mode.value}",
            extra={"context": {"tx_hash": receipt.tx_hash, "amount_in_raw": str(route.amount_in_raw)}},
        )
        return receipt

    async def execute_arbitrage(
        self,
        opportunity: ArbitrageOpportunity,
        amm_fee_tier: Optional[int] = None,
        current_ms: Optional[int] = None,
    ) -> TxReceipt:
        """
        Submit the AMM/CLOB leg pair for one opportunity.

        Opportunities older than the arbitrage refresh interval are refused
        (OPPORTUNITY_STALE) and must be recomputed. The base token must be
        registered so the amount is scaled with its real decimals.
        """
        require_wallet(self.wallet_address)
        if not is_fresh(opportunity.detected_at_ms, self.opportunity_max_age_ms, current_ms):
            raise SnapshotError(
                ErrorCode.OPPORTUNITY_STALE,
                "Opportunity is stale; recompute before executing",
                {
                    "opportunity_id": opportunity.id,
                    "detected_at_ms": opportunity.detected_at_ms,
                    "max_age_ms": self.opportunity_max_age_ms,
                },
            )
        base = self.registry.get(opportunity.base)
        if base is None:
            raise ValidationError(
                "Base token is not registered; its decimals are unknown",
                details={"token": opportunity.base, "opportunity_id": opportunity.id},
                code=ErrorCode.UNKNOWN_TOKEN,
            )
        leg = arbitrage_leg(opportunity, base.decimals, amm_fee_tier=amm_fee_tier)
        receipt = await submit(self.signer, self.payloads.for_arbitrage(leg))
        logger.info(
            f"Arbitrage executed: {opportunity.pair}",
            extra={"context": {"opportunity_id": opportunity.id, "tx_hash": receipt.tx_hash}},
        )
        return receipt
