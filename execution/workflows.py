# PATH: execution/workflows.py
"""
Multi-step, partially failing user actions.

NON-TRANSACTIONAL CONTRACT:
===========================
Steps run strictly in sequence; step N+1 starts only after step N
resolved. Each submission is attempted at most once. Nothing is retried
and nothing is compensated: a workflow that fails after an earlier step
succeeded ends FAILED, and its record keeps references (token address,
tx hash) to the on-chain effects that remain.

Token creation:
  1. initialize_coin   fatal      failure -> FAILED, no further steps
  2. register_coin     non-fatal  failure (usually "already registered") is recorded, run continues
  3. mint_with_admin   fatal      failure -> FAILED, initialized coin stays on-chain

Validation happens before the request is tracked and before any signer
call; a rejected input never produces a tracked request.

Collections (workflow requests, orders, positions) are tuples replaced
as a whole on every write. One writer, any number of readers.
===========================
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from chains.client import Signer
from core.constants import (
    DEFAULT_MIN_LIQUIDITY,
    OrderSide,
    OrderStatus,
    OrderType,
    StepStatus,
    WorkflowKind,
    WorkflowStatus,
)
from core.exceptions import ErrorCode, ExecutionError, ValidationError
from core.logging import get_logger, log_workflow
from core.math import parse_amount, scale_price, to_raw_units, validate_decimals
from core.models import (
    LiquidityPosition,
    Order,
    PoolKey,
    Token,
    TxReceipt,
    TxRequest,
    pool_label,
)
from core.time import now_ms
from core.validators import (
    require_wallet,
    validate_distinct_tokens,
    validate_fee_tier,
    validate_order_side,
)
from dex.adapters.contracts import AmmContract, ClobContract, CustomCoinContract
from dex.amm import expected_liquidity, liquidity_to_remove
from execution.state_machine import (
    InvalidTransitionError,
    StepRecord,
    WorkflowRequest,
    transition_order,
)

logger = get_logger(__name__)

HumanAmount = Union[str, int, Decimal]


def new_request_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


async def submit(signer: Signer, request: TxRequest) -> TxReceipt:
    """
    Hand one request to the external signer, exactly once.

    Raises:
        ExecutionError(SUBMISSION_FAILED): signer raised or reported failure
    """
    try:
        receipt = await signer.sign_and_submit(request)
    except ExecutionError:
        raise
    except Exception as e:
        raise ExecutionError(
            ErrorCode.SUBMISSION_FAILED,
            f"Submission failed: {e}",
            {"function": request.function},
        ) from e

    if not receipt.success:
        raise ExecutionError(
            ErrorCode.SUBMISSION_FAILED,
            f"Transaction failed: {receipt.vm_status or 'unknown status'}",
            {"function": request.function, "tx_hash": receipt.tx_hash},
        )
    return receipt


def _step(name: str, receipt: Optional[TxReceipt] = None, error: Optional[Exception] = None,
          status: Optional[StepStatus] = None) -> StepRecord:
    if status is None:
        status = StepStatus.FAILED if error is not None else StepStatus.SUCCEEDED
    return StepRecord(
        name=name,
        status=status,
        tx_hash=receipt.tx_hash if receipt else None,
        error=str(error) if error is not None else None,
        timestamp_ms=now_ms(),
    )


# =============================================================================
# TRACKER
# =============================================================================

class WorkflowTracker:
    """
    Tracked workflow requests, newest first.

    Every write replaces the whole tuple, so a reader holding `requests`
    never sees a partially applied update.
    """

    def __init__(self):
        self._requests: Tuple[WorkflowRequest, ...] = ()

    @property
    def requests(self) -> Tuple[WorkflowRequest, ...]:
        return self._requests

    def start(self, kind: WorkflowKind, params: Dict[str, Any]) -> WorkflowRequest:
        request = WorkflowRequest(
            id=new_request_id(kind.value.lower()),
            kind=kind,
            params=dict(params),
        )
        self._requests = (request,) + self._requests
        log_workflow(logger, request.id, kind.value, request.status.value)
        return request

    def update(self, request: WorkflowRequest) -> WorkflowRequest:
        if self.get(request.id) is None:
            raise ValidationError(
                f"Unknown workflow request: {request.id}",
                details={"workflow_id": request.id},
            )
        self._requests = tuple(request if r.id == request.id else r for r in self._requests)
        return request

    def get(self, request_id: str) -> Optional[WorkflowRequest]:
        for request in self._requests:
            if request.id == request_id:
                return request
        return None

    def by_kind(self, kind: WorkflowKind) -> Tuple[WorkflowRequest, ...]:
        return tuple(r for r in self._requests if r.kind == kind)

    def finish(
        self,
        request: WorkflowRequest,
        status: WorkflowStatus,
        **changes: Any,
    ) -> WorkflowRequest:
        """Move a request to a terminal status and publish it."""
        final = self.update(request.transition_to(status, **changes))
        log_workflow(
            logger,
            final.id,
            final.kind.value,
            final.status.value,
            tx_hash=final.tx_hash,
            error=final.error,
        )
        return final


# =============================================================================
# POOL CREATION
# =============================================================================

class PoolCreationWorkflow:
    """Single-step: amm::create_pool on the canonically ordered pair."""

    def __init__(self, signer: Signer, tracker: WorkflowTracker, amm: Optional[AmmContract] = None):
        self.signer = signer
        self.tracker = tracker
        self.amm = amm or AmmContract()

    async def run(self, token_a: Token, token_b: Token, fee_tier: int) -> WorkflowRequest:
        validate_distinct_tokens(token_a.address, token_b.address)
        validate_fee_tier(fee_tier)
        key = PoolKey.from_pair(token_a.address, token_b.address, fee_tier)

        request = self.tracker.start(
            WorkflowKind.POOL_CREATION,
            {
                "token_x": key.token_x,
                "token_y": key.token_y,
                "fee_tier": key.fee_tier,
                "pool": pool_label(token_a.symbol, token_b.symbol, fee_tier),
            },
        )

        try:
            receipt = await submit(self.signer, self.amm.create_pool(key.token_x, key.token_y, key.fee_tier))
        except ExecutionError as e:
            request = self.tracker.update(request.with_step(_step("create_pool", error=e)))
            return self.tracker.finish(request, WorkflowStatus.FAILED, error=e.message)

        request = self.tracker.update(request.with_step(_step("create_pool", receipt)))
        return self.tracker.finish(
            request,
            WorkflowStatus.COMPLETED,
            tx_hash=receipt.tx_hash,
            result={"pool": request.params["pool"]},
        )


# =============================================================================
# TOKEN CREATION
# =============================================================================

class TokenCreationWorkflow:
    """initialize (fatal) -> register (non-fatal) -> mint (fatal). No rollback."""

    def __init__(
        self,
        signer: Signer,
        tracker: WorkflowTracker,
        coin: Optional[CustomCoinContract] = None,
    ):
        self.signer = signer
        self.tracker = tracker
        self.coin = coin or CustomCoinContract()

    async def run(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: HumanAmount,
        admin_address: Optional[str],
        monitor_supply: bool = True,
    ) -> WorkflowRequest:
        admin = require_wallet(admin_address)
        if not name or not name.strip():
            raise ValidationError("Token name is required", details={"field": "name"})
        if not symbol or not symbol.strip():
            raise ValidationError("Token symbol is required", details={"field": "symbol"})
        validate_decimals(decimals)
        supply_raw = to_raw_units(initial_supply, decimals)
        if int(supply_raw) == 0:
            raise ValidationError(
                "Initial supply must be positive",
                details={"initial_supply": str(initial_supply)},
                code=ErrorCode.INVALID_AMOUNT,
            )

        symbol = symbol.strip().upper()
        name = name.strip()
        request = self.tracker.start(
            WorkflowKind.TOKEN_CREATION,
            {
                "name": name,
                "symbol": symbol,
                "decimals": decimals,
                "initial_supply": str(initial_supply),
                "monitor_supply": monitor_supply,
            },
        )

        # Step 1: initialize (fatal, aborts everything after it)
        try:
            init_receipt = await submit(
                self.signer,
                self.coin.initialize_coin(name, symbol, decimals, monitor_supply),
            )
        except ExecutionError as e:
            request = self.tracker.update(request.with_step(_step("initialize_coin", error=e)))
            return self.tracker.finish(
                request,
                WorkflowStatus.FAILED,
                error=f"Coin initialization failed (one coin type per admin address): {e.message}",
            )
        request = self.tracker.update(request.with_step(_step("initialize_coin", init_receipt)))
        token_address = self.coin.coin_type

        # Step 2: register (non-fatal)
        try:
            register_receipt = await submit(self.signer, self.coin.register_coin())
        except ExecutionError as e:
            logger.info(
                "Coin registration skipped",
                extra={"context": {"workflow_id": request.id, "reason": e.message}},
            )
            request = self.tracker.update(
                request.with_step(_step("register_coin", error=e, status=StepStatus.FAILED_NON_FATAL))
            )
        else:
            request = self.tracker.update(request.with_step(_step("register_coin", register_receipt)))

        # Step 3: mint initial supply (fatal; initialized coin is NOT undone)
        try:
            mint_receipt = await submit(self.signer, self.coin.mint_with_admin(admin, supply_raw))
        except ExecutionError as e:
            request = self.tracker.update(request.with_step(_step("mint_with_admin", error=e)))
            return self.tracker.finish(
                request,
                WorkflowStatus.FAILED,
                tx_hash=init_receipt.tx_hash,
                result={"token_address": token_address, "partial": True},
                error=f"Mint failed after coin was initialized: {e.message}",
            )
        request = self.tracker.update(request.with_step(_step("mint_with_admin", mint_receipt)))

        return self.tracker.finish(
            request,
            WorkflowStatus.COMPLETED,
            tx_hash=init_receipt.tx_hash,
            result={"token_address": token_address},
        )


def created_token(request: WorkflowRequest) -> Optional[Token]:
    """Token produced by a completed token-creation request."""
    if request.kind != WorkflowKind.TOKEN_CREATION or request.status != WorkflowStatus.COMPLETED:
        return None
    return Token(
        symbol=request.params["symbol"],
        name=request.params["name"],
        address=request.result["token_address"],
        decimals=request.params["decimals"],
    )


# =============================================================================
# ORDERS
# =============================================================================

class OrderTracker:
    """Client-side order lifecycle on the CLOB. Newest order first."""

    def __init__(self, signer: Signer, clob: Optional[ClobContract] = None):
        self.signer = signer
        self.clob = clob or ClobContract()
        self._orders: Tuple[Order, ...] = ()

    @property
    def orders(self) -> Tuple[Order, ...]:
        return self._orders

    def open_orders(self) -> Tuple[Order, ...]:
        return tuple(o for o in self._orders if o.status == OrderStatus.OPEN)

    def get(self, order_id: str) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def _require(self, order_id: str) -> Order:
        order = self.get(order_id)
        if order is None:
            raise ValidationError(
                f"Unknown order: {order_id}",
                details={"order_id": order_id},
                code=ErrorCode.ORDER_NOT_FOUND,
            )
        return order

    def _put(self, order: Order) -> Order:
        if self.get(order.id) is None:
            self._orders = (order,) + self._orders
        else:
            self._orders = tuple(order if o.id == order.id else o for o in self._orders)
        return order

    async def _submit_new(self, order: Order, request: TxRequest) -> Order:
        self._put(order)
        try:
            receipt = await submit(self.signer, request)
        except ExecutionError as e:
            failed = transition_order(order, OrderStatus.FAILED, error_message=e.message)
            logger.warning(
                "Order submission failed",
                extra={"context": {"order_id": order.id, "error": e.message}},
            )
            return self._put(failed)

        opened = transition_order(order, OrderStatus.OPEN, tx_hash=receipt.tx_hash)
        logger.info(
            f"Order open: {order.side.name} {order.order_type.value}",
            extra={"context": {"order_id": order.id, "tx_hash": receipt.tx_hash}},
        )
        return self._put(opened)

    def _size_raw(self, base: Token, size: HumanAmount) -> int:
        size_raw = int(to_raw_units(size, base.decimals))
        if size_raw == 0:
            raise ValidationError(
                "Order size must be positive",
                details={"size": str(size)},
                code=ErrorCode.INVALID_AMOUNT,
            )
        return size_raw

    async def place_limit(
        self,
        base: Token,
        quote: Token,
        side: Union[int, OrderSide],
        price: HumanAmount,
        size: HumanAmount,
    ) -> Order:
        order_side = validate_order_side(side)
        validate_distinct_tokens(base.address, quote.address)
        human_price = parse_amount(price, field="price")
        price_raw = scale_price(human_price)
        if price_raw == 0:
            raise ValidationError(
                "Limit price must be positive",
                details={"price": str(price)},
                code=ErrorCode.INVALID_PRICE,
            )
        size_raw = self._size_raw(base, size)

        order = Order(
            id=new_request_id("order"),
            base=base.address,
            quote=quote.address,
            side=order_side,
            order_type=OrderType.LIMIT,
            size_raw=size_raw,
            price=human_price,
            timestamp_ms=now_ms(),
        )
        request = self.clob.place_limit_order(base.address, quote.address, order_side, price_raw, size_raw)
        return await self._submit_new(order, request)

    async def place_market(
        self,
        base: Token,
        quote: Token,
        side: Union[int, OrderSide],
        size: HumanAmount,
    ) -> Order:
        order_side = validate_order_side(side)
        validate_distinct_tokens(base.address, quote.address)
        size_raw = self._size_raw(base, size)

        order = Order(
            id=new_request_id("order"),
            base=base.address,
            quote=quote.address,
            side=order_side,
            order_type=OrderType.MARKET,
            size_raw=size_raw,
            timestamp_ms=now_ms(),
        )
        request = self.clob.place_market_order(base.address, quote.address, order_side, size_raw)
        return await self._submit_new(order, request)

    async def cancel(self, order_id: str) -> Order:
        """
        Cancel an open order. A failed cancel leaves the order OPEN with
        the error recorded.
        """
        order = self._require(order_id)
        if order.status != OrderStatus.OPEN:
            raise InvalidTransitionError(
                f"Only open orders can be cancelled (order is {order.status.value})",
                {"order_id": order_id, "status": order.status.value},
            )
        if order.venue_order_id is None:
            raise ValidationError(
                "Order has no venue id yet",
                details={"order_id": order_id},
                code=ErrorCode.ORDER_NOT_FOUND,
            )

        request = self.clob.cancel_order(order.base, order.quote, order.venue_order_id)
        try:
            receipt = await submit(self.signer, request)
        except ExecutionError as e:
            return self._put(transition_order(order, OrderStatus.OPEN, error_message=e.message))

        return self._put(transition_order(order, OrderStatus.CANCELLED, tx_hash=receipt.tx_hash, error_message=None))

    def apply_venue_update(
        self,
        order_id: str,
        filled_size_raw: int,
        venue_order_id: Optional[str] = None,
        cancelled: bool = False,
    ) -> Order:
        """
        Mirror venue state: partial fill stays OPEN, full fill -> FILLED.

        Polling redelivers the same state, so an update that matches a
        terminal order is a no-op. The filled size never decreases.
        """
        order = self._require(order_id)
        filled = max(order.filled_size_raw, min(int(filled_size_raw), order.size_raw))
        changes: Dict[str, Any] = {"filled_size_raw": filled}
        if venue_order_id is not None:
            changes["venue_order_id"] = venue_order_id

        if filled >= order.size_raw:
            new_status = OrderStatus.FILLED
        elif cancelled:
            new_status = OrderStatus.CANCELLED
        else:
            new_status = OrderStatus.OPEN

        if order.is_terminal and new_status == order.status:
            logger.debug(
                "Venue update repeats terminal state",
                extra={"context": {"order_id": order_id, "status": order.status.value}},
            )
            return order
        return self._put(transition_order(order, new_status, **changes))


# =============================================================================
# LIQUIDITY
# =============================================================================

class LiquidityManager:
    """Add/remove liquidity as tracked workflows; keeps a position cache."""

    def __init__(self, signer: Signer, tracker: WorkflowTracker, amm: Optional[AmmContract] = None):
        self.signer = signer
        self.tracker = tracker
        self.amm = amm or AmmContract()
        self._positions: Tuple[LiquidityPosition, ...] = ()

    @property
    def positions(self) -> Tuple[LiquidityPosition, ...]:
        return self._positions

    def position(self, key: PoolKey) -> Optional[LiquidityPosition]:
        for pos in self._positions:
            if pos.pool == key:
                return pos
        return None

    def sync_position(self, key: PoolKey, liquidity: int, rewards: Decimal = Decimal("0")) -> None:
        """Apply venue-confirmed liquidity; zero drops the position."""
        others = tuple(p for p in self._positions if p.pool != key)
        if liquidity <= 0:
            self._positions = others
        else:
            self._positions = others + (LiquidityPosition(pool=key, liquidity=liquidity, rewards=rewards),)

    async def add(
        self,
        token_a: Token,
        token_b: Token,
        fee_tier: int,
        amount_a: HumanAmount,
        amount_b: HumanAmount,
        min_liquidity: int = DEFAULT_MIN_LIQUIDITY,
    ) -> WorkflowRequest:
        key = PoolKey.from_pair(token_a.address, token_b.address, fee_tier)
        raw_a = int(to_raw_units(amount_a, token_a.decimals))
        raw_b = int(to_raw_units(amount_b, token_b.decimals))
        if raw_a == 0 or raw_b == 0:
            raise ValidationError(
                "Both deposit amounts must be positive",
                details={"amount_a": str(amount_a), "amount_b": str(amount_b)},
                code=ErrorCode.INVALID_AMOUNT,
            )
        # Amounts follow the canonical token order
        amount_x, amount_y = (raw_a, raw_b) if token_a.address == key.token_x else (raw_b, raw_a)
        expected = expected_liquidity(amount_x, amount_y)

        request = self.tracker.start(
            WorkflowKind.ADD_LIQUIDITY,
            {
                **key.to_dict(),
                "amount_x": str(amount_x),
                "amount_y": str(amount_y),
                "expected_liquidity": str(expected),
            },
        )
        tx = self.amm.add_liquidity(key.token_x, key.token_y, key.fee_tier, amount_x, amount_y, min_liquidity)
        try:
            receipt = await submit(self.signer, tx)
        except ExecutionError as e:
            request = self.tracker.update(request.with_step(_step("add_liquidity", error=e)))
            return self.tracker.finish(request, WorkflowStatus.FAILED, error=e.message)

        current = self.position(key)
        held = current.liquidity if current else 0
        self.sync_position(key, held + expected, current.rewards if current else Decimal("0"))

        request = self.tracker.update(request.with_step(_step("add_liquidity", receipt)))
        return self.tracker.finish(
            request,
            WorkflowStatus.COMPLETED,
            tx_hash=receipt.tx_hash,
            result={"liquidity": str(held + expected)},
        )

    async def remove(
        self,
        key: PoolKey,
        percent: HumanAmount,
        min_amount_x: int = 1,
        min_amount_y: int = 1,
    ) -> WorkflowRequest:
        current = self.position(key)
        if current is None:
            raise ValidationError(
                "No liquidity position for pool",
                details=key.to_dict(),
                code=ErrorCode.POSITION_NOT_FOUND,
            )
        amount = liquidity_to_remove(current.liquidity, percent)
        if amount == 0:
            raise ValidationError(
                "Nothing to remove at this percentage",
                details={"percent": str(percent), "liquidity": str(current.liquidity)},
                code=ErrorCode.INVALID_AMOUNT,
            )

        request = self.tracker.start(
            WorkflowKind.REMOVE_LIQUIDITY,
            {**key.to_dict(), "liquidity": str(amount), "percent": str(percent)},
        )
        tx = self.amm.remove_liquidity(key.token_x, key.token_y, key.fee_tier, amount, min_amount_x, min_amount_y)
        try:
            receipt = await submit(self.signer, tx)
        except ExecutionError as e:
            request = self.tracker.update(request.with_step(_step("remove_liquidity", error=e)))
            return self.tracker.finish(request, WorkflowStatus.FAILED, error=e.message)

        remaining = current.liquidity - amount
        self.sync_position(key, remaining, current.rewards)

        request = self.tracker.update(request.with_step(_step("remove_liquidity", receipt)))
        return self.tracker.finish(
            request,
            WorkflowStatus.COMPLETED,
            tx_hash=receipt.tx_hash,
            result={"liquidity": str(remaining)},
        )
