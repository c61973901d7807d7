"""
tests/unit/test_workflows.py - Tests for execution/workflows.py

Critical tests for:
- Validation before tracking (no request, no signer call)
- Token creation: fatal init, non-fatal register, fatal mint, no rollback
- Pool creation in canonical order
- Order lifecycle (submit, venue updates, cancel)
- Liquidity add/remove with canonical amounts and position cache
"""

import pytest
from unittest.mock import AsyncMock

from conftest import WALLET
from core.constants import OrderSide, OrderStatus, StepStatus, WorkflowKind, WorkflowStatus
from core.exceptions import ErrorCode, ExecutionError, ValidationError
from core.models import PoolKey, TxReceipt
from dex.adapters.contracts import CustomCoinContract
from execution.state_machine import InvalidTransitionError
from execution.workflows import (
    LiquidityManager,
    OrderTracker,
    PoolCreationWorkflow,
    TokenCreationWorkflow,
    WorkflowTracker,
    created_token,
    submit,
)


def ok(tx_hash):
    return TxReceipt(tx_hash=tx_hash, success=True)


def submitted(signer):
    """TxRequests handed to the signer, in order."""
    return [call.args[0] for call in signer.sign_and_submit.call_args_list]


@pytest.fixture
def tracker():
    return WorkflowTracker()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_signer_exception_wrapped(self, signer):
        signer.sign_and_submit.side_effect = RuntimeError("user rejected")
        with pytest.raises(ExecutionError) as exc_info:
            await submit(signer, CustomCoinContract().register_coin())
        assert exc_info.value.code == ErrorCode.SUBMISSION_FAILED
        assert "user rejected" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_failed_receipt(self, signer):
        signer.sign_and_submit.side_effect = None
        signer.sign_and_submit.return_value = TxReceipt(tx_hash="0x1", success=False, vm_status="ABORTED")
        with pytest.raises(ExecutionError) as exc_info:
            await submit(signer, CustomCoinContract().register_coin())
        assert "ABORTED" in exc_info.value.message


class TestWorkflowTracker:
    def test_newest_first_and_copy_on_write(self, tracker):
        first = tracker.start(WorkflowKind.POOL_CREATION, {})
        snapshot = tracker.requests
        second = tracker.start(WorkflowKind.TOKEN_CREATION, {})
        assert tracker.requests == (second, first)
        assert snapshot == (first,)
        assert tracker.by_kind(WorkflowKind.TOKEN_CREATION) == (second,)

    def test_update_unknown(self, tracker):
        other = WorkflowTracker().start(WorkflowKind.POOL_CREATION, {})
        with pytest.raises(ValidationError):
            tracker.update(other)


class TestPoolCreation:
    @pytest.mark.asyncio
    async def test_completed_in_canonical_order(self, signer, tracker, apt, usdc):
        result = await PoolCreationWorkflow(signer, tracker).run(usdc, apt, 5)

        assert result.status == WorkflowStatus.COMPLETED
        assert result.tx_hash == "0xhash1"
        assert result.result == {"pool": "APT-USDC-0.05%"}
        [request] = submitted(signer)
        assert request.function.endswith("::amm::create_pool")
        assert request.type_arguments == (apt.address, usdc.address)
        assert request.function_arguments == (5,)
        assert tracker.get(result.id) == result

    @pytest.mark.asyncio
    async def test_identical_tokens_never_tracked(self, signer, tracker, apt):
        with pytest.raises(ValidationError) as exc_info:
            await PoolCreationWorkflow(signer, tracker).run(apt, apt, 5)
        assert exc_info.value.code == ErrorCode.IDENTICAL_TOKENS
        assert tracker.requests == ()
        signer.sign_and_submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_bad_fee_tier_never_tracked(self, signer, tracker, apt, usdc):
        with pytest.raises(ValidationError):
            await PoolCreationWorkflow(signer, tracker).run(apt, usdc, 100)
        assert tracker.requests == ()

    @pytest.mark.asyncio
    async def test_submission_failure(self, signer, tracker, apt, usdc):
        signer.sign_and_submit.side_effect = RuntimeError("pool exists")
        result = await PoolCreationWorkflow(signer, tracker).run(apt, usdc, 30)
        assert result.status == WorkflowStatus.FAILED
        assert "pool exists" in result.error
        assert result.steps[0].status == StepStatus.FAILED


class TestTokenCreation:
    @pytest.mark.asyncio
    async def test_all_steps_succeed(self, signer, tracker):
        coin = CustomCoinContract()
        result = await TokenCreationWorkflow(signer, tracker, coin).run("My Token", "my", 8, "1000", WALLET)

        assert result.status == WorkflowStatus.COMPLETED
        assert result.tx_hash == "0xhash1"
        assert result.result == {"token_address": coin.coin_type}
        assert result.params["symbol"] == "MY"
        assert [s.name for s in result.steps] == ["initialize_coin", "register_coin", "mint_with_admin"]

        init, register, mint = submitted(signer)
        assert init.function_arguments == (list(b"My Token"), list(b"MY"), 8, True)
        assert register.function.endswith("::register_coin")
        assert mint.function_arguments == (WALLET, "100000000000")

    @pytest.mark.asyncio
    async def test_init_failure_stops_everything(self, signer, tracker):
        signer.sign_and_submit.side_effect = RuntimeError("coin already exists")
        result = await TokenCreationWorkflow(signer, tracker).run("My Token", "MY", 8, "1000", WALLET)

        assert result.status == WorkflowStatus.FAILED
        assert signer.sign_and_submit.await_count == 1
        assert [s.name for s in result.steps] == ["initialize_coin"]
        assert "one coin type per admin address" in result.error

    @pytest.mark.asyncio
    async def test_register_failure_is_not_fatal(self, signer, tracker):
        signer.sign_and_submit.side_effect = [ok("0xinit"), RuntimeError("already registered"), ok("0xmint")]
        result = await TokenCreationWorkflow(signer, tracker).run("My Token", "MY", 8, "1000", WALLET)

        assert result.status == WorkflowStatus.COMPLETED
        assert result.tx_hash == "0xinit"
        assert [s.status for s in result.steps] == [
            StepStatus.SUCCEEDED,
            StepStatus.FAILED_NON_FATAL,
            StepStatus.SUCCEEDED,
        ]
        assert signer.sign_and_submit.await_count == 3

    @pytest.mark.asyncio
    async def test_mint_failure_keeps_partial_reference(self, signer, tracker):
        coin = CustomCoinContract()
        signer.sign_and_submit.side_effect = [ok("0xinit"), ok("0xreg"), RuntimeError("mint aborted")]
        result = await TokenCreationWorkflow(signer, tracker, coin).run("My Token", "MY", 8, "1000", WALLET)

        assert result.status == WorkflowStatus.FAILED
        assert result.tx_hash == "0xinit"
        assert result.result["token_address"] == coin.coin_type
        assert "mint aborted" in result.error
        assert created_token(result) is None

    @pytest.mark.asyncio
    async def test_wallet_required(self, signer, tracker):
        with pytest.raises(ValidationError) as exc_info:
            await TokenCreationWorkflow(signer, tracker).run("My Token", "MY", 8, "1000", None)
        assert exc_info.value.code == ErrorCode.WALLET_NOT_CONNECTED
        assert tracker.requests == ()
        signer.sign_and_submit.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,symbol,decimals,supply",
        [("", "MY", 8, "1"), ("My", " ", 8, "1"), ("My", "MY", 33, "1"), ("My", "MY", 8, "0"), ("My", "MY", 8, "-5")],
    )
    async def test_invalid_input_never_tracked(self, signer, tracker, name, symbol, decimals, supply):
        with pytest.raises(ValidationError):
            await TokenCreationWorkflow(signer, tracker).run(name, symbol, decimals, supply, WALLET)
        assert tracker.requests == ()
        signer.sign_and_submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_created_token(self, signer, tracker):
        result = await TokenCreationWorkflow(signer, tracker).run("My Token", "MY", 6, "10", WALLET)
        token = created_token(result)
        assert token.symbol == "MY"
        assert token.decimals == 6
        assert token.address == result.result["token_address"]


class TestOrderTracker:
    @pytest.mark.asyncio
    async def test_limit_order_opens(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, OrderSide.BUY, "12.45", "2")

        assert order.status == OrderStatus.OPEN
        assert order.tx_hash == "0xhash1"
        assert order.size_raw == 200_000_000
        [request] = submitted(signer)
        assert request.function_arguments == (0, "12450000", "200000000")
        assert tracker.open_orders() == (order,)

    @pytest.mark.asyncio
    async def test_market_order(self, signer, apt, usdc):
        order = await OrderTracker(signer).place_market(apt, usdc, 1, "0.5")
        assert order.side == OrderSide.SELL
        assert order.price is None
        assert submitted(signer)[0].function.endswith("::place_market_order")

    @pytest.mark.asyncio
    async def test_submission_failure_marks_failed(self, signer, apt, usdc):
        signer.sign_and_submit.side_effect = RuntimeError("insufficient balance")
        order = await OrderTracker(signer).place_limit(apt, usdc, 0, "12", "1")
        assert order.status == OrderStatus.FAILED
        assert "insufficient balance" in order.error_message

    @pytest.mark.asyncio
    async def test_invalid_side_rejected(self, signer, apt, usdc):
        with pytest.raises(ValidationError):
            await OrderTracker(signer).place_limit(apt, usdc, 2, "12", "1")
        signer.sign_and_submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_zero_price_rejected(self, signer, apt, usdc):
        with pytest.raises(ValidationError) as exc_info:
            await OrderTracker(signer).place_limit(apt, usdc, 0, "0", "1")
        assert exc_info.value.code == ErrorCode.INVALID_PRICE

    @pytest.mark.asyncio
    async def test_venue_updates(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")

        partial = tracker.apply_venue_update(order.id, 40_000_000, venue_order_id="7")
        assert partial.status == OrderStatus.OPEN
        assert partial.venue_order_id == "7"

        filled = tracker.apply_venue_update(order.id, 100_000_000)
        assert filled.status == OrderStatus.FILLED
        assert tracker.open_orders() == ()

    @pytest.mark.asyncio
    async def test_repeated_terminal_update_is_noop(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        filled = tracker.apply_venue_update(order.id, 100_000_000, venue_order_id="7")

        again = tracker.apply_venue_update(order.id, 100_000_000, venue_order_id="7")
        assert again == filled
        assert tracker.get(order.id).status == OrderStatus.FILLED

    @pytest.mark.asyncio
    async def test_repeated_cancel_update_is_noop(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        tracker.apply_venue_update(order.id, 0, venue_order_id="7")
        cancelled = tracker.apply_venue_update(order.id, 30_000_000, cancelled=True)
        assert cancelled.status == OrderStatus.CANCELLED

        assert tracker.apply_venue_update(order.id, 30_000_000, cancelled=True) == cancelled

    @pytest.mark.asyncio
    async def test_filled_size_never_decreases(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        tracker.apply_venue_update(order.id, 60_000_000, venue_order_id="7")

        late = tracker.apply_venue_update(order.id, 10_000_000)
        assert late.filled_size_raw == 60_000_000
        assert late.status == OrderStatus.OPEN

    @pytest.mark.asyncio
    async def test_cancel(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        tracker.apply_venue_update(order.id, 0, venue_order_id="7")

        cancelled = await tracker.cancel(order.id)
        assert cancelled.status == OrderStatus.CANCELLED
        assert submitted(signer)[-1].function_arguments == ("7",)

    @pytest.mark.asyncio
    async def test_cancel_failure_stays_open(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        tracker.apply_venue_update(order.id, 0, venue_order_id="7")

        signer.sign_and_submit.side_effect = RuntimeError("network down")
        result = await tracker.cancel(order.id)
        assert result.status == OrderStatus.OPEN
        assert "network down" in result.error_message

    @pytest.mark.asyncio
    async def test_cancel_without_venue_id(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        with pytest.raises(ValidationError) as exc_info:
            await tracker.cancel(order.id)
        assert exc_info.value.code == ErrorCode.ORDER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_cancel_filled_rejected(self, signer, apt, usdc):
        tracker = OrderTracker(signer)
        order = await tracker.place_limit(apt, usdc, 0, "12", "1")
        tracker.apply_venue_update(order.id, 100_000_000, venue_order_id="7")
        with pytest.raises(InvalidTransitionError):
            await tracker.cancel(order.id)

    @pytest.mark.asyncio
    async def test_unknown_order(self, signer):
        with pytest.raises(ValidationError) as exc_info:
            await OrderTracker(signer).cancel("order_missing")
        assert exc_info.value.code == ErrorCode.ORDER_NOT_FOUND


class TestLiquidityManager:
    @pytest.mark.asyncio
    async def test_add_uses_canonical_amounts(self, signer, tracker, apt, usdc):
        manager = LiquidityManager(signer, tracker)
        # usdc given first; apt sorts first on-chain
        result = await manager.add(usdc, apt, 5, "100", "8")

        assert result.status == WorkflowStatus.COMPLETED
        [request] = submitted(signer)
        assert request.type_arguments == (apt.address, usdc.address)
        assert request.function_arguments[1:3] == ("800000000", "100000000")

        key = PoolKey.from_pair(apt.address, usdc.address, 5)
        position = manager.position(key)
        assert position.liquidity == int(result.result["liquidity"])
        assert position.liquidity > 0

    @pytest.mark.asyncio
    async def test_add_failure_leaves_no_position(self, signer, tracker, apt, usdc):
        signer.sign_and_submit.side_effect = RuntimeError("slippage")
        manager = LiquidityManager(signer, tracker)
        result = await manager.add(apt, usdc, 5, "1", "12")
        assert result.status == WorkflowStatus.FAILED
        assert manager.positions == ()

    @pytest.mark.asyncio
    async def test_remove_partial_then_all(self, signer, tracker, apt, usdc):
        manager = LiquidityManager(signer, tracker)
        key = PoolKey.from_pair(apt.address, usdc.address, 30)
        manager.sync_position(key, 1000)

        partial = await manager.remove(key, 25)
        assert partial.status == WorkflowStatus.COMPLETED
        assert manager.position(key).liquidity == 750
        assert submitted(signer)[0].function_arguments == (30, "250", "1", "1")

        await manager.remove(key, 100)
        assert manager.position(key) is None

    @pytest.mark.asyncio
    async def test_remove_without_position(self, signer, tracker):
        manager = LiquidityManager(signer, tracker)
        with pytest.raises(ValidationError) as exc_info:
            await manager.remove(PoolKey.from_pair("0xAAA", "0xBBB", 5), 50)
        assert exc_info.value.code == ErrorCode.POSITION_NOT_FOUND
        assert tracker.requests == ()

    def test_sync_zero_drops_position(self, signer, tracker):
        manager = LiquidityManager(signer, tracker)
        key = PoolKey.from_pair("0xAAA", "0xBBB", 5)
        manager.sync_position(key, 10)
        manager.sync_position(key, 0)
        assert manager.positions == ()
