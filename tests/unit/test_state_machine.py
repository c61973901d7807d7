"""
tests/unit/test_state_machine.py - Tests for execution/state_machine.py
"""

import pytest

from core.constants import OrderSide, OrderStatus, OrderType, StepStatus, WorkflowKind, WorkflowStatus
from core.exceptions import ErrorCode, ExecutionError
from core.models import Order
from execution.state_machine import (
    ORDER_TRANSITIONS,
    WORKFLOW_TRANSITIONS,
    InvalidTransitionError,
    StepRecord,
    WorkflowRequest,
    can_transition_order,
    transition_order,
)


@pytest.fixture
def request_():
    return WorkflowRequest(id="wf_1", kind=WorkflowKind.POOL_CREATION, params={"fee_tier": 5})


@pytest.fixture
def order():
    return Order(
        id="order_1",
        base="0xAAA",
        quote="0xBBB",
        side=OrderSide.BUY,
        order_type=OrderType.LIMIT,
        size_raw=100,
    )


class TestWorkflowTransitions:
    def test_terminal_states_have_no_exits(self):
        assert WORKFLOW_TRANSITIONS[WorkflowStatus.COMPLETED] == []
        assert WORKFLOW_TRANSITIONS[WorkflowStatus.FAILED] == []

    def test_new_request_is_pending_and_stamped(self, request_):
        assert request_.status == WorkflowStatus.PENDING
        assert request_.timestamp_ms > 0
        assert not request_.is_terminal

    def test_pending_to_completed(self, request_):
        done = request_.transition_to(WorkflowStatus.COMPLETED, tx_hash="0x1")
        assert done.status == WorkflowStatus.COMPLETED
        assert done.tx_hash == "0x1"
        assert done.is_terminal
        # original untouched
        assert request_.status == WorkflowStatus.PENDING

    def test_terminal_cannot_move(self, request_):
        failed = request_.transition_to(WorkflowStatus.FAILED, error="boom")
        with pytest.raises(InvalidTransitionError) as exc_info:
            failed.transition_to(WorkflowStatus.COMPLETED)
        assert exc_info.value.code == ErrorCode.INVALID_TRANSITION
        assert isinstance(exc_info.value, ExecutionError)

    def test_nothing_reenters_pending(self, request_):
        assert not request_.can_transition_to(WorkflowStatus.PENDING)

    def test_with_step_appends(self, request_):
        step = StepRecord(name="create_pool", status=StepStatus.SUCCEEDED, tx_hash="0x1")
        updated = request_.with_step(step)
        assert updated.steps == (step,)
        assert request_.steps == ()
        assert step.succeeded

    def test_with_step_on_terminal_rejected(self, request_):
        done = request_.transition_to(WorkflowStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            done.with_step(StepRecord(name="late", status=StepStatus.SUCCEEDED))

    def test_to_dict(self, request_):
        data = request_.with_step(StepRecord(name="s", status=StepStatus.FAILED_NON_FATAL)).to_dict()
        assert data["kind"] == "POOL_CREATION"
        assert data["steps"][0]["status"] == "FAILED_NON_FATAL"


class TestOrderTransitions:
    def test_table(self):
        assert OrderStatus.OPEN in ORDER_TRANSITIONS[OrderStatus.PENDING_SUBMISSION]
        assert ORDER_TRANSITIONS[OrderStatus.FILLED] == []

    def test_submission_confirmed(self, order):
        opened = transition_order(order, OrderStatus.OPEN, venue_order_id="42")
        assert opened.status == OrderStatus.OPEN
        assert opened.venue_order_id == "42"

    def test_partial_fill_stays_open(self, order):
        opened = transition_order(order, OrderStatus.OPEN)
        partial = transition_order(opened, OrderStatus.OPEN, filled_size_raw=40)
        assert partial.remaining_raw == 60

    def test_pending_cannot_fill(self, order):
        assert not can_transition_order(OrderStatus.PENDING_SUBMISSION, OrderStatus.FILLED)
        with pytest.raises(InvalidTransitionError):
            transition_order(order, OrderStatus.FILLED)

    @pytest.mark.parametrize("terminal", [OrderStatus.FILLED, OrderStatus.CANCELLED])
    def test_terminal_orders_frozen(self, order, terminal):
        done = transition_order(transition_order(order, OrderStatus.OPEN), terminal)
        with pytest.raises(InvalidTransitionError):
            transition_order(done, OrderStatus.OPEN)
