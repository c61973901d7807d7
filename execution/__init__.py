# PATH: execution/__init__.py
"""
DUET execution layer.

- state_machine: workflow and order transitions
- workflows: pool/token creation, orders, liquidity (non-transactional)
- payloads: route descriptor -> transaction request
- session: wallet-bound facade over the trackers
"""

from execution.state_machine import (
    ORDER_TRANSITIONS,
    WORKFLOW_TRANSITIONS,
    InvalidTransitionError,
    StepRecord,
    WorkflowRequest,
    transition_order,
)
from execution.workflows import (
    LiquidityManager,
    OrderTracker,
    PoolCreationWorkflow,
    TokenCreationWorkflow,
    WorkflowTracker,
    submit,
)
from execution.payloads import PayloadBuilder
from execution.session import TradingSession

__all__ = [
    # State machine
    "ORDER_TRANSITIONS",
    "WORKFLOW_TRANSITIONS",
    "InvalidTransitionError",
    "StepRecord",
    "WorkflowRequest",
    "transition_order",
    # Workflows
    "LiquidityManager",
    "OrderTracker",
    "PoolCreationWorkflow",
    "TokenCreationWorkflow",
    "WorkflowTracker",
    "submit",
    # Payloads and session
    "PayloadBuilder",
    "TradingSession",
]
