# PATH: execution/state_machine.py
"""
DUET workflow and order state machines.

WORKFLOW STATE CONTRACT:
========================

States (WorkflowStatus):
  PENDING    → request created by a user action
  COMPLETED  → every fatal step succeeded
  FAILED     → a fatal step failed (earlier steps are NOT rolled back)

Transitions:
  PENDING → COMPLETED
  PENDING → FAILED
  Nothing ever re-enters PENDING. COMPLETED and FAILED are terminal.

ORDER STATE CONTRACT:
=====================

  PENDING_SUBMISSION → OPEN       (submission confirmed)
  PENDING_SUBMISSION → FAILED     (submission errored)
  OPEN               → OPEN       (partial fill update)
  OPEN               → FILLED     (fully filled)
  OPEN               → CANCELLED  (cancel confirmed)
  FILLED, CANCELLED, FAILED are terminal.

Records are frozen; every transition returns a new record.
========================
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from core.constants import OrderStatus, StepStatus, WorkflowKind, WorkflowStatus
from core.exceptions import ErrorCode, ExecutionError
from core.models import Order
from core.time import now_ms


# Valid workflow transitions
WORKFLOW_TRANSITIONS: Dict[WorkflowStatus, List[WorkflowStatus]] = {
    WorkflowStatus.PENDING: [WorkflowStatus.COMPLETED, WorkflowStatus.FAILED],
    WorkflowStatus.COMPLETED: [],  # Terminal state
    WorkflowStatus.FAILED: [],  # Terminal state
}

# Valid order transitions
ORDER_TRANSITIONS: Dict[OrderStatus, List[OrderStatus]] = {
    OrderStatus.PENDING_SUBMISSION: [OrderStatus.OPEN, OrderStatus.FAILED],
    OrderStatus.OPEN: [OrderStatus.OPEN, OrderStatus.FILLED, OrderStatus.CANCELLED],
    OrderStatus.FILLED: [],  # Terminal state
    OrderStatus.CANCELLED: [],  # Terminal state
    OrderStatus.FAILED: [],  # Terminal state
}


class InvalidTransitionError(ExecutionError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_TRANSITION, message, details)


@dataclass(frozen=True)
class StepRecord:
    """Outcome of one step of a multi-step workflow."""
    name: str
    status: StepStatus
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    timestamp_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "tx_hash": self.tx_hash,
            "error": self.error,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass(frozen=True)
class WorkflowRequest:
    """
    One tracked user action (pool creation, token creation, liquidity).

    result may carry references to partial on-chain effects (e.g. the
    token address of an initialized coin whose mint later failed).
    """
    id: str
    kind: WorkflowKind
    params: Dict[str, Any] = field(default_factory=dict)
    status: WorkflowStatus = WorkflowStatus.PENDING
    timestamp_ms: int = 0
    tx_hash: Optional[str] = None
    result: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    steps: Tuple[StepRecord, ...] = ()

    def __post_init__(self):
        if not self.timestamp_ms:
            object.__setattr__(self, "timestamp_ms", now_ms())
        object.__setattr__(self, "steps", tuple(self.steps))

    @property
    def is_terminal(self) -> bool:
        return not WORKFLOW_TRANSITIONS[self.status]

    def can_transition_to(self, new_status: WorkflowStatus) -> bool:
        return new_status in WORKFLOW_TRANSITIONS.get(self.status, [])

    def transition_to(self, new_status: WorkflowStatus, **changes: Any) -> "WorkflowRequest":
        """
        Return a copy in new_status.

        Raises:
            InvalidTransitionError: If transition is not valid
        """
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Invalid workflow transition: {self.status.value} → {new_status.value}",
                {"workflow_id": self.id, "from": self.status.value, "to": new_status.value},
            )
        return replace(self, status=new_status, **changes)

    def with_step(self, step: StepRecord) -> "WorkflowRequest":
        """Append a step record. Only a pending request records steps."""
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Workflow {self.id} is {self.status.value}; no further steps",
                {"workflow_id": self.id, "step": step.name},
            )
        return replace(self, steps=self.steps + (step,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "params": self.params,
            "status": self.status.value,
            "timestamp_ms": self.timestamp_ms,
            "tx_hash": self.tx_hash,
            "result": self.result,
            "error": self.error,
            "steps": [step.to_dict() for step in self.steps],
        }


def can_transition_order(current: OrderStatus, new_status: OrderStatus) -> bool:
    return new_status in ORDER_TRANSITIONS.get(current, [])


def transition_order(order: Order, new_status: OrderStatus, **changes: Any) -> Order:
    """
    Return a copy of order in new_status.

    Raises:
        InvalidTransitionError: If transition is not valid
    """
    if not can_transition_order(order.status, new_status):
        raise InvalidTransitionError(
            f"Invalid order transition: {order.status.value} → {new_status.value}",
            {"order_id": order.id, "from": order.status.value, "to": new_status.value},
        )
    return replace(order, status=new_status, **changes)
