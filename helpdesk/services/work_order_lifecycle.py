"""Work order status state machine."""
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional

from helpdesk.models.work_order import WorkOrder, WorkOrderStatus
from helpdesk.utils.time import utcnow

ALLOWED_TRANSITIONS: Dict[WorkOrderStatus, FrozenSet[WorkOrderStatus]] = {
    WorkOrderStatus.PENDING: frozenset({WorkOrderStatus.APPROVED, WorkOrderStatus.REJECTED}),
    WorkOrderStatus.APPROVED: frozenset({WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.REJECTED}),
    WorkOrderStatus.IN_PROGRESS: frozenset({WorkOrderStatus.COMPLETED, WorkOrderStatus.REJECTED}),
    WorkOrderStatus.COMPLETED: frozenset({WorkOrderStatus.REJECTED}),
    WorkOrderStatus.REJECTED: frozenset({WorkOrderStatus.APPROVED}),
}

# orders in these states may still be withdrawn (deleted) by the requester
UNDOABLE_STATUSES = frozenset({WorkOrderStatus.PENDING, WorkOrderStatus.REJECTED})


class InvalidTransition(Exception):
    def __init__(self, from_status: WorkOrderStatus, to_status: WorkOrderStatus, work_order_id: Optional[int] = None):
        self.from_status = WorkOrderStatus(from_status)
        self.to_status = WorkOrderStatus(to_status)
        self.work_order_id = work_order_id
        super().__init__(f"Cannot move work order from {self.from_status.name} to {self.to_status.name}")


class NotUndoable(Exception):
    def __init__(self, status: WorkOrderStatus):
        self.status = WorkOrderStatus(status)
        super().__init__(f"Work order in status {self.status.name} can no longer be withdrawn")


def status_label(status: int) -> str:
    return WorkOrderStatus(status).name.lower()


def can_transition(from_status: int, to_status: int) -> bool:
    current = WorkOrderStatus(from_status)
    target = WorkOrderStatus(to_status)
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(work_order: WorkOrder, to_status: int) -> None:
    if not can_transition(work_order.status, to_status):
        raise InvalidTransition(work_order.status, to_status, work_order.id)


def apply_transition(
    work_order: WorkOrder,
    to_status: int,
    actor_id: Optional[int],
    now: Optional[datetime] = None,
) -> bool:
    """
    Move the order to to_status and stamp the matching audit fields.

    Returns False for a self transition (nothing written). Raises
    InvalidTransition for edges outside ALLOWED_TRANSITIONS.
    """
    check_transition(work_order, to_status)
    target = WorkOrderStatus(to_status)
    if WorkOrderStatus(work_order.status) == target:
        return False

    now = now or utcnow()
    if target == WorkOrderStatus.APPROVED:
        work_order.approved_by = actor_id
        work_order.approved_at = now
    elif target == WorkOrderStatus.REJECTED:
        work_order.rejected_by = actor_id
        work_order.rejected_at = now
    elif target == WorkOrderStatus.COMPLETED:
        work_order.completed_by = actor_id
        work_order.completed_at = now

    work_order.status = int(target)
    return True


def apply_bulk_transition(
    work_orders: Iterable[WorkOrder],
    to_status: int,
    actor_id: Optional[int],
    now: Optional[datetime] = None,
):
    """All-or-nothing: every order is checked before any is changed."""
    work_orders = list(work_orders)
    for work_order in work_orders:
        check_transition(work_order, to_status)
    now = now or utcnow()
    return [wo for wo in work_orders if apply_transition(wo, to_status, actor_id, now)]


def ensure_undoable(work_order: WorkOrder) -> None:
    if WorkOrderStatus(work_order.status) not in UNDOABLE_STATUSES:
        raise NotUndoable(work_order.status)
