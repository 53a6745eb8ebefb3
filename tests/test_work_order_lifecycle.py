from datetime import timedelta

import pytest

from helpdesk.models.work_order import WorkOrder, WorkOrderStatus
from helpdesk.services.work_order_lifecycle import (
    ALLOWED_TRANSITIONS,
    InvalidTransition,
    NotUndoable,
    apply_bulk_transition,
    apply_transition,
    can_transition,
    ensure_undoable,
)
from helpdesk.utils.time import utcnow


def _order(status=WorkOrderStatus.PENDING, id=1):
    return WorkOrder(id=id, title="Replace filter", priority="low", status=int(status))


def test_happy_path_stamps_audit_fields():
    wo = _order()
    now = utcnow()

    assert apply_transition(wo, WorkOrderStatus.APPROVED, actor_id=7, now=now)
    assert (wo.approved_by, wo.approved_at) == (7, now)

    assert apply_transition(wo, WorkOrderStatus.IN_PROGRESS, actor_id=8, now=now)
    assert apply_transition(wo, WorkOrderStatus.COMPLETED, actor_id=9, now=now)
    assert wo.status == int(WorkOrderStatus.COMPLETED)
    assert (wo.completed_by, wo.completed_at) == (9, now)
    # earlier stamps survive later transitions
    assert wo.approved_by == 7


def test_pending_cannot_skip_to_completed():
    wo = _order()
    with pytest.raises(InvalidTransition) as exc:
        apply_transition(wo, WorkOrderStatus.COMPLETED, actor_id=1)
    assert exc.value.from_status == WorkOrderStatus.PENDING
    assert exc.value.to_status == WorkOrderStatus.COMPLETED
    assert wo.status == int(WorkOrderStatus.PENDING)
    assert wo.completed_at is None


def test_every_state_can_be_rejected_except_rejected():
    for status in WorkOrderStatus:
        if status == WorkOrderStatus.REJECTED:
            continue
        assert can_transition(status, WorkOrderStatus.REJECTED)


def test_rejected_goes_back_to_approved_only():
    assert ALLOWED_TRANSITIONS[WorkOrderStatus.REJECTED] == {WorkOrderStatus.APPROVED}
    assert not can_transition(WorkOrderStatus.REJECTED, WorkOrderStatus.IN_PROGRESS)

    wo = _order(WorkOrderStatus.REJECTED)
    assert apply_transition(wo, WorkOrderStatus.APPROVED, actor_id=3)
    assert wo.approved_by == 3


def test_rejected_then_reapproved_keeps_every_stamp():
    wo = _order()
    t0 = utcnow()
    t1, t2, t3, t4 = (t0 + timedelta(minutes=n) for n in range(1, 5))

    assert apply_transition(wo, WorkOrderStatus.REJECTED, actor_id=4, now=t0)
    assert apply_transition(wo, WorkOrderStatus.APPROVED, actor_id=5, now=t1)
    assert apply_transition(wo, WorkOrderStatus.IN_PROGRESS, actor_id=6, now=t2)
    assert apply_transition(wo, WorkOrderStatus.COMPLETED, actor_id=7, now=t3)

    assert wo.status == int(WorkOrderStatus.COMPLETED)
    assert (wo.rejected_by, wo.rejected_at) == (4, t0)
    assert (wo.approved_by, wo.approved_at) == (5, t1)
    assert (wo.completed_by, wo.completed_at) == (7, t3)

    # rejecting again overwrites only the rejection pair
    assert apply_transition(wo, WorkOrderStatus.REJECTED, actor_id=8, now=t4)
    assert (wo.rejected_by, wo.rejected_at) == (8, t4)
    assert (wo.approved_by, wo.completed_by) == (5, 7)


def test_completed_is_terminal_apart_from_reject():
    assert not can_transition(WorkOrderStatus.COMPLETED, WorkOrderStatus.IN_PROGRESS)
    assert not can_transition(WorkOrderStatus.COMPLETED, WorkOrderStatus.PENDING)


def test_self_transition_is_a_noop():
    wo = _order(WorkOrderStatus.APPROVED)
    assert apply_transition(wo, WorkOrderStatus.APPROVED, actor_id=2) is False
    assert wo.approved_by is None


def test_bulk_is_all_or_nothing():
    pending = _order(WorkOrderStatus.PENDING, id=1)
    completed = _order(WorkOrderStatus.COMPLETED, id=2)

    with pytest.raises(InvalidTransition) as exc:
        apply_bulk_transition([pending, completed], WorkOrderStatus.APPROVED, actor_id=1)
    assert exc.value.work_order_id == 2
    assert pending.status == int(WorkOrderStatus.PENDING)
    assert pending.approved_at is None


def test_bulk_skips_orders_already_in_target():
    a = _order(WorkOrderStatus.PENDING, id=1)
    b = _order(WorkOrderStatus.APPROVED, id=2)
    changed = apply_bulk_transition([a, b], WorkOrderStatus.APPROVED, actor_id=4)
    assert changed == [a]
    assert b.approved_by is None


@pytest.mark.parametrize("status", [WorkOrderStatus.PENDING, WorkOrderStatus.REJECTED])
def test_undo_allowed(status):
    ensure_undoable(_order(status))


@pytest.mark.parametrize(
    "status", [WorkOrderStatus.APPROVED, WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.COMPLETED]
)
def test_undo_refused(status):
    with pytest.raises(NotUndoable):
        ensure_undoable(_order(status))


def test_edges_outside_the_table_are_rejected():
    for current in WorkOrderStatus:
        for target in WorkOrderStatus:
            if current == target:
                continue
            wo = _order(current)
            if target in ALLOWED_TRANSITIONS[current]:
                assert apply_transition(wo, target, actor_id=1)
            else:
                with pytest.raises(InvalidTransition):
                    apply_transition(wo, target, actor_id=1)
                assert wo.status == int(current)
