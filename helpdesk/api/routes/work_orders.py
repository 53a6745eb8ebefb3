from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from helpdesk.api.deps import get_db
from helpdesk.core import broadcast
from helpdesk.core.audit import log_audit
from helpdesk.core.auth import get_current_user
from helpdesk.models.user import User
from helpdesk.models.work_order import WorkOrder, WorkOrderExpense, WorkOrderStatus
from helpdesk.schemas.work_order import (
    ExpenseCreate,
    ExpenseOut,
    ExpenseUpdate,
    WorkOrderBulkStatusChange,
    WorkOrderCreate,
    WorkOrderOut,
    WorkOrderStatusChange,
    WorkOrderUpdate,
)
from helpdesk.services import work_order_lifecycle as lifecycle
from helpdesk.services.references import check_references
from helpdesk.services.visibility import is_staff

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


def _staff(current_user: User = Depends(get_current_user)) -> User:
    if not is_staff(current_user):
        raise HTTPException(status_code=403, detail="Staff only")
    return current_user


def _get_work_order(db: Session, work_order_id: int) -> WorkOrder:
    row = db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Work order not found")
    return row


def _audit_status(db: Session, actor: User, row: WorkOrder, previous: int) -> None:
    log_audit(
        db,
        actor=actor,
        action="status_changed",
        entity_type="work_order",
        entity_id=str(row.id),
        status=lifecycle.status_label(row.status),
        due_at=row.due_date,
        description=f"Work order {row.id}: {lifecycle.status_label(previous)} -> {lifecycle.status_label(row.status)}",
    )


def _notify_status(row: WorkOrder) -> None:
    broadcast.publish(
        broadcast.WORK_ORDERS_CHANNEL,
        "work-order-status-changed",
        {"work_order_id": row.id, "status": row.status, "status_label": lifecycle.status_label(row.status)},
    )


@router.get("", response_model=List[WorkOrderOut])
def list_work_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
    status: Optional[WorkOrderStatus] = Query(None),
    priority: Optional[str] = Query(None),
    asset_id: Optional[int] = Query(None),
    staff_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None),  # search in title
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    query = db.query(WorkOrder)

    if status is not None:
        query = query.filter(WorkOrder.status == int(status))
    if priority:
        query = query.filter(WorkOrder.priority == priority)
    if asset_id:
        query = query.filter(WorkOrder.asset_id == asset_id)
    if staff_id:
        query = query.filter(WorkOrder.assigned_to == staff_id)
    if q:
        query = query.filter(WorkOrder.title.ilike(f"%{q}%"))

    return query.order_by(WorkOrder.id.desc()).offset(offset).limit(limit).all()


@router.post("", response_model=WorkOrderOut, status_code=201)
def create_work_order(
    payload: WorkOrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    data = payload.model_dump()
    check_references(db, data)

    row = WorkOrder(
        **data,
        status=int(WorkOrderStatus.PENDING),
        requested_by=current_user.id,
    )
    db.add(row)
    db.flush()
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="work_order",
        entity_id=str(row.id),
        status="pending",
        due_at=row.due_date,
        description=f"Work order created: {row.title}",
    )
    db.commit()
    db.refresh(row)

    broadcast.publish(broadcast.WORK_ORDERS_CHANNEL, "work-order-created", {"work_order_id": row.id})
    return row


@router.post("/bulk-status-change", response_model=List[WorkOrderOut])
def bulk_status_change(
    payload: WorkOrderBulkStatusChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    """Apply one status to several orders; rejected as a whole if any edge is invalid."""
    ids = list(dict.fromkeys(payload.ids))
    rows = db.query(WorkOrder).filter(WorkOrder.id.in_(ids)).order_by(WorkOrder.id).all()
    missing = set(ids) - {r.id for r in rows}
    if missing:
        raise HTTPException(status_code=404, detail=f"Work orders not found: {sorted(missing)}")

    previous = {r.id: r.status for r in rows}
    changed = lifecycle.apply_bulk_transition(rows, payload.status, current_user.id)
    for row in changed:
        _audit_status(db, current_user, row, previous[row.id])
    db.commit()

    for row in changed:
        db.refresh(row)
        _notify_status(row)
    return rows


@router.get("/{work_order_id}", response_model=WorkOrderOut)
def get_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    return _get_work_order(db, work_order_id)


@router.patch("/{work_order_id}", response_model=WorkOrderOut)
def update_work_order(
    work_order_id: int,
    payload: WorkOrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    row = _get_work_order(db, work_order_id)

    data = payload.model_dump(exclude_unset=True)
    check_references(db, data)
    for k, v in data.items():
        setattr(row, k, v)

    db.commit()
    db.refresh(row)
    return row


@router.patch("/{work_order_id}/status", response_model=WorkOrderOut)
def change_status(
    work_order_id: int,
    payload: WorkOrderStatusChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    """
    Move a work order along the approval workflow. Invalid edges raise
    InvalidTransition (409); a self transition is a no-op.
    """
    row = _get_work_order(db, work_order_id)
    previous = row.status

    if lifecycle.apply_transition(row, payload.status, current_user.id):
        _audit_status(db, current_user, row, previous)
        db.commit()
        db.refresh(row)
        _notify_status(row)
    return row


@router.delete("/{work_order_id}")
def delete_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    """Undo a request; only pending or rejected orders can be withdrawn."""
    row = _get_work_order(db, work_order_id)
    lifecycle.ensure_undoable(row)

    log_audit(
        db,
        actor=current_user,
        action="deleted",
        entity_type="work_order",
        entity_id=str(row.id),
        status=lifecycle.status_label(row.status),
        description=f"Work order withdrawn: {row.title}",
    )
    db.delete(row)
    db.commit()
    return {"ok": True}


@router.post("/{work_order_id}/expenses", response_model=ExpenseOut, status_code=201)
def add_expense(
    work_order_id: int,
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    row = _get_work_order(db, work_order_id)
    expense = WorkOrderExpense(work_order_id=row.id, **payload.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.patch("/{work_order_id}/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    work_order_id: int,
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    expense = (
        db.query(WorkOrderExpense)
        .filter(WorkOrderExpense.id == expense_id, WorkOrderExpense.work_order_id == work_order_id)
        .first()
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(expense, k, v)

    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{work_order_id}/expenses/{expense_id}")
def delete_expense(
    work_order_id: int,
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    expense = (
        db.query(WorkOrderExpense)
        .filter(WorkOrderExpense.id == expense_id, WorkOrderExpense.work_order_id == work_order_id)
        .first()
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    db.delete(expense)
    db.commit()
    return {"ok": True}
