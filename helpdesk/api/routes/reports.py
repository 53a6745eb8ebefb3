"""
Reports & Analytics endpoints.
Returns aggregated ticket and maintenance data for a date range.
"""
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.api.deps import get_db
from helpdesk.core.auth import require_roles
from helpdesk.models.lookup import Category
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import ROLE_ADMIN, ROLE_MANAGER, ROLE_SUPER_ADMIN, User
from helpdesk.models.work_order import WorkOrder, WorkOrderExpense
from helpdesk.schemas.report import (
    CountItem,
    StaffPerformanceItem,
    TicketReportOut,
    WorkOrderReportOut,
)
from helpdesk.services.work_order_lifecycle import status_label
from helpdesk.utils.time import ensure_utc, parse_iso, utcnow

router = APIRouter(prefix="/reports", tags=["reports"])

report_viewer = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_MANAGER)


def _date_range(start_date: Optional[str], end_date: Optional[str]) -> Tuple[datetime, datetime]:
    """Parse the requested range or default to the last 90 days."""
    try:
        end_dt = parse_iso(end_date) or utcnow()
        start_dt = parse_iso(start_date) or end_dt - timedelta(days=90)
    except ValueError:
        raise HTTPException(status_code=422, detail="start_date/end_date must be ISO date-times")
    if start_dt > end_dt:
        raise HTTPException(status_code=422, detail="start_date must be before end_date")
    return start_dt, end_dt


def _base_ticket_query(db: Session, start_dt: datetime, end_dt: datetime, region_id: Optional[int]):
    q = (
        db.query(Ticket)
        .filter(Ticket.deleted_at.is_(None))
        .filter(Ticket.created_at >= start_dt)
        .filter(Ticket.created_at <= end_dt)
    )
    if region_id is not None:
        q = q.filter(Ticket.region_id == region_id)
    return q


def _avg_hours(pairs) -> Optional[float]:
    """Average gap in hours between (start, end) pairs, skipping missing ends."""
    gaps = [
        (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600.0
        for start, end in pairs
        if start is not None and end is not None
    ]
    if not gaps:
        return None
    return round(sum(gaps) / len(gaps), 1)


def _counts(rows) -> List[CountItem]:
    return [CountItem(key=str(key), count=int(count or 0)) for key, count in rows]


@router.get("/tickets", response_model=TicketReportOut)
def ticket_report(
    db: Session = Depends(get_db),
    current_user: User = Depends(report_viewer),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    region_id: Optional[int] = Query(None),
):
    start_dt, end_dt = _date_range(start_date, end_date)
    base = _base_ticket_query(db, start_dt, end_dt, region_id)

    by_status = base.with_entities(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all()
    by_priority = base.with_entities(Ticket.priority, func.count(Ticket.id)).group_by(Ticket.priority).all()

    category_label = func.coalesce(Category.name, "uncategorized")
    by_category = (
        base.outerjoin(Category, Category.id == Ticket.category_id)
        .with_entities(category_label, func.count(Ticket.id))
        .group_by(category_label)
        .all()
    )

    staff_label = func.coalesce(User.name, "unassigned")
    by_staff = (
        base.outerjoin(User, User.id == Ticket.assigned_to)
        .with_entities(staff_label, func.count(Ticket.id))
        .group_by(staff_label)
        .all()
    )

    timings = base.with_entities(Ticket.created_at, Ticket.response, Ticket.resolve).all()

    return TicketReportOut(
        start_date=start_dt.isoformat(),
        end_date=end_dt.isoformat(),
        total=base.count(),
        open_count=base.filter(Ticket.status.notin_(["closed", "resolved"])).count(),
        unassigned_count=base.filter(Ticket.assigned_to.is_(None)).count(),
        avg_first_response_hours=_avg_hours((c, r) for c, r, _ in timings),
        avg_resolution_hours=_avg_hours((c, s) for c, _, s in timings),
        by_status=_counts(by_status),
        by_priority=_counts(by_priority),
        by_category=_counts(by_category),
        by_staff=_counts(by_staff),
    )


@router.get("/staff-performance", response_model=List[StaffPerformanceItem])
def staff_performance(
    db: Session = Depends(get_db),
    current_user: User = Depends(report_viewer),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    region_id: Optional[int] = Query(None),
):
    start_dt, end_dt = _date_range(start_date, end_date)
    rows = (
        _base_ticket_query(db, start_dt, end_dt, region_id)
        .filter(Ticket.assigned_to.isnot(None))
        .with_entities(Ticket.assigned_to, Ticket.status, Ticket.created_at, Ticket.response)
        .all()
    )

    per_user = {}
    for user_id, status, created_at, response in rows:
        per_user.setdefault(user_id, []).append((status, created_at, response))

    users = {u.id: u for u in db.query(User).filter(User.id.in_(list(per_user))).all()} if per_user else {}

    items = []
    for user_id in sorted(per_user):
        tickets = per_user[user_id]
        items.append(
            StaffPerformanceItem(
                user_id=user_id,
                name=users[user_id].name if user_id in users else str(user_id),
                assigned=len(tickets),
                open=sum(1 for s, _, _ in tickets if s not in ("closed", "resolved")),
                resolved=sum(1 for s, _, _ in tickets if s == "resolved"),
                closed=sum(1 for s, _, _ in tickets if s == "closed"),
                avg_first_response_hours=_avg_hours((c, r) for _, c, r in tickets),
            )
        )
    return items


@router.get("/work-orders", response_model=WorkOrderReportOut)
def work_order_report(
    db: Session = Depends(get_db),
    current_user: User = Depends(report_viewer),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    asset_id: Optional[int] = Query(None),
):
    start_dt, end_dt = _date_range(start_date, end_date)
    base = db.query(WorkOrder).filter(WorkOrder.created_at >= start_dt).filter(WorkOrder.created_at <= end_dt)
    if asset_id is not None:
        base = base.filter(WorkOrder.asset_id == asset_id)

    by_status = base.with_entities(WorkOrder.status, func.count(WorkOrder.id)).group_by(WorkOrder.status).all()
    by_priority = base.with_entities(WorkOrder.priority, func.count(WorkOrder.id)).group_by(WorkOrder.priority).all()

    staff_label = func.coalesce(User.name, "unassigned")
    by_staff = (
        base.outerjoin(User, User.id == WorkOrder.assigned_to)
        .with_entities(staff_label, func.count(WorkOrder.id))
        .group_by(staff_label)
        .all()
    )

    total_expenses = (
        base.join(WorkOrderExpense, WorkOrderExpense.work_order_id == WorkOrder.id)
        .with_entities(func.coalesce(func.sum(WorkOrderExpense.amount), 0))
        .scalar()
    )

    return WorkOrderReportOut(
        start_date=start_dt.isoformat(),
        end_date=end_dt.isoformat(),
        total=base.count(),
        by_status=[CountItem(key=status_label(s), count=int(c or 0)) for s, c in by_status],
        by_priority=_counts(by_priority),
        by_staff=_counts(by_staff),
        total_expenses=round(float(total_expenses or 0), 2),
    )
