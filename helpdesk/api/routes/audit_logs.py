from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from helpdesk.api.deps import get_db
from helpdesk.core.auth import require_roles
from helpdesk.models.audit_log import AuditLog
from helpdesk.models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN, User
from helpdesk.schemas.audit_log import AuditLogOut, AuditLogStatsOut
from helpdesk.utils.time import ensure_utc, parse_iso, utcnow

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])

admin_only = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN)

RETENTION_DAYS = 90
_OUTSTANDING = ("open", "pending", "waiting_on_customer", "approved", "in_progress")


def _is_overdue(log: AuditLog) -> bool:
    if not log.due_at:
        return False
    return ensure_utc(log.due_at) < utcnow() and (log.status or "").lower() in _OUTSTANDING


def _parse(value: Optional[str], name: str):
    try:
        return parse_iso(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"{name} must be an ISO date-time")


@router.get("", response_model=List[AuditLogOut])
def list_audit_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    actor: Optional[str] = Query(None, description="Filter by actor email"),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    risk_level: Optional[str] = Query(None, description="low|medium|high"),
    high_risk_only: Optional[bool] = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    q = db.query(AuditLog)

    start_dt = _parse(start_date, "start_date")
    end_dt = _parse(end_date, "end_date")
    if start_dt:
        q = q.filter(AuditLog.created_at >= start_dt)
    if end_dt:
        q = q.filter(AuditLog.created_at <= end_dt)
    if actor:
        q = q.filter(AuditLog.actor_email == actor)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        q = q.filter(AuditLog.entity_id == entity_id)
    if action:
        q = q.filter(AuditLog.action == action)
    if source:
        q = q.filter(AuditLog.source == source)
    if risk_level:
        q = q.filter(AuditLog.risk_level == risk_level)

    logs = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()

    if high_risk_only:
        logs = [l for l in logs if _is_overdue(l) or l.risk_level == "high"]
    return logs


@router.get("/stats", response_model=AuditLogStatsOut)
def audit_log_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    now = utcnow()
    start_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    total = db.query(AuditLog).count()
    today = db.query(AuditLog).filter(AuditLog.created_at >= start_today).count()
    deletions = db.query(AuditLog).filter(AuditLog.action == "deleted").count()

    recent = db.query(AuditLog).filter(AuditLog.created_at >= now - timedelta(days=RETENTION_DAYS)).all()
    high_risk = sum(1 for l in recent if _is_overdue(l) or l.risk_level == "high")

    return AuditLogStatsOut(
        total=total,
        today=today,
        high_risk=high_risk,
        deletions=deletions,
        retention_days=RETENTION_DAYS,
    )
