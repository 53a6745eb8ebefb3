from datetime import date, datetime, time, timezone
from typing import Optional, Union

from sqlalchemy.orm import Session

from helpdesk.models.audit_log import AuditLog
from helpdesk.models.user import User
from helpdesk.utils.time import ensure_utc, utcnow

# statuses that still count as outstanding work once the due date has passed
_OPEN_TICKET_STATUSES = {"open", "pending", "waiting_on_customer"}
_OPEN_WORK_ORDER_STATUSES = {"pending", "approved", "in_progress"}


def _as_datetime(value: Union[date, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def _compute_risk_level(
    entity_type: str,
    status: Optional[str],
    due_at: Optional[datetime],
    explicit: Optional[str] = None,
) -> str:
    if explicit:
        return explicit
    if due_at is None:
        return "low"
    if due_at >= utcnow():
        return "low"

    status_l = (status or "").lower()
    if entity_type == "ticket" and status_l in _OPEN_TICKET_STATUSES:
        return "high"
    if entity_type == "work_order" and status_l in _OPEN_WORK_ORDER_STATUSES:
        return "high"
    return "low"


def log_audit(
    db: Session,
    *,
    actor: Optional[User],
    action: str,
    entity_type: str,
    entity_id: str,
    source: str = "api",
    status: Optional[str] = None,
    due_at: Union[date, datetime, None] = None,
    region_id: Optional[int] = None,
    description: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction (flushed, not committed)."""
    due = _as_datetime(due_at)
    log = AuditLog(
        actor_id=str(actor.id) if actor else "system",
        actor_email=actor.email if actor else None,
        actor_role=", ".join(actor.role_names) if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        source=source,
        status=status,
        due_at=due,
        region_id=region_id,
        description=description,
        risk_level=_compute_risk_level(entity_type, status, due, risk_level),
    )
    db.add(log)
    db.flush()
    return log
