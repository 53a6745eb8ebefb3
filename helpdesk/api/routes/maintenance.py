"""Admin triggers for the periodic ticket jobs (auto-close, escalation)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.api.deps import get_db
from helpdesk.core import broadcast
from helpdesk.core.audit import log_audit
from helpdesk.core.auth import require_roles
from helpdesk.models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN, User
from helpdesk.services import ticket_lifecycle as lifecycle
from helpdesk.services.settings_store import load_lifecycle_settings

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

admin_only = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN)


@router.post("/auto-close")
def run_auto_close(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    closed = lifecycle.auto_close_resolved(db, load_lifecycle_settings(db))
    for ticket in closed:
        log_audit(
            db,
            actor=None,
            action="closed",
            entity_type="ticket",
            entity_id=ticket.uid,
            source="system",
            status=ticket.status,
            region_id=ticket.region_id,
            description="Ticket auto-closed after resolution window",
        )
    db.commit()

    for ticket in closed:
        broadcast.publish(
            broadcast.ticket_channel(ticket.id),
            "ticket-updated",
            {"ticket_id": ticket.id, "uid": ticket.uid, "status": ticket.status, "update_message": lifecycle.CLOSED_MESSAGE},
        )
    return {"closed": [t.uid for t in closed]}


@router.post("/escalations")
def run_escalations(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    escalated = lifecycle.escalate_overdue(db)
    db.commit()

    for ticket in escalated:
        broadcast.publish(
            broadcast.ticket_channel(ticket.id),
            "ticket-escalated",
            {"ticket_id": ticket.id, "uid": ticket.uid, "assigned_to": ticket.assigned_to},
        )
    return {"escalated": [t.uid for t in escalated]}
