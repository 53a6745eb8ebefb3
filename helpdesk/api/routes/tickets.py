from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timezone

from helpdesk.api.deps import get_db
from helpdesk.core import broadcast
from helpdesk.core.audit import log_audit
from helpdesk.core.auth import get_current_user
from helpdesk.models.comment import Comment
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.schemas.comment import CommentCreate, CommentOut
from helpdesk.schemas.ticket import TicketCreate, TicketOut, TicketResolve, TicketUpdate
from helpdesk.services import ticket_lifecycle as lifecycle
from helpdesk.services.references import check_references
from helpdesk.services.settings_store import load_lifecycle_settings
from helpdesk.services.visibility import is_staff, visible_tickets

router = APIRouter(prefix="/tickets", tags=["tickets"])


def _require_staff(user: User) -> None:
    if not is_staff(user):
        raise HTTPException(status_code=403, detail="Staff only")


def _get_visible(db: Session, user: User, uid: str, include_deleted: bool = False) -> Ticket:
    ticket = lifecycle.find_ticket(visible_tickets(db, user, include_deleted=include_deleted), uid)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


def notify_created(ticket: Ticket) -> None:
    broadcast.publish(
        broadcast.TICKETS_CHANNEL,
        "ticket-created",
        {"ticket_id": ticket.id, "uid": ticket.uid, "source": ticket.source},
    )
    if ticket.assigned_to:
        notify_assigned(ticket)


def notify_assigned(ticket: Ticket) -> None:
    broadcast.publish(
        broadcast.ticket_channel(ticket.id),
        "ticket-assigned",
        {"ticket_id": ticket.id, "uid": ticket.uid, "assigned_to": ticket.assigned_to},
    )


def notify_updated(ticket: Ticket, message: str) -> None:
    broadcast.publish(
        broadcast.ticket_channel(ticket.id),
        "ticket-updated",
        {"ticket_id": ticket.id, "uid": ticket.uid, "status": ticket.status, "update_message": message},
    )


def notify_comment(ticket: Ticket, comment: Comment, author: Optional[User]) -> None:
    broadcast.publish(
        broadcast.ticket_channel(ticket.id),
        "new-comment",
        {
            "ticket_id": ticket.id,
            "uid": ticket.uid,
            "status": ticket.status,
            "comment": {
                "id": comment.id,
                "details": comment.details,
                "created_at": comment.created_at.isoformat(),
                "user": {"id": author.id, "name": author.name} if author else None,
            },
        },
    )


@router.get("", response_model=List[TicketOut])
def list_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    region_id: Optional[int] = Query(None),
    assigned_to: Optional[int] = Query(None),
    contact_id: Optional[int] = Query(None),
    type: Optional[str] = Query(None, description="un_assigned | open | new"),
    q: Optional[str] = Query(None),  # search in subject / uid
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    query = visible_tickets(db, current_user)

    if status:
        query = query.filter(Ticket.status == status)
    if priority:
        query = query.filter(Ticket.priority == priority)
    if category_id:
        query = query.filter(Ticket.category_id == category_id)
    if region_id:
        query = query.filter(Ticket.region_id == region_id)
    if assigned_to:
        query = query.filter(Ticket.assigned_to == assigned_to)
    if contact_id:
        query = query.filter(Ticket.contact_id == contact_id)

    if type == "un_assigned":
        query = query.filter(Ticket.assigned_to.is_(None))
    elif type == "open":
        query = query.filter(Ticket.status != "closed")
    elif type == "new":
        start_today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        query = query.filter(Ticket.created_at >= start_today)

    if q:
        query = query.filter(Ticket.subject.ilike(f"%{q}%") | Ticket.uid.ilike(f"%{q}%"))

    return query.order_by(Ticket.updated_at.desc(), Ticket.id.desc()).offset(offset).limit(limit).all()


@router.post("", response_model=TicketOut, status_code=201)
def create_ticket(
    payload: TicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    data = payload.model_dump()
    check_references(db, data)

    ticket = lifecycle.create_ticket(
        db,
        policy=load_lifecycle_settings(db),
        source="dashboard",
        created_user_id=current_user.id,
        **data,
    )
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        due_at=ticket.due,
        region_id=ticket.region_id,
        description=f"Ticket created: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    notify_created(ticket)
    return ticket


@router.get("/{uid}", response_model=TicketOut)
def get_ticket(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_visible(db, current_user, uid)


@router.patch("/{uid}", response_model=TicketOut)
def update_ticket(
    uid: str,
    payload: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    ticket = _get_visible(db, current_user, uid)
    updates = payload.model_dump(exclude_unset=True)
    check_references(db, updates)

    reason, assignee_changed = lifecycle.apply_staff_update(ticket, updates)
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        due_at=ticket.due,
        region_id=ticket.region_id,
        description=reason or f"Ticket updated: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    if assignee_changed:
        notify_assigned(ticket)
    if reason:
        notify_updated(ticket, reason)
    return ticket


@router.post("/{uid}/close", response_model=TicketOut)
def close_ticket(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    ticket = _get_visible(db, current_user, uid)

    reason = lifecycle.close_ticket(ticket)
    log_audit(
        db,
        actor=current_user,
        action="closed",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket closed: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    if reason:
        notify_updated(ticket, reason)
    return ticket


@router.post("/{uid}/resolve", response_model=TicketOut)
def resolve_ticket(
    uid: str,
    payload: TicketResolve,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    ticket = _get_visible(db, current_user, uid)

    reason = lifecycle.resolve_ticket(ticket, payload.resolution_details)
    log_audit(
        db,
        actor=current_user,
        action="resolved",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket resolved: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    if reason:
        notify_updated(ticket, reason)
    return ticket


@router.get("/{uid}/comments", response_model=List[CommentOut])
def list_comments(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = _get_visible(db, current_user, uid)
    return (
        db.query(Comment)
        .filter(Comment.ticket_id == ticket.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )


@router.post("/{uid}/comments", response_model=CommentOut, status_code=201)
def add_comment(
    uid: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Staff comment. Reopens closed/pending tickets in the same locked
    transaction as the insert.
    """
    _require_staff(current_user)
    found = _get_visible(db, current_user, uid)

    ticket = lifecycle.lock_ticket(db, found.id)
    comment, reopened = lifecycle.add_comment(
        db, ticket, author_id=current_user.id, details=payload.comment, staff=True
    )
    log_audit(
        db,
        actor=current_user,
        action="commented",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        region_id=ticket.region_id,
        description="Comment reopened the ticket" if reopened else "Comment added",
    )
    db.commit()
    db.refresh(comment)
    db.refresh(ticket)

    notify_comment(ticket, comment, current_user)
    return comment


@router.delete("/{uid}")
def delete_ticket(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    ticket = _get_visible(db, current_user, uid)

    ticket.deleted_at = datetime.now(timezone.utc)
    log_audit(
        db,
        actor=current_user,
        action="deleted",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket deleted: {ticket.subject}",
    )
    db.commit()
    return {"ok": True}


@router.post("/{uid}/restore", response_model=TicketOut)
def restore_ticket(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    ticket = _get_visible(db, current_user, uid, include_deleted=True)

    ticket.deleted_at = None
    log_audit(
        db,
        actor=current_user,
        action="restored",
        entity_type="ticket",
        entity_id=ticket.uid,
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket restored: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)
    return ticket
