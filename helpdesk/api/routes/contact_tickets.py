from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from helpdesk.api.deps import get_db
from helpdesk.api.routes.tickets import notify_comment, notify_created
from helpdesk.core.audit import log_audit
from helpdesk.core.auth import require_roles
from helpdesk.models.comment import Comment
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import ROLE_CONTACT, User
from helpdesk.schemas.comment import CommentCreate, CommentOut
from helpdesk.schemas.ticket import ContactTicketCreate, PublicTicketCreate, TicketOut
from helpdesk.services import ticket_lifecycle as lifecycle
from helpdesk.services.references import check_references
from helpdesk.services.settings_store import load_lifecycle_settings
from helpdesk.services.users import find_or_create_contact

router = APIRouter(tags=["contact-tickets"])


def _own_ticket(db: Session, contact: User, uid: str) -> Ticket:
    query = db.query(Ticket).filter(Ticket.contact_id == contact.id).filter(Ticket.deleted_at.is_(None))
    ticket = lifecycle.find_ticket(query, uid)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.post("/public/tickets", response_model=TicketOut, status_code=201)
def create_public_ticket(payload: PublicTicketCreate, db: Session = Depends(get_db)):
    """
    Unauthenticated web form. Finds or creates the contact by email and
    auto-assigns to the least busy staff member of the region, if any.
    """
    data = payload.model_dump(exclude={"name", "email", "region_id"})
    check_references(db, {**data, "region_id": payload.region_id})

    contact = find_or_create_contact(db, payload.name, payload.email, payload.region_id)
    if contact is None:
        raise HTTPException(status_code=409, detail="Email belongs to a staff account; sign in to file tickets")

    ticket = lifecycle.create_ticket(
        db,
        policy=load_lifecycle_settings(db),
        source="web",
        contact_id=contact.id,
        created_user_id=contact.id,
        region_id=payload.region_id or contact.region_id,
        auto_assign=True,
        **data,
    )
    log_audit(
        db,
        actor=contact,
        action="created",
        entity_type="ticket",
        entity_id=ticket.uid,
        source="web",
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket submitted from web form: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    notify_created(ticket)
    return ticket


@router.get("/contact/tickets", response_model=List[TicketOut])
def list_my_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_CONTACT)),
    type: Optional[str] = Query(None, description="open | closed"),
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    query = db.query(Ticket).filter(Ticket.contact_id == current_user.id).filter(Ticket.deleted_at.is_(None))

    if type == "open":
        query = query.filter(Ticket.status != "closed")
    elif type == "closed":
        query = query.filter(Ticket.status == "closed")
    if status:
        query = query.filter(Ticket.status == status)

    return query.order_by(Ticket.updated_at.desc(), Ticket.id.desc()).offset(offset).limit(limit).all()


@router.post("/contact/tickets", response_model=TicketOut, status_code=201)
def create_my_ticket(
    payload: ContactTicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_CONTACT)),
):
    data = payload.model_dump(exclude={"region_id"})
    check_references(db, {**data, "region_id": payload.region_id})

    ticket = lifecycle.create_ticket(
        db,
        policy=load_lifecycle_settings(db),
        source="portal",
        contact_id=current_user.id,
        created_user_id=current_user.id,
        region_id=payload.region_id or current_user.region_id,
        auto_assign=True,
        **data,
    )
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="ticket",
        entity_id=ticket.uid,
        source="portal",
        status=ticket.status,
        region_id=ticket.region_id,
        description=f"Ticket created from portal: {ticket.subject}",
    )
    db.commit()
    db.refresh(ticket)

    notify_created(ticket)
    return ticket


@router.get("/contact/tickets/{uid}", response_model=TicketOut)
def get_my_ticket(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_CONTACT)),
):
    return _own_ticket(db, current_user, uid)


@router.get("/contact/tickets/{uid}/comments", response_model=List[CommentOut])
def list_my_ticket_comments(
    uid: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_CONTACT)),
):
    ticket = _own_ticket(db, current_user, uid)
    return (
        db.query(Comment)
        .filter(Comment.ticket_id == ticket.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )


@router.post("/contact/tickets/{uid}/comments", response_model=CommentOut, status_code=201)
def add_my_comment(
    uid: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_CONTACT)),
):
    found = _own_ticket(db, current_user, uid)

    ticket = lifecycle.lock_ticket(db, found.id)
    comment, reopened = lifecycle.add_comment(
        db, ticket, author_id=current_user.id, details=payload.comment, staff=False
    )
    log_audit(
        db,
        actor=current_user,
        action="commented",
        entity_type="ticket",
        entity_id=ticket.uid,
        source="portal",
        status=ticket.status,
        region_id=ticket.region_id,
        description="Contact reply reopened the ticket" if reopened else "Contact reply added",
    )
    db.commit()
    db.refresh(comment)
    db.refresh(ticket)

    notify_comment(ticket, comment, current_user)
    return comment
