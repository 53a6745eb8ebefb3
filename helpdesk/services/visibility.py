"""Which tickets a user may see."""
from sqlalchemy import false
from sqlalchemy.orm import Query, Session

from helpdesk.models.ticket import Ticket
from helpdesk.models.user import ROLE_ADMIN, ROLE_CONTACT, ROLE_MANAGER, ROLE_SUPER_ADMIN, ROLE_USER, User


def ticket_scope(user: User):
    """Return a filter clause for the tickets visible to user, or None for all."""
    if user.has_role(ROLE_ADMIN, ROLE_SUPER_ADMIN):
        return None
    if user.has_role(ROLE_MANAGER, ROLE_USER):
        return Ticket.assigned_to == user.id
    if user.has_role(ROLE_CONTACT):
        return Ticket.contact_id == user.id
    return false()


def apply_ticket_scope(query: Query, user: User) -> Query:
    clause = ticket_scope(user)
    if clause is not None:
        query = query.filter(clause)
    return query


def visible_tickets(db: Session, user: User, include_deleted: bool = False) -> Query:
    q = db.query(Ticket)
    if not include_deleted:
        q = q.filter(Ticket.deleted_at.is_(None))
    return apply_ticket_scope(q, user)


def is_staff(user: User) -> bool:
    return user.has_role(ROLE_USER, ROLE_MANAGER, ROLE_ADMIN, ROLE_SUPER_ADMIN)
