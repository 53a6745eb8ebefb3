"""
Ticket lifecycle rules: creation defaults, status timestamps, the update
reason shown to watchers, comment-triggered reopen, auto-close and
escalation.

Functions here only stage changes on the session. Callers own the commit and
emit notifications afterwards.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from helpdesk.models.comment import Comment
from helpdesk.models.ticket import Ticket, UID_OFFSET
from helpdesk.services.assignment import pick_least_busy_user
from helpdesk.services.settings_store import LifecycleSettings
from helpdesk.utils.time import add_interval, ensure_utc, utcnow

logger = logging.getLogger(__name__)

CLOSED_MESSAGE = "The ticket has been closed."
STATUS_MESSAGE = "The status has been changed for this ticket."
PRIORITY_MESSAGE = "The priority has been changed for this ticket."

# a new comment on a ticket in one of these states reopens it
REOPEN_STATUSES = frozenset({"closed", "pending"})
ACTIVE_STATUSES = frozenset({"open", "pending", "waiting_on_customer"})
ESCALATION_STATUSES = ("open", "pending")


def find_ticket(query: Query, key: str) -> Optional[Ticket]:
    """Look a ticket up by uid, falling back to the numeric id."""
    clauses = [Ticket.uid == str(key)]
    if str(key).isdigit():
        clauses.append(Ticket.id == int(key))
    return query.filter(or_(*clauses)).first()


def lock_ticket(db: Session, ticket_id: int) -> Ticket:
    """Re-read the ticket row with FOR UPDATE for a read-modify-write."""
    return (
        db.query(Ticket)
        .filter(Ticket.id == ticket_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def update_reason(
    old_status: str,
    new_status: Optional[str],
    old_priority: str,
    new_priority: Optional[str],
) -> Optional[str]:
    """First match wins: closed, then status changed, then priority changed."""
    if new_status == "closed" and old_status != "closed":
        return CLOSED_MESSAGE
    if new_status is not None and new_status != old_status:
        return STATUS_MESSAGE
    if new_priority is not None and new_priority != old_priority:
        return PRIORITY_MESSAGE
    return None


def set_status(ticket: Ticket, new_status: str, now: Optional[datetime] = None) -> bool:
    """
    Change status and keep the close/resolve timestamps consistent with it.

    close is stamped on entering closed and cleared on leaving it. resolve is
    stamped on entering resolved, kept when a resolved ticket closes, and
    cleared when the ticket becomes active again.
    """
    old_status = ticket.status
    if new_status == old_status:
        return False

    now = now or utcnow()
    ticket.status = new_status

    if new_status == "closed":
        ticket.close = now
    elif old_status == "closed":
        ticket.close = None

    if new_status == "resolved":
        ticket.resolve = now
    elif new_status in ACTIVE_STATUSES:
        ticket.resolve = None
    return True


def create_ticket(
    db: Session,
    *,
    subject: str,
    details: str,
    policy: LifecycleSettings,
    source: str,
    contact_id: Optional[int] = None,
    created_user_id: Optional[int] = None,
    priority: str = "low",
    status: str = "pending",
    assigned_to: Optional[int] = None,
    region_id: Optional[int] = None,
    auto_assign: bool = False,
    **fields: Any,
) -> Ticket:
    """
    Stage a new ticket with policy fields copied from the settings snapshot.

    With auto_assign and no explicit assignee, the least busy User-role member
    of region_id is picked; finding nobody leaves the ticket unassigned.
    """
    if assigned_to is None and auto_assign:
        assigned_to = pick_least_busy_user(db, region_id)

    ticket = Ticket(
        subject=subject,
        details=details,
        source=source,
        contact_id=contact_id,
        created_user_id=created_user_id,
        priority=priority,
        status=status,
        assigned_to=assigned_to,
        region_id=region_id,
        escalate_value=policy.escalate_value,
        escalate_unit=policy.escalate_unit,
        autoclose_value=policy.autoclose_value,
        autoclose_unit=policy.autoclose_unit,
        **fields,
    )
    if status == "closed":
        ticket.close = utcnow()
    elif status == "resolved":
        ticket.resolve = utcnow()

    db.add(ticket)
    db.flush()
    ticket.uid = str(UID_OFFSET + ticket.id)
    db.flush()
    return ticket


def apply_staff_update(
    ticket: Ticket,
    updates: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Tuple[Optional[str], bool]:
    """
    Apply a staff edit. Returns (update reason, assignee changed).

    The first staff update stamps response when it is still empty.
    """
    now = now or utcnow()
    updates = dict(updates)
    old_status = ticket.status
    old_priority = ticket.priority
    old_assignee = ticket.assigned_to

    new_status = updates.pop("status", None)
    for k, v in updates.items():
        setattr(ticket, k, v)
    if new_status is not None:
        set_status(ticket, new_status, now)

    if ticket.response is None:
        ticket.response = now

    reason = update_reason(old_status, new_status, old_priority, updates.get("priority"))
    assignee_changed = ticket.assigned_to is not None and ticket.assigned_to != old_assignee
    return reason, assignee_changed


def add_comment(
    db: Session,
    ticket: Ticket,
    *,
    author_id: Optional[int],
    details: str,
    staff: bool,
    now: Optional[datetime] = None,
) -> Tuple[Comment, bool]:
    """
    Append a comment, reopening closed/pending tickets.

    The ticket should come from lock_ticket so the status flip and the insert
    share one locked transaction. A reopen goes through set_status, so close
    and any stale resolve are cleared. On the staff surface it also sets
    response to the comment time. Returns (comment, reopened).
    """
    now = now or utcnow()
    comment = Comment(ticket_id=ticket.id, user_id=author_id, details=details, created_at=now)
    db.add(comment)

    reopened = ticket.status in REOPEN_STATUSES
    if reopened:
        set_status(ticket, "open", now)
        if staff:
            ticket.response = now
    elif staff and ticket.response is None:
        ticket.response = now

    db.flush()
    return comment, reopened


def close_ticket(ticket: Ticket, now: Optional[datetime] = None) -> Optional[str]:
    old_status = ticket.status
    set_status(ticket, "closed", now)
    return update_reason(old_status, "closed", ticket.priority, None)


def resolve_ticket(
    ticket: Ticket,
    resolution_details: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    old_status = ticket.status
    set_status(ticket, "resolved", now)
    if resolution_details is not None:
        ticket.resolution_details = resolution_details
    return update_reason(old_status, "resolved", ticket.priority, None)


def auto_close_resolved(
    db: Session,
    policy: LifecycleSettings,
    now: Optional[datetime] = None,
) -> List[Ticket]:
    """
    Close resolved tickets whose autoclose window has passed.

    The window captured on the ticket at creation wins; the current settings
    are the fallback. Tickets with no usable window are skipped.
    """
    now = now or utcnow()
    tickets = (
        db.query(Ticket)
        .filter(Ticket.status == "resolved")
        .filter(Ticket.resolve.isnot(None))
        .filter(Ticket.deleted_at.is_(None))
        .all()
    )

    closed = []
    for ticket in tickets:
        value = ticket.autoclose_value or policy.autoclose_value
        unit = ticket.autoclose_unit or policy.autoclose_unit
        if not value or not unit:
            logger.warning("Auto-close window not configured for ticket %s", ticket.uid)
            continue

        deadline = add_interval(ticket.resolve, value, unit)
        if deadline is None:
            logger.warning("Invalid autoclose unit %r on ticket %s", unit, ticket.uid)
            continue

        if now > deadline:
            set_status(ticket, "closed", now)
            closed.append(ticket)
            logger.info("Ticket %s auto-closed (resolved at %s)", ticket.uid, ensure_utc(ticket.resolve))

    logger.info("Auto-close complete, %s ticket(s) closed", len(closed))
    return closed


def escalate_overdue(db: Session, now: Optional[datetime] = None) -> List[Ticket]:
    """Mark assigned open/pending tickets past their escalation window."""
    now = now or utcnow()
    tickets = (
        db.query(Ticket)
        .filter(Ticket.status.in_(ESCALATION_STATUSES))
        .filter(Ticket.escalated_at.is_(None))
        .filter(Ticket.escalate_value.isnot(None))
        .filter(Ticket.escalate_unit.isnot(None))
        .filter(Ticket.assigned_to.isnot(None))
        .filter(Ticket.deleted_at.is_(None))
        .all()
    )

    escalated = []
    for ticket in tickets:
        deadline = add_interval(ticket.created_at, ticket.escalate_value, ticket.escalate_unit)
        if deadline is None:
            continue
        if now > deadline:
            ticket.escalated_at = now
            escalated.append(ticket)
            logger.info("Ticket %s exceeded escalation window", ticket.uid)
    return escalated
