"""Least-busy-user-in-region ticket assignment."""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.models.ticket import Ticket
from helpdesk.models.user import ROLE_USER, Role, User

logger = logging.getLogger(__name__)


def region_candidates(db: Session, region_id: int):
    """Active users holding the User role in the region, in ascending id order."""
    return (
        db.query(User)
        .join(User.roles)
        .filter(func.lower(Role.name) == ROLE_USER.lower())
        .filter(User.region_id == region_id)
        .filter(User.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )


def open_ticket_counts(db: Session, user_ids):
    """Map user id -> number of assigned tickets that are not closed."""
    if not user_ids:
        return {}
    rows = (
        db.query(Ticket.assigned_to, func.count(Ticket.id))
        .filter(Ticket.assigned_to.in_(user_ids))
        .filter(Ticket.status != "closed")
        .filter(Ticket.deleted_at.is_(None))
        .group_by(Ticket.assigned_to)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def pick_least_busy_user(db: Session, region_id: Optional[int]) -> Optional[int]:
    """
    Return the id of the region's User-role member with the fewest open tickets.

    Ties go to the first candidate in listing order. Returns None when no region
    is given or the region has no candidates; that is a normal outcome.
    """
    if region_id is None:
        return None

    candidates = region_candidates(db, region_id)
    if not candidates:
        logger.info("No assignable users in region %s", region_id)
        return None

    counts = open_ticket_counts(db, [u.id for u in candidates])

    best_id = None
    best_count = None
    for user in candidates:
        count = counts.get(user.id, 0)
        if best_count is None or count < best_count:
            best_id, best_count = user.id, count

    logger.info("Region %s least busy user %s (%s open)", region_id, best_id, best_count)
    return best_id
