"""Support chat between contacts and staff."""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from helpdesk.models.conversation import Conversation, Message
from helpdesk.models.user import ROLE_ADMIN, ROLE_MANAGER, ROLE_SUPER_ADMIN, ROLE_USER, Role, User
from helpdesk.services.assignment import region_candidates
from helpdesk.utils.time import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Support Chat"
TITLE_LENGTH = 50
GREETING = (
    "Thank you for starting a chat with us. "
    "Our support team will review your request and respond shortly."
)
STAFF_ROLES = (ROLE_USER, ROLE_MANAGER, ROLE_ADMIN, ROLE_SUPER_ADMIN)


def pick_greeter(db: Session, region_id: Optional[int]) -> Optional[User]:
    """First User-role member of the region, else the first active staff member."""
    if region_id is not None:
        candidates = region_candidates(db, region_id)
        if candidates:
            return candidates[0]
    return (
        db.query(User)
        .join(User.roles)
        .filter(func.lower(Role.name).in_([r.lower() for r in STAFF_ROLES]))
        .filter(User.is_active.is_(True))
        .order_by(User.id.asc())
        .first()
    )


def post_message(
    db: Session,
    conversation: Conversation,
    text: str,
    *,
    user_id: Optional[int] = None,
    contact_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Message:
    """Append a message and retitle the conversation after it."""
    now = now or utcnow()
    message = Message(
        conversation_id=conversation.id,
        user_id=user_id,
        contact_id=contact_id,
        message=text,
        created_at=now,
    )
    db.add(message)
    conversation.title = text[:TITLE_LENGTH]
    conversation.updated_at = now
    db.flush()
    return message


def start_conversation(
    db: Session,
    contact: User,
    region_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[Conversation, Optional[Message]]:
    """
    Return the contact's conversation, opening one if they have none.

    A new conversation is greeted by a staff member of its region. The greeting
    is returned so the caller can broadcast it; it is None for a resumed chat.
    """
    existing = (
        db.query(Conversation)
        .filter(Conversation.contact_id == contact.id)
        .order_by(Conversation.id.asc())
        .first()
    )
    if existing is not None:
        return existing, None

    now = now or utcnow()
    region_id = region_id or contact.region_id
    greeter = pick_greeter(db, region_id)

    conversation = Conversation(
        title=DEFAULT_TITLE,
        contact_id=contact.id,
        region_id=region_id,
        assigned_to=greeter.id if greeter else None,
        created_at=now,
        updated_at=now,
    )
    db.add(conversation)
    db.flush()

    greeting = Message(
        conversation_id=conversation.id,
        user_id=greeter.id if greeter else None,
        message=GREETING,
        is_read=True,
        created_at=now,
    )
    db.add(greeting)
    db.flush()
    logger.info("Opened conversation %s for contact %s (region %s)", conversation.id, contact.id, region_id)
    return conversation, greeting


def staff_conversations(db: Session, user: User) -> Query:
    """Region-scoped User-role staff see their region; everyone else sees all."""
    query = db.query(Conversation)
    if user.has_role(ROLE_USER) and not user.has_role(ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_MANAGER) and user.region_id:
        query = query.filter(Conversation.region_id == user.region_id)
    return query


def unread_counts(db: Session, conversation_ids: List[int]) -> Dict[int, int]:
    """Map conversation id -> unread messages written by the contact."""
    if not conversation_ids:
        return {}
    rows = (
        db.query(Message.conversation_id, func.count(Message.id))
        .filter(Message.conversation_id.in_(conversation_ids))
        .filter(Message.contact_id.isnot(None))
        .filter(Message.is_read.is_(False))
        .group_by(Message.conversation_id)
        .all()
    )
    return {conversation_id: count for conversation_id, count in rows}


def mark_read(db: Session, conversation: Conversation) -> int:
    updated = (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .filter(Message.is_read.is_(False))
        .update({Message.is_read: True}, synchronize_session=False)
    )
    return updated
