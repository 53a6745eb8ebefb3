from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from helpdesk.api.deps import get_db
from helpdesk.core import broadcast
from helpdesk.core.auth import get_current_user
from helpdesk.models.content import Faq
from helpdesk.models.conversation import Conversation, Message
from helpdesk.models.user import User
from helpdesk.schemas.chat import (
    ChatStart,
    ConversationOut,
    ConversationSummary,
    MessageCreate,
    MessageOut,
    PublicMessageCreate,
)
from helpdesk.schemas.content import FaqOut
from helpdesk.services import chat
from helpdesk.services.references import check_references
from helpdesk.services.users import find_or_create_contact
from helpdesk.services.visibility import is_staff

router = APIRouter(prefix="/chat", tags=["chat"])


def _require_staff(user: User) -> None:
    if not is_staff(user):
        raise HTTPException(status_code=403, detail="Staff only")


def _contact_conversation(db: Session, conversation_id: int, contact_id: int) -> Conversation:
    conversation = (
        db.query(Conversation)
        .filter(Conversation.id == conversation_id)
        .filter(Conversation.contact_id == contact_id)
        .first()
    )
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


def _staff_conversation(db: Session, user: User, conversation_id: int) -> Conversation:
    conversation = chat.staff_conversations(db, user).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


def notify_message(conversation: Conversation, message: Message) -> None:
    broadcast.publish(
        broadcast.conversation_channel(conversation.id),
        "new-message",
        {
            "conversation_id": conversation.id,
            "title": conversation.title,
            "message": {
                "id": message.id,
                "message": message.message,
                "user_id": message.user_id,
                "contact_id": message.contact_id,
                "created_at": message.created_at.isoformat(),
            },
        },
    )


# --- Public chat widget ---

@router.post("/start", response_model=ConversationOut)
def start_chat(payload: ChatStart, db: Session = Depends(get_db)):
    """
    Guest entry point. Finds or creates the contact by email and resumes their
    conversation, or opens a new one greeted by a staff member of the region.
    """
    check_references(db, {"region_id": payload.region_id})

    contact = find_or_create_contact(db, payload.name, payload.email, payload.region_id)
    if contact is None:
        raise HTTPException(status_code=409, detail="Email belongs to a staff account; sign in to chat")

    conversation, greeting = chat.start_conversation(db, contact, payload.region_id)
    db.commit()
    db.refresh(conversation)

    if greeting is not None:
        notify_message(conversation, greeting)
    return conversation


@router.get("/public/conversations/{conversation_id}", response_model=ConversationOut)
def get_public_conversation(
    conversation_id: int,
    contact_id: int = Query(...),
    db: Session = Depends(get_db),
):
    return _contact_conversation(db, conversation_id, contact_id)


@router.post("/public/messages", response_model=MessageOut, status_code=201)
def send_public_message(payload: PublicMessageCreate, db: Session = Depends(get_db)):
    conversation = _contact_conversation(db, payload.conversation_id, payload.contact_id)

    message = chat.post_message(db, conversation, payload.message, contact_id=payload.contact_id)
    db.commit()
    db.refresh(message)
    db.refresh(conversation)

    notify_message(conversation, message)
    broadcast.publish(
        broadcast.CHAT_NOTIFICATIONS_CHANNEL,
        "new-unread-message",
        {"conversation_id": conversation.id, "message_id": message.id, "region_id": conversation.region_id},
    )
    return message


@router.get("/faqs", response_model=List[FaqOut])
def list_public_faqs(
    db: Session = Depends(get_db),
    language: Optional[str] = Query(None),
):
    query = db.query(Faq).filter(Faq.status.is_(True))
    if language:
        query = query.filter(Faq.language == language)
    return query.order_by(Faq.id.asc()).all()


# --- Staff inbox ---

@router.get("/conversations", response_model=List[ConversationSummary])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    q: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    _require_staff(current_user)

    query = chat.staff_conversations(db, current_user).join(User, User.id == Conversation.contact_id)
    if q:
        like = f"%{q}%"
        query = query.filter(
            Conversation.title.ilike(like) | User.name.ilike(like) | User.email.ilike(like)
        )

    rows = (
        query.add_columns(User.name)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    unread = chat.unread_counts(db, [c.id for c, _ in rows])

    return [
        ConversationSummary(
            id=c.id,
            title=c.title,
            contact_id=c.contact_id,
            contact_name=contact_name,
            region_id=c.region_id,
            assigned_to=c.assigned_to,
            unread=unread.get(c.id, 0),
            updated_at=c.updated_at,
        )
        for c, contact_name in rows
    ]


@router.get("/conversations/{conversation_id}", response_model=ConversationOut)
def get_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Opening a conversation marks its messages read."""
    _require_staff(current_user)
    conversation = _staff_conversation(db, current_user, conversation_id)

    chat.mark_read(db, conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


@router.post("/conversations/{conversation_id}/messages", response_model=MessageOut, status_code=201)
def reply(
    conversation_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    conversation = _staff_conversation(db, current_user, conversation_id)

    message = chat.post_message(db, conversation, payload.message, user_id=current_user.id)
    message.is_read = True
    db.commit()
    db.refresh(message)
    db.refresh(conversation)

    notify_message(conversation, message)
    return message


@router.delete("/conversations/{conversation_id}")
def delete_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_staff(current_user)
    db.delete(_staff_conversation(db, current_user, conversation_id))
    db.commit()
    return {"ok": True}
