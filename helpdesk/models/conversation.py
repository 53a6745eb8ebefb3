from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from helpdesk.core.database import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    # follows the latest message, first 50 characters
    title = Column(String(50), nullable=False, default="Support Chat")

    contact_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    contact = relationship("User", foreign_keys=[contact_id])

    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)

    # staff member who greeted the contact
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.id",
        lazy="selectin",
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    conversation = relationship("Conversation", back_populates="messages")

    # exactly one of these is set: staff author or contact author
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    contact_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
