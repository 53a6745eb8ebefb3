from sqlalchemy import Column, String, Text, Date, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from helpdesk.core.database import Base

TICKET_PRIORITIES = ("low", "medium", "high", "urgent")
TICKET_STATUSES = ("open", "pending", "resolved", "closed", "waiting_on_customer")

# uid = UID_OFFSET + id, assigned right after insert
UID_OFFSET = 100000


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String, nullable=True, unique=True, index=True)

    subject = Column(String, nullable=False)
    details = Column(Text, nullable=False)
    priority = Column(String, nullable=False, default="low")
    status = Column(String, nullable=False, default="pending", index=True)
    source = Column(String, nullable=True)  # web / portal / dashboard

    contact_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    contact = relationship("User", foreign_keys=[contact_id])
    created_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    assignee = relationship("User", foreign_keys=[assigned_to])

    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    type_id = Column(Integer, ForeignKey("ticket_types.id"), nullable=True, index=True)

    due = Column(Date, nullable=True)

    # lifecycle timestamps
    response = Column(DateTime(timezone=True), nullable=True)  # first staff response
    close = Column(DateTime(timezone=True), nullable=True)
    resolve = Column(DateTime(timezone=True), nullable=True)
    resolution_details = Column(Text, nullable=True)
    escalated_at = Column(DateTime(timezone=True), nullable=True)

    # policy copied from app settings at creation time
    escalate_value = Column(Integer, nullable=True)
    escalate_unit = Column(String, nullable=True)
    autoclose_value = Column(Integer, nullable=True)
    autoclose_unit = Column(String, nullable=True)

    comments = relationship(
        "Comment", back_populates="ticket", order_by="Comment.created_at", cascade="all, delete-orphan"
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)  # soft delete
