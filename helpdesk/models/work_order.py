import enum

from sqlalchemy import Column, String, Text, Date, DateTime, Integer, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from helpdesk.core.database import Base

WORK_ORDER_PRIORITIES = ("low", "medium", "high")


class WorkOrderStatus(enum.IntEnum):
    PENDING = 0
    APPROVED = 1
    IN_PROGRESS = 2
    COMPLETED = 3
    REJECTED = 4


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    priority = Column(String, nullable=False, default="low")
    status = Column(Integer, nullable=False, default=int(WorkOrderStatus.PENDING), index=True)

    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=True, index=True)
    asset = relationship("Asset", back_populates="work_orders")
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # audit trail, never cleared by later transitions
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    expenses = relationship(
        "WorkOrderExpense", back_populates="work_order", cascade="all, delete-orphan", lazy="selectin"
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)


class WorkOrderExpense(Base):
    __tablename__ = "work_order_expenses"

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    work_order = relationship("WorkOrder", back_populates="expenses")

    description = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
