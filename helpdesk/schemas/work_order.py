from pydantic import BaseModel, ConfigDict, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from helpdesk.models.work_order import WORK_ORDER_PRIORITIES, WorkOrderStatus


def _check_priority(v):
    if v is None:
        return v
    v = v.strip().lower()
    if v not in WORK_ORDER_PRIORITIES:
        raise ValueError(f"priority must be one of: {', '.join(WORK_ORDER_PRIORITIES)}")
    return v


class WorkOrderCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: str = "low"
    asset_id: Optional[int] = None
    assigned_to: Optional[int] = None

    @field_validator('title', mode='before')
    @classmethod
    def strip_title(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("title must not be empty")
        return v

    @field_validator('priority')
    @classmethod
    def check_priority(cls, v):
        return _check_priority(v)


class WorkOrderUpdate(BaseModel):
    """Field edits; status only moves through the status endpoints."""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[str] = None
    asset_id: Optional[int] = None
    assigned_to: Optional[int] = None

    @field_validator('title', 'priority', mode='before')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str) and not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('priority')
    @classmethod
    def check_priority(cls, v):
        return _check_priority(v)


class WorkOrderStatusChange(BaseModel):
    status: WorkOrderStatus


class WorkOrderBulkStatusChange(BaseModel):
    ids: List[int]
    status: WorkOrderStatus

    @field_validator('ids')
    @classmethod
    def not_empty(cls, v):
        if not v:
            raise ValueError("ids must not be empty")
        return v


class ExpenseCreate(BaseModel):
    description: str
    amount: Decimal

    @field_validator('amount')
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("amount must be zero or more")
        return v


class ExpenseUpdate(BaseModel):
    description: Optional[str] = None
    amount: Optional[Decimal] = None

    @field_validator('description', 'amount', mode='before')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator('amount')
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("amount must be zero or more")
        return v


class ExpenseOut(BaseModel):
    id: int
    work_order_id: int
    description: str
    amount: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkOrderOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    due_date: Optional[date]
    priority: str
    status: WorkOrderStatus
    asset_id: Optional[int]
    assigned_to: Optional[int]
    requested_by: Optional[int]
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    rejected_by: Optional[int]
    rejected_at: Optional[datetime]
    completed_by: Optional[int]
    completed_at: Optional[datetime]
    expenses: List[ExpenseOut] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
