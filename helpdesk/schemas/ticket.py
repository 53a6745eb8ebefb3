from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from datetime import date, datetime
from typing import Optional

from helpdesk.models.ticket import TICKET_PRIORITIES, TICKET_STATUSES


def _check_priority(v):
    if v is None:
        return v
    v = v.strip().lower()
    if v not in TICKET_PRIORITIES:
        raise ValueError(f"priority must be one of: {', '.join(TICKET_PRIORITIES)}")
    return v


def _check_status(v):
    if v is None:
        return v
    v = v.strip().lower()
    if v not in TICKET_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(TICKET_STATUSES)}")
    return v


class TicketCreate(BaseModel):
    """Staff dashboard submission."""
    subject: str
    details: str
    contact_id: Optional[int] = None
    priority: str = "low"
    status: str = "pending"
    assigned_to: Optional[int] = None
    region_id: Optional[int] = None
    category_id: Optional[int] = None
    department_id: Optional[int] = None
    type_id: Optional[int] = None
    due: Optional[date] = None

    @field_validator('subject', 'details', mode='before')
    @classmethod
    def strip_required(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be empty")
        return v

    @field_validator('priority')
    @classmethod
    def check_priority(cls, v):
        return _check_priority(v)

    @field_validator('status')
    @classmethod
    def check_status(cls, v):
        return _check_status(v)


class ContactTicketCreate(BaseModel):
    """Contact portal submission; priority and status are always the defaults."""
    subject: str
    details: str
    region_id: Optional[int] = None
    category_id: Optional[int] = None
    department_id: Optional[int] = None
    type_id: Optional[int] = None

    @field_validator('subject', 'details', mode='before')
    @classmethod
    def strip_required(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be empty")
        return v


class PublicTicketCreate(ContactTicketCreate):
    """Unauthenticated web form; the contact is found or created by email."""
    name: str
    email: EmailStr


class TicketUpdate(BaseModel):
    subject: Optional[str] = None
    details: Optional[str] = None
    contact_id: Optional[int] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    assigned_to: Optional[int] = None
    region_id: Optional[int] = None
    category_id: Optional[int] = None
    department_id: Optional[int] = None
    type_id: Optional[int] = None
    due: Optional[date] = None
    resolution_details: Optional[str] = None

    @field_validator('subject', 'details', 'priority', 'status', mode='before')
    @classmethod
    def reject_null(cls, v):
        # these columns are NOT NULL; omit the key to leave them unchanged
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str) and not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('priority')
    @classmethod
    def check_priority(cls, v):
        return _check_priority(v)

    @field_validator('status')
    @classmethod
    def check_status(cls, v):
        return _check_status(v)


class TicketResolve(BaseModel):
    resolution_details: Optional[str] = None


class TicketOut(BaseModel):
    id: int
    uid: str
    subject: str
    details: str
    priority: str
    status: str
    source: Optional[str]
    contact_id: Optional[int]
    created_user_id: Optional[int]
    assigned_to: Optional[int]
    region_id: Optional[int]
    category_id: Optional[int]
    department_id: Optional[int]
    type_id: Optional[int]
    due: Optional[date]
    response: Optional[datetime]
    close: Optional[datetime]
    resolve: Optional[datetime]
    resolution_details: Optional[str]
    escalated_at: Optional[datetime]
    escalate_value: Optional[int]
    escalate_unit: Optional[str]
    autoclose_value: Optional[int]
    autoclose_unit: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
