from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from datetime import datetime
from typing import List, Optional


class MessageCreate(BaseModel):
    message: str

    @field_validator('message', mode='before')
    @classmethod
    def not_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("message must not be empty")
        return v


class PublicMessageCreate(MessageCreate):
    conversation_id: int
    contact_id: int


class ChatStart(BaseModel):
    name: str
    email: EmailStr
    region_id: Optional[int] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("name must not be empty")
        return v


class MessageOut(BaseModel):
    id: int
    conversation_id: int
    user_id: Optional[int]
    contact_id: Optional[int]
    message: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationOut(BaseModel):
    id: int
    title: str
    contact_id: int
    region_id: Optional[int]
    assigned_to: Optional[int]
    created_at: datetime
    updated_at: datetime
    messages: List[MessageOut] = []

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    id: int
    title: str
    contact_id: int
    contact_name: str
    region_id: Optional[int]
    assigned_to: Optional[int]
    unread: int
    updated_at: datetime
