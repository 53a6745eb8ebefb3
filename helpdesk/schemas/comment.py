from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import Optional


class CommentCreate(BaseModel):
    comment: str

    @field_validator('comment', mode='before')
    @classmethod
    def not_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("comment must not be empty")
        return v


class CommentOut(BaseModel):
    id: int
    ticket_id: int
    user_id: Optional[int]
    details: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
