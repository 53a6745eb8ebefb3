from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from datetime import datetime
from typing import Optional

from helpdesk.schemas.lookup import LookupIn, LookupOut


class OrganizationIn(LookupIn):
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    region_id: Optional[int] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    @field_validator('country', mode='before')
    @classmethod
    def country_code(cls, v):
        if isinstance(v, str):
            v = v.strip().upper() or None
            if v and len(v) != 2:
                raise ValueError("country must be a two letter code")
        return v


class OrganizationOut(LookupOut):
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    region_id: Optional[int]
    country: Optional[str]
    postal_code: Optional[str]


class FaqIn(LookupIn):
    details: str
    status: bool = True
    language: str = "en"


class FaqOut(LookupOut):
    details: str
    status: bool
    language: str


class KnowledgeBaseIn(BaseModel):
    title: str
    details: str
    type_id: Optional[int] = None
    language: str = "en"

    @field_validator('title', 'details', mode='before')
    @classmethod
    def not_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be empty")
        return v


class KnowledgeBaseOut(BaseModel):
    id: int
    title: str
    details: str
    type_id: Optional[int]
    language: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
