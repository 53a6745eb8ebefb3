from pydantic import BaseModel, ConfigDict, EmailStr
from datetime import datetime
from typing import List, Optional


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    region_id: Optional[int] = None
    roles: List[str] = []


class UserRolesUpdate(BaseModel):
    roles: List[str]


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    region_id: Optional[int]
    is_active: bool
    role_names: List[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
