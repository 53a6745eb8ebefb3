from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional


class LookupIn(BaseModel):
    name: str

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("name must not be empty")
        return v


class LookupOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryIn(LookupIn):
    parent_id: Optional[int] = None


class CategoryOut(LookupOut):
    parent_id: Optional[int]


class AssetIn(LookupIn):
    asset_tag: Optional[str] = None
    region_id: Optional[int] = None


class AssetOut(LookupOut):
    asset_tag: Optional[str]
    region_id: Optional[int]


class BulkDelete(BaseModel):
    ids: List[int]
