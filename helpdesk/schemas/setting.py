from pydantic import BaseModel, field_validator
from typing import Optional

from helpdesk.utils.time import INTERVAL_UNITS


class SettingsOut(BaseModel):
    escalate_value: Optional[str] = None
    escalate_unit: Optional[str] = None
    autoclose_value: Optional[str] = None
    autoclose_unit: Optional[str] = None
    date_format: Optional[str] = None


class SettingsUpdate(BaseModel):
    escalate_value: Optional[int] = None
    escalate_unit: Optional[str] = None
    autoclose_value: Optional[int] = None
    autoclose_unit: Optional[str] = None
    date_format: Optional[str] = None

    @field_validator('escalate_unit', 'autoclose_unit')
    @classmethod
    def check_unit(cls, v):
        if v is not None and v not in INTERVAL_UNITS:
            raise ValueError(f"unit must be one of: {', '.join(INTERVAL_UNITS)}")
        return v

    @field_validator('escalate_value', 'autoclose_value')
    @classmethod
    def positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("value must be positive")
        return v
