"""Key/value application settings and the immutable snapshot lifecycle code reads."""
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from helpdesk.models.app_setting import AppSetting

# keys exposed through /settings and their defaults
DEFAULTS: Dict[str, Optional[str]] = {
    "escalate_value": None,
    "escalate_unit": None,
    "autoclose_value": None,
    "autoclose_unit": None,
    "date_format": "%Y-%m-%d",
}


class LifecycleSettings(BaseModel):
    """Policy values captured once per request."""
    model_config = ConfigDict(frozen=True)

    escalate_value: Optional[int] = None
    escalate_unit: Optional[str] = None
    autoclose_value: Optional[int] = None
    autoclose_unit: Optional[str] = None
    date_format: str = "%Y-%m-%d"


def get_setting(db: Session, name: str, default: Optional[str] = None) -> Optional[str]:
    row = db.query(AppSetting).filter(AppSetting.name == name).first()
    if row is None or row.value is None:
        return default
    return row.value


def set_setting(db: Session, name: str, value: Optional[str]) -> AppSetting:
    row = db.query(AppSetting).filter(AppSetting.name == name).first()
    if row is None:
        row = AppSetting(name=name, value=value)
        db.add(row)
    else:
        row.value = value
    return row


def all_settings(db: Session) -> Dict[str, Optional[str]]:
    values = dict(DEFAULTS)
    for row in db.query(AppSetting).filter(AppSetting.name.in_(list(DEFAULTS))).all():
        values[row.name] = row.value
    return values


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def load_lifecycle_settings(db: Session) -> LifecycleSettings:
    values = all_settings(db)
    return LifecycleSettings(
        escalate_value=_to_int(values["escalate_value"]),
        escalate_unit=values["escalate_unit"] or None,
        autoclose_value=_to_int(values["autoclose_value"]),
        autoclose_unit=values["autoclose_unit"] or None,
        date_format=values["date_format"] or DEFAULTS["date_format"],
    )
