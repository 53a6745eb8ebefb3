from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.api.deps import get_db
from helpdesk.core.auth import require_roles
from helpdesk.models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN, User
from helpdesk.schemas.setting import SettingsOut, SettingsUpdate
from helpdesk.services.settings_store import all_settings, set_setting

router = APIRouter(prefix="/settings", tags=["settings"])

admin_only = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN)


@router.get("", response_model=SettingsOut)
def get_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return SettingsOut(**all_settings(db))


@router.put("", response_model=SettingsOut)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    for name, value in payload.model_dump(exclude_unset=True).items():
        set_setting(db, name, None if value is None else str(value))
    db.commit()
    return SettingsOut(**all_settings(db))
