from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from helpdesk.api.deps import get_db
from helpdesk.core.auth import get_current_user, require_roles
from helpdesk.models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN, Role, User
from helpdesk.schemas.user import UserCreate, UserOut, UserRolesUpdate
from helpdesk.services.references import check_references
from helpdesk.services.users import set_roles

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("", response_model=List[UserOut])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
    role: Optional[str] = Query(None),
    region_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    q = db.query(User)
    if role:
        q = q.join(User.roles).filter(Role.name == role)
    if region_id:
        q = q.filter(User.region_id == region_id)
    return q.order_by(User.id).offset(offset).limit(limit).all()


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    check_references(db, {"region_id": payload.region_id})

    user = User(name=payload.name, email=payload.email, region_id=payload.region_id)
    db.add(user)
    set_roles(db, user, payload.roles)
    db.commit()
    db.refresh(user)
    return user


@router.put("/{user_id}/roles", response_model=UserOut)
def update_roles(
    user_id: int,
    payload: UserRolesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    set_roles(db, user, payload.roles)
    db.commit()
    db.refresh(user)
    return user
