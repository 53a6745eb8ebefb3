from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.models.user import ROLE_CONTACT, Role, User


def get_or_create_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(func.lower(Role.name) == name.lower()).first()
    if role is None:
        role = Role(name=name)
        db.add(role)
        db.flush()
    return role


def set_roles(db: Session, user: User, names: Iterable[str]) -> List[Role]:
    """Replace the user's roles; unknown role names are created."""
    user.roles = [get_or_create_role(db, name.strip()) for name in names if name.strip()]
    return user.roles


def find_or_create_contact(db: Session, name: str, email: str, region_id: Optional[int] = None) -> Optional[User]:
    """
    Return the Contact-role user for email, creating one if nobody has it.

    Returns None when the email belongs to a non-contact account; callers must
    not file anything on a staff member's behalf.
    """
    contact = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if contact is None:
        contact = User(name=name, email=email, region_id=region_id)
        contact.roles.append(get_or_create_role(db, ROLE_CONTACT))
        db.add(contact)
        db.flush()
        return contact

    if not contact.has_role(ROLE_CONTACT):
        return None
    if region_id and not contact.region_id:
        contact.region_id = region_id
    return contact
