from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from helpdesk.core.database import Base

# Role names used by the lifecycle rules
ROLE_CONTACT = "Contact"
ROLE_USER = "User"
ROLE_MANAGER = "Manager"
ROLE_ADMIN = "Admin"
ROLE_SUPER_ADMIN = "Super Admin"

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # staff are scoped to a region for auto-assignment; contacts may carry one too
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)
    region = relationship("Region")

    roles = relationship("Role", secondary=user_roles, lazy="selectin")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    @property
    def role_names(self):
        return [r.name for r in self.roles]

    def has_role(self, *names: str) -> bool:
        wanted = {n.lower() for n in names}
        return any(r.name.lower() in wanted for r in self.roles)
