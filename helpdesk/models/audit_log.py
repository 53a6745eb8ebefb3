from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from helpdesk.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(String, nullable=False, index=True)
    actor_email = Column(String, nullable=True, index=True)
    actor_role = Column(String, nullable=True)
    action = Column(String, nullable=False, index=True)  # created/updated/deleted/restored/status_changed
    entity_type = Column(String, nullable=False, index=True)  # ticket/work_order/comment
    entity_id = Column(String, nullable=False, index=True)
    source = Column(String, nullable=True, index=True)  # api/web/portal/system
    status = Column(String, nullable=True, index=True)
    due_at = Column(DateTime(timezone=True), nullable=True, index=True)
    region_id = Column(Integer, nullable=True, index=True)
    risk_level = Column(String, nullable=False, default="low", index=True)
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
