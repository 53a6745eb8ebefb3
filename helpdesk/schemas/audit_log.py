from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

RiskLevel = Literal["low", "medium", "high"]


class AuditLogOut(BaseModel):
    """One recorded change to a ticket or work order."""
    id: int
    actor_id: str  # user id, or "system" for scheduled jobs
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str  # ticket uid or work order id
    source: Optional[str] = None
    status: Optional[str] = None
    due_at: Optional[datetime] = None
    region_id: Optional[int] = None
    risk_level: RiskLevel
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogStatsOut(BaseModel):
    total: int = 0
    today: int = 0
    high_risk: int = 0
    deletions: int = 0
    retention_days: int
