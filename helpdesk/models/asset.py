from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from helpdesk.core.database import Base


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    asset_tag = Column(String, nullable=True, unique=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)

    work_orders = relationship("WorkOrder", back_populates="asset")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
