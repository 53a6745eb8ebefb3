from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
from helpdesk.core.database import Base


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)
    country = Column(String(2), nullable=True)
    postal_code = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Faq(Base):
    __tablename__ = "faqs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    details = Column(Text, nullable=False)
    status = Column(Boolean, nullable=False, default=True)
    language = Column(String(8), nullable=False, default="en")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class KnowledgeBaseArticle(Base):
    __tablename__ = "knowledge_base"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    type_id = Column(Integer, ForeignKey("ticket_types.id"), nullable=True, index=True)
    details = Column(Text, nullable=False)
    language = Column(String(8), nullable=False, default="en")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
