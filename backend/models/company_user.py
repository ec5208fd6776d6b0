# models/company_user.py

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from db.base import Base


class CompanyUser(Base):
    __tablename__ = "company_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    role = Column(String, nullable=False, default="editor")  # editor / admin / owner
    access_token_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    is_active = Column(Boolean, nullable=False, default=True)

    company = relationship("Company", back_populates="company_users")
