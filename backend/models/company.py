# models/company.py

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, func
from sqlalchemy.orm import relationship

from db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False, index=True)
    slug = Column(String, nullable=False, unique=True, index=True)
    logo_url = Column(Text)
    description = Column(Text, nullable=False)
    description_sv = Column(Text)
    categories = Column(JSON, nullable=False, default=list)
    services = Column(JSON, default=list)
    service_areas = Column(JSON, default=list)   # serviceområden
    specialties = Column(Text)
    location = Column(Text, nullable=False)
    region = Column(String, nullable=False, index=True)
    contact_email = Column(Text)
    phone = Column(Text)
    website = Column(Text)
    address = Column(Text)
    postal_code = Column(String)
    city = Column(String)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    identity_org_id = Column(String, unique=True)  # set once a claim is approved
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    claim_requests = relationship("ClaimRequest", back_populates="company", cascade="all, delete-orphan")
    quote_requests = relationship("QuoteRequest", back_populates="company", cascade="all, delete-orphan")
    company_users = relationship("CompanyUser", back_populates="company", cascade="all, delete-orphan")
