# models/requests.py

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ClaimRequest(Base):
    __tablename__ = "claim_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    message = Column(Text, nullable=False)
    status = Column(
        Enum(ClaimStatus, name="claim_request_status"),
        nullable=False,
        default=ClaimStatus.pending,
        index=True,
    )
    submitted_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True))
    reviewed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    review_notes = Column(Text)

    company = relationship("Company", back_populates="claim_requests")


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    company_name = Column("company", Text)  # requester's own company
    service_type = Column(Text)
    message = Column(Text, nullable=False)
    urgency = Column(String)               # akut / inom_veckan / planerad
    preferred_contact = Column(String, default="email")  # email / phone / both
    submitted_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    company = relationship("Company", back_populates="quote_requests")


class GeneralQuoteRequest(Base):
    __tablename__ = "general_quote_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    description = Column(Text, nullable=False)
    service_type = Column(Text)
    urgency = Column(String)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    company_name = Column("company", Text)
    preferred_contact = Column(String, default="email")
    submitted_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
