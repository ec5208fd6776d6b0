import logging

from sqlalchemy.orm import Session

from models.company import Company
from models.requests import ClaimRequest, GeneralQuoteRequest, QuoteRequest
from models.schemas import ClaimRequestCreate, GeneralQuoteRequestCreate, QuoteRequestCreate

logger = logging.getLogger(__name__)


def create_quote_request(db: Session, company: Company, payload: QuoteRequestCreate) -> QuoteRequest:
    quote = QuoteRequest(
        company_id=company.id,
        name=payload.name,
        email=str(payload.email),
        phone=payload.phone,
        company_name=payload.company_name,
        service_type=payload.service_type,
        message=payload.message,
        urgency=payload.urgency,
        preferred_contact=payload.preferred_contact,
    )
    db.add(quote)
    db.commit()
    db.refresh(quote)
    logger.info("Quote request %s submitted for %s", quote.id, company.name)
    return quote


def create_claim_request(db: Session, company: Company, payload: ClaimRequestCreate) -> ClaimRequest:
    claim = ClaimRequest(
        company_id=company.id,
        name=payload.name,
        email=str(payload.email).lower(),
        phone=payload.phone,
        message=payload.message,
    )
    db.add(claim)
    db.commit()
    db.refresh(claim)
    logger.info("Claim request %s submitted for %s by %s", claim.id, company.name, claim.email)
    return claim


def create_general_quote_request(db: Session, payload: GeneralQuoteRequestCreate) -> GeneralQuoteRequest:
    request = GeneralQuoteRequest(
        description=payload.description,
        service_type=payload.service_type,
        urgency=payload.urgency,
        name=payload.name,
        email=str(payload.email),
        phone=payload.phone,
        company_name=payload.company_name,
        preferred_contact=payload.preferred_contact,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("General quote request %s submitted (%s)", request.id, request.service_type or "unspecified")
    return request


def list_quote_requests(db: Session, company_id: str | None = None, limit: int = 200) -> list[QuoteRequest]:
    query = db.query(QuoteRequest)
    if company_id is not None:
        query = query.filter(QuoteRequest.company_id == company_id)
    return query.order_by(QuoteRequest.submitted_at.desc()).limit(max(1, min(limit, 1000))).all()


def list_general_quote_requests(db: Session, limit: int = 200) -> list[GeneralQuoteRequest]:
    return (
        db.query(GeneralQuoteRequest)
        .order_by(GeneralQuoteRequest.submitted_at.desc())
        .limit(max(1, min(limit, 1000)))
        .all()
    )


def list_claim_requests_for_company(db: Session, company_id: str) -> list[ClaimRequest]:
    return (
        db.query(ClaimRequest)
        .filter(ClaimRequest.company_id == company_id)
        .order_by(ClaimRequest.submitted_at.desc())
        .all()
    )
