# routers/requests.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from db.deps import get_db
from models.schemas import (
    ClaimRequestCreate,
    ClaimRequestOut,
    GeneralQuoteRequestCreate,
    GeneralQuoteRequestOut,
    QuoteRequestCreate,
    QuoteRequestOut,
)
from services.company_repository import get_company_by_id
from services.request_service import (
    create_claim_request,
    create_general_quote_request,
    create_quote_request,
)

router = APIRouter(prefix="/api", tags=["requests"])


def _company_or_404(db: Session, company_id: str | None):
    company = get_company_by_id(db, company_id) if company_id else None
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.post("/quote-requests", response_model=QuoteRequestOut, status_code=status.HTTP_201_CREATED)
def submit_quote_request(payload: QuoteRequestCreate, db: Session = Depends(get_db)):
    company = _company_or_404(db, payload.company_id)
    return create_quote_request(db, company, payload)


@router.post(
    "/companies/{company_id}/claim",
    response_model=ClaimRequestOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_company_claim(company_id: str, payload: ClaimRequestCreate, db: Session = Depends(get_db)):
    company = _company_or_404(db, company_id)
    return create_claim_request(db, company, payload)


@router.post("/claim-requests", response_model=ClaimRequestOut, status_code=status.HTTP_201_CREATED)
def submit_claim_request(payload: ClaimRequestCreate, db: Session = Depends(get_db)):
    company = _company_or_404(db, payload.company_id)
    return create_claim_request(db, company, payload)


@router.post(
    "/general-quote-requests",
    response_model=GeneralQuoteRequestOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_general_quote_request(payload: GeneralQuoteRequestCreate, db: Session = Depends(get_db)):
    return create_general_quote_request(db, payload)
