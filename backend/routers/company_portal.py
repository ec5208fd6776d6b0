# routers/company_portal.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from authentication.deps import get_current_company_user
from db.deps import get_db
from models.company_user import CompanyUser
from models.schemas import ClaimRequestOut, CompanyOut, CompanyProfileUpdate, QuoteRequestOut
from services.company_repository import get_company_by_id, update_company
from services.request_service import list_claim_requests_for_company, list_quote_requests

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/company", tags=["company-portal"])


def _own_company(db: Session, company_user: CompanyUser):
    company = get_company_by_id(db, company_user.company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.get("/profile", response_model=CompanyOut)
def profile(
    db: Session = Depends(get_db),
    company_user: CompanyUser = Depends(get_current_company_user),
):
    return _own_company(db, company_user)


@router.put("/profile", response_model=CompanyOut)
def update_profile(
    payload: CompanyProfileUpdate,
    db: Session = Depends(get_db),
    company_user: CompanyUser = Depends(get_current_company_user),
):
    company = _own_company(db, company_user)
    changes = payload.model_dump(exclude_unset=True)
    try:
        update_company(db, company, changes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    db.refresh(company)
    logger.info("Company %s profile updated by %s (%s)", company.slug, company_user.email, ", ".join(sorted(changes)))
    return company


@router.get("/quote-requests", response_model=list[QuoteRequestOut])
def quote_requests(
    db: Session = Depends(get_db),
    company_user: CompanyUser = Depends(get_current_company_user),
):
    return list_quote_requests(db, company_id=company_user.company_id)


@router.get("/claim-requests", response_model=list[ClaimRequestOut])
def claim_requests(
    db: Session = Depends(get_db),
    company_user: CompanyUser = Depends(get_current_company_user),
):
    return list_claim_requests_for_company(db, company_user.company_id)
