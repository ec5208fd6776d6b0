import logging

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from authentication.deps import get_current_admin
from authentication.models import User
from db.deps import get_db
from models.requests import ClaimStatus
from models.schemas import (
    AccessTokenResetOut,
    AdminClaimRequestOut,
    ClaimApprovalOut,
    ClaimRequestOut,
    ClaimReviewRequest,
    CompanyCreate,
    CompanyOut,
    CompanyUpdate,
    CompanyUserOut,
    DashboardStats,
    GeneralQuoteRequestOut,
    QuoteRequestOut,
)
from services.claim_service import (
    ClaimAlreadyReviewedError,
    ClaimNotFoundError,
    CompanyUserConflictError,
    approve_claim,
    dashboard_stats,
    delete_company_user,
    get_company_user,
    list_claim_requests,
    list_company_users,
    reject_claim,
    reset_access_token,
)
from services.company_import import ImportFormatError, export_companies, import_companies, read_table
from services.company_repository import (
    SlugConflictError,
    create_company,
    delete_company,
    get_company_by_id,
    update_company,
)
from services.identity_provider import IdentityProviderClient, IdentityProviderError, get_identity_client
from services.request_service import list_general_quote_requests, list_quote_requests

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


def _review_notes(payload: ClaimReviewRequest | None) -> str | None:
    if payload is None or payload.notes is None:
        return None
    return payload.notes.strip() or None


# ==================================================
# DASHBOARD
# ==================================================
@router.get("/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db)):
    return dashboard_stats(db)


# ==================================================
# CLAIM REQUESTS
# ==================================================
@router.get("/claim-requests", response_model=list[AdminClaimRequestOut])
def claim_requests(
    status: ClaimStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    return list_claim_requests(db, status=status)


@router.post("/claim-requests/{claim_id}/approve", response_model=ClaimApprovalOut)
def approve_claim_request(
    claim_id: str,
    payload: ClaimReviewRequest | None = Body(None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    try:
        approval = approve_claim(db, claim_id, admin, identity=identity, notes=_review_notes(payload))
    except ClaimNotFoundError:
        raise HTTPException(status_code=404, detail="Claim request not found")
    except ClaimAlreadyReviewedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except CompanyUserConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except IdentityProviderError as exc:
        logger.error("Provisioning failed for claim %s: %s (codes=%s)", claim_id, exc.message, exc.codes)
        raise HTTPException(status_code=502, detail=f"Identity provider error: {exc.message}")

    return {
        "claim_request": approval.claim,
        "company_user": approval.company_user,
        "access_token": approval.access_token,
        "organization_id": approval.organization_id,
        "invitation_id": approval.invitation_id,
    }


@router.post("/claim-requests/{claim_id}/reject", response_model=ClaimRequestOut)
def reject_claim_request(
    claim_id: str,
    payload: ClaimReviewRequest | None = Body(None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    try:
        return reject_claim(db, claim_id, admin, notes=_review_notes(payload))
    except ClaimNotFoundError:
        raise HTTPException(status_code=404, detail="Claim request not found")
    except ClaimAlreadyReviewedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


# ==================================================
# COMPANY USERS
# ==================================================
@router.get("/company-users", response_model=list[CompanyUserOut])
def company_users(db: Session = Depends(get_db)):
    return list_company_users(db)


@router.delete("/company-users/{user_id}")
def remove_company_user(user_id: str, db: Session = Depends(get_db)):
    company_user = get_company_user(db, user_id)
    if company_user is None:
        raise HTTPException(status_code=404, detail="Company user not found")
    email = company_user.email
    delete_company_user(db, company_user)
    return {"deleted": True, "id": user_id, "email": email}


@router.post("/company-users/{user_id}/reset-token", response_model=AccessTokenResetOut)
def reset_company_user_token(user_id: str, db: Session = Depends(get_db)):
    company_user = get_company_user(db, user_id)
    if company_user is None:
        raise HTTPException(status_code=404, detail="Company user not found")
    access_token = reset_access_token(db, company_user)
    return {"company_user": company_user, "access_token": access_token}


# ==================================================
# SUBMISSIONS
# ==================================================
@router.get("/quote-requests", response_model=list[QuoteRequestOut])
def quote_requests(
    company_id: str | None = Query(None, alias="companyId"),
    limit: int = Query(200),
    db: Session = Depends(get_db),
):
    return list_quote_requests(db, company_id=company_id, limit=limit)


@router.get("/general-quote-requests", response_model=list[GeneralQuoteRequestOut])
def general_quote_requests(limit: int = Query(200), db: Session = Depends(get_db)):
    return list_general_quote_requests(db, limit=limit)


# ==================================================
# COMPANIES
# ==================================================
@router.post("/companies", response_model=CompanyOut, status_code=201)
def add_company(payload: CompanyCreate, db: Session = Depends(get_db)):
    try:
        company = create_company(db, payload.model_dump())
    except SlugConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    db.refresh(company)
    logger.info("Company %s created", company.slug)
    return company


@router.patch("/companies/{company_id}", response_model=CompanyOut)
def edit_company(company_id: str, payload: CompanyUpdate, db: Session = Depends(get_db)):
    company = get_company_by_id(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    try:
        update_company(db, company, payload.model_dump(exclude_unset=True))
    except SlugConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    db.refresh(company)
    return company


@router.delete("/companies/{company_id}")
def remove_company(company_id: str, db: Session = Depends(get_db)):
    company = get_company_by_id(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    slug = company.slug
    delete_company(db, company)
    db.commit()
    logger.info("Company %s deleted", slug)
    return {"deleted": True, "id": company_id, "slug": slug}


@router.post("/companies/import")
async def import_company_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file")

    try:
        df = read_table(file.filename or "", contents)
    except ImportFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    result = import_companies(db, df)
    return {
        "created": result.created,
        "updated": result.updated,
        "skipped": result.skipped,
        "errors": result.errors,
    }


@router.get("/companies/export")
def export_company_file(
    format: str = Query("csv"),
    db: Session = Depends(get_db),
):
    fmt = (format or "csv").strip().lower()
    if fmt not in {"csv", "json"}:
        raise HTTPException(status_code=400, detail="format must be csv or json")

    content, media_type, filename = export_companies(db, fmt)
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
