import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from authentication.models import User
from authentication.security import generate_company_access_token, hash_password
from models.company import Company
from models.company_user import CompanyUser
from models.requests import ClaimRequest, ClaimStatus, QuoteRequest
from services.identity_provider import IdentityProviderClient

logger = logging.getLogger(__name__)


class ClaimNotFoundError(Exception):
    pass


class ClaimAlreadyReviewedError(Exception):
    def __init__(self, status: ClaimStatus):
        super().__init__(f"Claim request is already {status.value}")
        self.status = status


class CompanyUserConflictError(Exception):
    pass


@dataclass
class ClaimApproval:
    claim: ClaimRequest
    company_user: CompanyUser
    access_token: str
    organization_id: str | None = None
    invitation_id: str | None = None


def list_claim_requests(db: Session, status: ClaimStatus | None = None) -> list[ClaimRequest]:
    query = db.query(ClaimRequest).options(joinedload(ClaimRequest.company))
    if status is not None:
        query = query.filter(ClaimRequest.status == status)
    return query.order_by(ClaimRequest.submitted_at.desc()).all()


def dashboard_stats(db: Session) -> dict[str, int]:
    counts = dict(
        db.query(ClaimRequest.status, func.count(ClaimRequest.id))
        .group_by(ClaimRequest.status)
        .all()
    )
    return {
        "total_companies": db.query(func.count(Company.id)).scalar() or 0,
        "pending_claims": int(counts.get(ClaimStatus.pending, 0)),
        "approved_claims": int(counts.get(ClaimStatus.approved, 0)),
        "rejected_claims": int(counts.get(ClaimStatus.rejected, 0)),
        "total_quote_requests": db.query(func.count(QuoteRequest.id)).scalar() or 0,
        "total_company_users": db.query(func.count(CompanyUser.id)).scalar() or 0,
    }


def _load_pending_claim(db: Session, claim_id: str) -> ClaimRequest:
    claim = db.query(ClaimRequest).filter(ClaimRequest.id == claim_id).first()
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    if claim.status != ClaimStatus.pending:
        raise ClaimAlreadyReviewedError(claim.status)
    return claim


def _mark_reviewed(claim: ClaimRequest, status: ClaimStatus, reviewer: User, notes: str | None) -> None:
    claim.status = status
    claim.reviewed_at = datetime.now(timezone.utc)
    claim.reviewed_by = reviewer.id
    claim.review_notes = notes


def _upsert_company_user(
    db: Session,
    claim: ClaimRequest,
    reviewer: User,
    token_hash: str,
) -> CompanyUser:
    email = claim.email.lower()
    existing = db.query(CompanyUser).filter(CompanyUser.email == email).first()
    if existing is not None:
        if existing.company_id != claim.company_id:
            raise CompanyUserConflictError(
                f"{email} already manages another company"
            )
        existing.access_token_hash = token_hash
        existing.is_active = True
        existing.approved_by = reviewer.id
        return existing

    company_user = CompanyUser(
        company_id=claim.company_id,
        email=email,
        name=claim.name,
        role="owner",
        access_token_hash=token_hash,
        approved_by=reviewer.id,
        is_active=True,
    )
    db.add(company_user)
    return company_user


def approve_claim(
    db: Session,
    claim_id: str,
    reviewer: User,
    identity: IdentityProviderClient | None = None,
    notes: str | None = None,
) -> ClaimApproval:
    """
    Approve a pending claim: create (or reactivate) the claimant's portal
    account, mirror the company at the identity provider when one is
    configured, and mark the claim approved. Nothing is committed if any
    step fails.
    """
    company = None
    linked_org_id = None
    try:
        claim = _load_pending_claim(db, claim_id)
        company = claim.company
        linked_org_id = company.identity_org_id

        access_token = generate_company_access_token()
        company_user = _upsert_company_user(db, claim, reviewer, hash_password(access_token))
        db.flush()

        organization_id = None
        invitation_id = None
        if identity is not None and identity.is_configured():
            result = identity.provision_claim(company, company_user.email)
            organization_id = result.organization_id
            invitation_id = result.invitation_id

        company.is_verified = True
        _mark_reviewed(claim, ClaimStatus.approved, reviewer, notes)
        db.commit()
    except Exception:
        created_org_id = company.identity_org_id if company is not None else None
        db.rollback()
        if created_org_id and created_org_id != linked_org_id:
            # the organization exists at the provider but no company points to it any more
            logger.error(
                "Approval of claim %s rolled back, organization %s is left unlinked",
                claim_id,
                created_org_id,
            )
        raise

    db.refresh(claim)
    db.refresh(company_user)
    logger.info(
        "Claim %s approved by %s: company=%s user=%s org=%s",
        claim.id,
        reviewer.username,
        company.slug,
        company_user.email,
        organization_id,
    )
    return ClaimApproval(
        claim=claim,
        company_user=company_user,
        access_token=access_token,
        organization_id=organization_id,
        invitation_id=invitation_id,
    )


def reject_claim(db: Session, claim_id: str, reviewer: User, notes: str | None = None) -> ClaimRequest:
    claim = _load_pending_claim(db, claim_id)
    _mark_reviewed(claim, ClaimStatus.rejected, reviewer, notes)
    db.commit()
    db.refresh(claim)
    logger.info("Claim %s rejected by %s", claim.id, reviewer.username)
    return claim


# --------------------------------------------------
# COMPANY USERS
# --------------------------------------------------
def list_company_users(db: Session) -> list[CompanyUser]:
    return (
        db.query(CompanyUser)
        .options(joinedload(CompanyUser.company))
        .order_by(CompanyUser.created_at.desc(), CompanyUser.email)
        .all()
    )


def get_company_user(db: Session, user_id: str) -> CompanyUser | None:
    return db.query(CompanyUser).filter(CompanyUser.id == user_id).first()


def delete_company_user(db: Session, company_user: CompanyUser) -> None:
    db.delete(company_user)
    db.commit()
    logger.info("Deleted company user %s", company_user.email)


def reset_access_token(db: Session, company_user: CompanyUser) -> str:
    access_token = generate_company_access_token()
    company_user.access_token_hash = hash_password(access_token)
    db.commit()
    db.refresh(company_user)
    logger.info("Access token reset for company user %s", company_user.email)
    return access_token
