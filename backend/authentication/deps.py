from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError

from db.deps import get_db
from authentication.models import User
from authentication.security import ADMIN_SCOPE, COMPANY_SCOPE, decode_token
from authentication.identity_tokens import decode_provider_token, provider_tokens_enabled
from models.company import Company
from models.company_user import CompanyUser

security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return credentials.credentials


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = _bearer_token(credentials)
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    username = payload.get("sub")
    if not username or payload.get("scope") != ADMIN_SCOPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.username == username).first()
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return user


def require_super_admin(user: User = Depends(get_current_admin)) -> User:
    if not user.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    return user


def _company_user_from_local_token(db: Session, payload: dict) -> CompanyUser | None:
    if payload.get("scope") != COMPANY_SCOPE:
        return None
    email = payload.get("sub")
    company_id = payload.get("company_id")
    if not email or not company_id:
        return None
    return (
        db.query(CompanyUser)
        .filter(CompanyUser.email == email, CompanyUser.company_id == company_id)
        .first()
    )


def _company_user_from_provider_token(db: Session, token: str) -> CompanyUser | None:
    try:
        claims = decode_provider_token(token)
    except JWTError:
        return None

    org_id = claims.get("org_id")
    email = (claims.get("email") or "").lower()
    if not org_id or not email:
        return None

    return (
        db.query(CompanyUser)
        .join(Company, Company.id == CompanyUser.company_id)
        .filter(Company.identity_org_id == org_id, CompanyUser.email == email)
        .first()
    )


def get_current_company_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> CompanyUser:
    token = _bearer_token(credentials)

    company_user = None
    try:
        company_user = _company_user_from_local_token(db, decode_token(token))
    except JWTError:
        if provider_tokens_enabled():
            company_user = _company_user_from_provider_token(db, token)

    if company_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not company_user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return company_user
