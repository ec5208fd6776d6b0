import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from db.deps import get_db
from authentication.models import User
from authentication.schemas import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminOut,
    ChangePasswordRequest,
    CreateAdminRequest,
    CompanyLoginRequest,
    CompanyLoginResponse,
    CompanyPrincipalOut,
)
from authentication.security import (
    create_admin_token,
    create_company_token,
    hash_password,
    verify_password,
)
from authentication.deps import get_current_admin, get_current_company_user, require_super_admin
from authentication.repository import (
    get_user_by_username,
    create_user as create_user_record,
    list_users as list_user_records,
    delete_user as delete_user_record,
    update_user_password as update_user_password_record,
)
from models.company_user import CompanyUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["auth"])
company_router = APIRouter(prefix="/api/company", tags=["company-auth"])


# ==================================================
# ADMIN SESSION
# ==================================================
@router.post("/login", response_model=AdminLoginResponse)
def login(payload: AdminLoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_username(db, payload.username)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("Admin %s logged in", user.username)
    return {"admin": user, "token": create_admin_token(user)}


@router.get("/verify", response_model=AdminOut)
def verify(current_admin: User = Depends(get_current_admin)):
    return current_admin


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if not verify_password(payload.current_password, current_admin.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    update_user_password_record(db, current_admin, hash_password(payload.new_password))
    db.commit()
    logger.info("Admin %s changed password", current_admin.username)
    return {"message": "Password updated"}


# ==================================================
# ADMIN USER MANAGEMENT (super admin)
# ==================================================
@router.get("/users", response_model=list[AdminOut])
def list_users(
    search: str | None = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    _: Any = Depends(require_super_admin),
):
    return list_user_records(db, search=search, limit=limit)


@router.post("/users", response_model=AdminOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateAdminRequest,
    db: Session = Depends(get_db),
    _: Any = Depends(require_super_admin),
):
    user = create_user_record(
        db,
        username=payload.username,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
    db.commit()
    return user


@router.delete("/users/{username}")
def delete_user(
    username: str,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_super_admin),
):
    if username == current_admin.username:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    if get_user_by_username(db, username) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    delete_user_record(db, username)
    db.commit()
    return {"deleted": True, "username": username}


# ==================================================
# COMPANY PORTAL SESSION
# ==================================================
@company_router.post("/login", response_model=CompanyLoginResponse)
def company_login(payload: CompanyLoginRequest, db: Session = Depends(get_db)):
    email = str(payload.email).lower()
    company_user = db.query(CompanyUser).filter(CompanyUser.email == email).first()
    if company_user is None or not company_user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(payload.access_token, company_user.access_token_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("Company user %s logged in for company %s", email, company_user.company_id)
    return {"company_user": company_user, "token": create_company_token(company_user)}


@company_router.get("/verify", response_model=CompanyPrincipalOut)
def company_verify(company_user: CompanyUser = Depends(get_current_company_user)):
    return company_user
