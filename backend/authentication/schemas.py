from typing import Literal

from pydantic import EmailStr, Field

from models.schemas import ApiModel, CompanySummary


class AdminLoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminOut(ApiModel):
    id: str
    username: str
    role: str
    is_super_admin: bool


class AdminLoginResponse(ApiModel):
    admin: AdminOut
    token: str


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class CreateAdminRequest(ApiModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    role: Literal["admin", "super_admin"] = "admin"


class CompanyLoginRequest(ApiModel):
    email: EmailStr
    access_token: str = Field(..., min_length=1)


class CompanyPrincipalOut(ApiModel):
    id: str
    company_id: str
    email: str
    name: str
    role: str
    company: CompanySummary


class CompanyLoginResponse(ApiModel):
    company_user: CompanyPrincipalOut
    token: str
