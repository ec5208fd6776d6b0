from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models.requests import ClaimStatus

Urgency = Literal["akut", "inom_veckan", "planerad"]
PreferredContact = Literal["email", "phone", "both"]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _requester_company_field():
    # "company" on the wire is the requester's own company name, not the listing
    return Field(
        default=None,
        validation_alias=AliasChoices("company_name", "companyName", "company"),
        serialization_alias="company",
    )


# --------------------------------------------------
# COMPANIES
# --------------------------------------------------
class CompanySummary(ApiModel):
    id: str
    name: str
    slug: str


class CompanyOut(ApiModel):
    id: str
    name: str
    slug: str
    logo_url: str | None = None
    description: str
    description_sv: str | None = None
    categories: list[str] = Field(default_factory=list)
    services: list[str] | None = None
    service_areas: list[str] | None = None
    specialties: str | None = None
    location: str
    region: str
    contact_email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    is_featured: bool = False
    is_verified: bool = False
    created_at: datetime | None = None


class CompanyProfileUpdate(ApiModel):
    """Fields a claimed company may edit about itself."""

    name: str | None = Field(default=None, min_length=1)
    logo_url: str | None = None
    description: str | None = Field(default=None, min_length=1)
    description_sv: str | None = None
    categories: list[str] | None = None
    services: list[str] | None = None
    service_areas: list[str] | None = None
    specialties: str | None = None
    location: str | None = Field(default=None, min_length=1)
    region: str | None = Field(default=None, min_length=1)
    contact_email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None


class CompanyUpdate(CompanyProfileUpdate):
    slug: str | None = Field(default=None, min_length=1)
    is_featured: bool | None = None
    is_verified: bool | None = None


class CompanyCreate(ApiModel):
    name: str = Field(..., min_length=1)
    slug: str | None = None
    logo_url: str | None = None
    description: str = Field(..., min_length=1)
    description_sv: str | None = None
    categories: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)
    service_areas: list[str] = Field(default_factory=list)
    specialties: str | None = None
    location: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    contact_email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    is_featured: bool = False
    is_verified: bool = False


# --------------------------------------------------
# QUOTE REQUESTS
# --------------------------------------------------
class QuoteRequestCreate(ApiModel):
    company_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    company_name: str | None = _requester_company_field()
    service_type: str | None = None
    message: str = Field(..., min_length=1)
    urgency: Urgency | None = None
    preferred_contact: PreferredContact = "email"


class QuoteRequestOut(ApiModel):
    id: str
    company_id: str
    name: str
    email: str
    phone: str | None = None
    company_name: str | None = _requester_company_field()
    service_type: str | None = None
    message: str
    urgency: str | None = None
    preferred_contact: str | None = None
    submitted_at: datetime | None = None


class GeneralQuoteRequestCreate(ApiModel):
    description: str = Field(..., min_length=1)
    service_type: str | None = None
    urgency: Urgency | None = "planerad"
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    company_name: str | None = _requester_company_field()
    preferred_contact: PreferredContact = "email"


class GeneralQuoteRequestOut(ApiModel):
    id: str
    description: str
    service_type: str | None = None
    urgency: str | None = None
    name: str
    email: str
    phone: str | None = None
    company_name: str | None = _requester_company_field()
    preferred_contact: str | None = None
    submitted_at: datetime | None = None


# --------------------------------------------------
# CLAIM REQUESTS
# --------------------------------------------------
class ClaimRequestCreate(ApiModel):
    company_id: str | None = None
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    message: str = Field(..., min_length=1)


class ClaimRequestOut(ApiModel):
    id: str
    company_id: str
    name: str
    email: str
    phone: str | None = None
    message: str
    status: ClaimStatus
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    review_notes: str | None = None


class AdminClaimRequestOut(ClaimRequestOut):
    company: CompanySummary


class ClaimReviewRequest(ApiModel):
    notes: str | None = None


# --------------------------------------------------
# COMPANY USERS
# --------------------------------------------------
class CompanyUserOut(ApiModel):
    id: str
    company_id: str
    email: str
    name: str
    role: str
    is_active: bool
    created_at: datetime | None = None
    approved_by: str | None = None
    company: CompanySummary


class ClaimApprovalOut(ApiModel):
    claim_request: ClaimRequestOut
    company_user: CompanyUserOut
    access_token: str
    organization_id: str | None = None
    invitation_id: str | None = None


class AccessTokenResetOut(ApiModel):
    company_user: CompanyUserOut
    access_token: str


class DashboardStats(ApiModel):
    total_companies: int
    pending_claims: int
    approved_claims: int
    rejected_claims: int
    total_quote_requests: int
    total_company_users: int
