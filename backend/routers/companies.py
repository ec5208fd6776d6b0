# routers/companies.py

import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from db.deps import get_db
from models.schemas import CompanyOut
from services.company_repository import (
    get_company_by_id,
    get_company_by_slug,
    list_categories,
    list_regions,
    list_service_areas,
    seed_companies,
)
from services.company_search import CompanyFilters, parse_categories, search_companies

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["companies"])


def _seed_enabled() -> bool:
    return os.getenv("ENABLE_SEED_ENDPOINT", "").strip().lower() in {"1", "true", "yes", "on"}


@router.get("/companies", response_model=list[CompanyOut])
def list_companies(
    search: str | None = Query(None),
    region: str | None = Query(None),
    categories: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    filters = CompanyFilters(
        search=search,
        region=region,
        categories=parse_categories(categories),
        limit=limit,
        offset=offset,
    )
    logger.info("Company search filters: %s", filters)
    companies = search_companies(db, filters)
    logger.info('Found %s companies for search: "%s"', len(companies), search or "")
    return companies


@router.get("/companies/{slug}", response_model=CompanyOut)
def company_by_slug(slug: str, db: Session = Depends(get_db)):
    company = get_company_by_slug(db, slug)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.get("/company-profile/{company_id}", response_model=CompanyOut)
def company_by_id(company_id: str, db: Session = Depends(get_db)):
    company = get_company_by_id(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


# --------------------------------------------------
# FACETS
# --------------------------------------------------
@router.get("/categories", response_model=list[str])
def categories(db: Session = Depends(get_db)):
    return list_categories(db)


@router.get("/regions", response_model=list[str])
def regions(db: Session = Depends(get_db)):
    return list_regions(db)


@router.get("/service-areas", response_model=list[str])
@router.get("/serviceområden", response_model=list[str], include_in_schema=False)
def service_areas(db: Session = Depends(get_db)):
    return list_service_areas(db)


# --------------------------------------------------
# DEVELOPMENT SEED
# --------------------------------------------------
@router.post("/seed-companies")
def seed(db: Session = Depends(get_db)):
    if not _seed_enabled():
        raise HTTPException(status_code=404, detail="Not found")

    created = seed_companies(db)
    return {
        "message": f"Seeded {len(created)} companies",
        "companies": [CompanyOut.model_validate(c).model_dump(by_alias=True, mode="json") for c in created],
    }
