import logging
import re
from typing import Any

from sqlalchemy.orm import Session

from models.company import Company

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("categories", "services", "service_areas")
_REQUIRED_FIELDS = ("name", "description", "location", "region")


class SlugConflictError(Exception):
    def __init__(self, slug: str):
        super().__init__(f"Company slug already exists: {slug}")
        self.slug = slug


def generate_slug(name: str) -> str:
    slug = (name or "").lower()
    slug = re.sub(r"[åä]", "a", slug)
    slug = slug.replace("ö", "o")
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    return re.sub(r"\s+", "-", slug.strip())


def get_company_by_id(db: Session, company_id: str) -> Company | None:
    return db.query(Company).filter(Company.id == company_id).first()


def get_company_by_slug(db: Session, slug: str) -> Company | None:
    return db.query(Company).filter(Company.slug == slug).first()


def _slug_taken(db: Session, slug: str, exclude_id: str | None = None) -> bool:
    query = db.query(Company.id).filter(Company.slug == slug)
    if exclude_id is not None:
        query = query.filter(Company.id != exclude_id)
    return query.first() is not None


def create_company(db: Session, data: dict[str, Any]) -> Company:
    values = dict(data)
    slug = (values.get("slug") or "").strip() or generate_slug(values.get("name", ""))
    if not slug:
        raise ValueError("Cannot derive a slug from an empty company name")
    if _slug_taken(db, slug):
        raise SlugConflictError(slug)

    values["slug"] = slug
    for key in _LIST_FIELDS:
        if values.get(key) is None:
            values[key] = []

    company = Company(**values)
    db.add(company)
    db.flush()
    return company


def update_company(db: Session, company: Company, changes: dict[str, Any]) -> Company:
    if "slug" in changes:
        slug = (changes["slug"] or "").strip()
        if not slug:
            raise ValueError("Slug cannot be empty")
        if _slug_taken(db, slug, exclude_id=company.id):
            raise SlugConflictError(slug)
        changes = {**changes, "slug": slug}

    for key in _REQUIRED_FIELDS:
        if key in changes and not (changes[key] or "").strip():
            raise ValueError(f"{key} cannot be empty")

    for key, value in changes.items():
        if key in _LIST_FIELDS and value is None:
            value = []
        setattr(company, key, value)
    db.flush()
    return company


def delete_company(db: Session, company: Company) -> None:
    # claims, quotes and portal users go with it via the relationship cascades
    db.delete(company)
    db.flush()


# --------------------------------------------------
# FACETS
# --------------------------------------------------
def _flatten_sorted(rows) -> list[str]:
    values: set[str] = set()
    for (items,) in rows:
        for item in items or []:
            if isinstance(item, str) and item:
                values.add(item)
    return sorted(values)


def list_categories(db: Session) -> list[str]:
    return _flatten_sorted(db.query(Company.categories).all())


def list_service_areas(db: Session) -> list[str]:
    return _flatten_sorted(db.query(Company.service_areas).all())


def list_regions(db: Session) -> list[str]:
    rows = db.query(Company.region).distinct().all()
    return sorted({r for (r,) in rows if r})


# --------------------------------------------------
# SEED DATA (development)
# --------------------------------------------------
SEED_COMPANIES: list[dict[str, Any]] = [
    {
        "name": "Precision Tech AB",
        "slug": "precision-tech-ab",
        "description": "Specialiserade på CNC-bearbetning och precisionstillverkning av komplexa komponenter för industrin. Över 25 års erfarenhet inom området.",
        "categories": ["CNC-bearbetning", "Precisionsdelar"],
        "location": "Borås",
        "region": "Västra Götaland",
        "contact_email": "info@precisiontech.se",
        "phone": "033-123 45 67",
        "website": "www.precisiontech.se",
        "address": "Industrivägen 15",
        "postal_code": "503 32",
        "city": "Borås",
        "is_featured": True,
        "is_verified": True,
    },
    {
        "name": "HydroTech Solutions",
        "slug": "hydrotech-solutions",
        "description": "Ledande leverantör av hydrauliska system och komponenter. Erbjuder service, installation och underhåll av hydraulisk utrustning.",
        "categories": ["Hydraulik", "Service"],
        "location": "Göteborg",
        "region": "Västra Götaland",
        "contact_email": "info@hydrotech.se",
        "phone": "031-987 65 43",
        "website": "www.hydrotech.se",
        "address": "Hydraulikgatan 8",
        "postal_code": "411 32",
        "city": "Göteborg",
        "is_featured": False,
        "is_verified": True,
    },
    {
        "name": "AutoIndustri Nord",
        "slug": "autoindustri-nord",
        "description": "Automationslösningar och robotik för modern industri. Vi hjälper företag att optimera produktionsprocesser med avancerad teknik.",
        "categories": ["Automation", "Robotik"],
        "location": "Malmö",
        "region": "Skåne",
        "contact_email": "info@autoindustri.se",
        "phone": "040-555 12 34",
        "website": "www.autoindustri.se",
        "address": "Robotvägen 22",
        "postal_code": "211 45",
        "city": "Malmö",
        "is_featured": False,
        "is_verified": False,
    },
]


def seed_companies(db: Session) -> list[Company]:
    created = []
    for data in SEED_COMPANIES:
        try:
            created.append(create_company(db, data))
        except SlugConflictError:
            logger.info("Company %s already exists, skipping", data["name"])
    db.commit()
    return created
