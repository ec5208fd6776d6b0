from dataclasses import dataclass, field

from sqlalchemy import String, and_, case, cast, or_
from sqlalchemy.orm import Session

from models.company import Company

ALL_REGIONS = "Alla regioner"
ALL_CATEGORIES = "Alla kategorier"

SEARCH_SYNONYMS: dict[str, list[str]] = {
    # service
    "service": ["underhåll", "reparation", "reparationer"],
    "underhåll": ["service", "maintenance", "skötsel"],
    "reparation": ["service", "repair", "lagning"],
    "reparationer": ["service", "repairs", "lagningar"],
    "reservdelar": ["delar", "komponenter", "ersättningsdelar"],
    "delar": ["reservdelar", "komponenter"],
    # equipment
    "maskiner": ["utrustning", "maskin", "equipment"],
    "maskin": ["maskiner", "utrustning", "equipment"],
    "utrustning": ["maskiner", "maskin", "equipment"],
    "cnc": ["cnc-bearbetning", "bearbetning"],
    "hydraulik": ["hydrauliksystem", "hydrauliska"],
    "pneumatik": ["pneumatiska", "tryckluft"],
    # locations, with and without diacritics
    "göteborg": ["göteborgs", "västra götaland", "goteborg", "goteborgs"],
    "goteborg": ["göteborg", "göteborgs", "västra götaland"],
    "stockholm": ["stockholms", "stockholms län"],
    "malmö": ["malmös", "skåne", "malmo"],
    "malmo": ["malmö", "malmös", "skåne"],
    "skåne": ["malmö", "skåne län", "skane"],
    "skane": ["skåne", "malmö", "skåne län"],
    "västra": ["västra götaland", "göteborg", "vastra"],
    "vastra": ["västra", "västra götaland", "göteborg"],
    "götaland": ["västra götaland", "göteborg", "gotaland"],
    "gotaland": ["götaland", "västra götaland", "göteborg"],
    "norrland": ["norrbotten", "västerbotten"],
    # industry
    "industri": ["industrial", "industriell"],
    "verkstad": ["verkstäder", "workshop"],
    "produktion": ["tillverkning", "manufacturing"],
    "automation": ["automatisering", "robot"],
    "svetsning": ["svets", "welding"],
    "lyftutrustning": ["lyft", "kran", "lyftar"],
}


@dataclass
class CompanyFilters:
    search: str | None = None
    region: str | None = None
    categories: list[str] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0


def synonyms_for(term: str) -> list[str]:
    return list(SEARCH_SYNONYMS.get(term.lower(), []))


def parse_categories(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [c.strip() for c in raw.split(",") if c.strip()]


def _categories_text():
    return cast(Company.categories, String)


def _looks_like_company_name(value: str) -> bool:
    return " " in value and len(value) > 10


def _term_condition(term: str):
    pattern = f"%{term}%"
    return or_(
        Company.name.ilike(pattern),
        Company.description.ilike(pattern),
        Company.description_sv.ilike(pattern),
        _categories_text().ilike(pattern),
        Company.city.ilike(pattern),
        Company.region.ilike(pattern),
    )


def build_search_condition(search: str):
    """
    A long multi-word query is treated as a company name. Anything else is
    split into terms; each term (or one of its synonyms) must hit one of the
    searchable columns.
    """
    value = search.strip()
    if _looks_like_company_name(value):
        return or_(Company.name.ilike(value), Company.name.ilike(f"%{value}%"))

    term_conditions = []
    for term in value.split():
        variants = [term, *synonyms_for(term)]
        term_conditions.append(or_(*[_term_condition(v) for v in variants]))
    return and_(*term_conditions)


def relevance_rank(search: str):
    value = search.strip()
    contains = f"%{value}%"
    return case(
        (Company.name.ilike(value), 1),
        (Company.name.ilike(f"{value}%"), 2),
        (Company.name.ilike(contains), 3),
        (_categories_text().ilike(contains), 4),
        (Company.description_sv.ilike(contains), 5),
        (Company.description.ilike(contains), 6),
        (Company.city.ilike(contains), 7),
        (Company.region.ilike(contains), 8),
        else_=9,
    )


def build_company_query(db: Session, filters: CompanyFilters):
    query = db.query(Company)
    conditions = []

    search = (filters.search or "").strip()
    if search:
        conditions.append(build_search_condition(search))

    if filters.region and filters.region != ALL_REGIONS:
        conditions.append(Company.region == filters.region)

    categories = [c for c in filters.categories if c]
    if categories and ALL_CATEGORIES not in categories:
        conditions.append(or_(*[_categories_text().ilike(f"%{c}%") for c in categories]))

    if conditions:
        query = query.filter(and_(*conditions))

    if search:
        query = query.order_by(Company.is_featured.desc(), relevance_rank(search), Company.name)
    else:
        query = query.order_by(Company.is_featured.desc(), Company.name)

    if filters.limit:
        query = query.limit(filters.limit)
    if filters.offset:
        query = query.offset(filters.offset)

    return query


def search_companies(db: Session, filters: CompanyFilters) -> list[Company]:
    return build_company_query(db, filters).all()
