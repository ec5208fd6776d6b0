import json
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

import pandas as pd
from sqlalchemy.orm import Session

from models.company import Company
from services.company_repository import SlugConflictError, create_company, generate_slug, update_company

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "id",
    "name",
    "slug",
    "logo_url",
    "description",
    "description_sv",
    "categories",
    "services",
    "service_areas",
    "specialties",
    "location",
    "region",
    "contact_email",
    "phone",
    "website",
    "address",
    "postal_code",
    "city",
    "is_featured",
    "is_verified",
]
LIST_COLUMNS = {"categories", "services", "service_areas"}
BOOL_COLUMNS = {"is_featured", "is_verified"}
REQUIRED_COLUMNS = {"name", "description", "location", "region"}

# accepted spellings in uploaded sheets
COLUMN_ALIASES = {
    "serviceområden": "service_areas",
    "serviceomraden": "service_areas",
    "logourl": "logo_url",
    "contactemail": "contact_email",
    "email": "contact_email",
    "postalcode": "postal_code",
    "isfeatured": "is_featured",
    "isverified": "is_verified",
    "descriptionsv": "description_sv",
}


class ImportFormatError(ValueError):
    pass


@dataclass
class ImportResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


def _normalize_column(name: str) -> str:
    key = str(name).strip().lower().replace(" ", "_")
    return COLUMN_ALIASES.get(key.replace("_", ""), COLUMN_ALIASES.get(key, key))


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v).strip() for v in parsed if str(v).strip()]
    separator = ";" if ";" in text else ","
    return [part.strip() for part in text.split(separator) if part.strip()]


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "ja", "y"}


def read_table(filename: str, contents: bytes) -> pd.DataFrame:
    name = (filename or "").lower()
    buffer = BytesIO(contents)
    try:
        if name.endswith(".csv"):
            df = pd.read_csv(buffer, dtype=str)
        elif name.endswith(".xlsx"):
            df = pd.read_excel(buffer, dtype=str)
        else:
            raise ImportFormatError("Only .csv and .xlsx are supported")
    except ImportFormatError:
        raise
    except Exception as exc:
        raise ImportFormatError(f"Failed to parse file: {exc}") from exc

    df = df.rename(columns=_normalize_column)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ImportFormatError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.astype(object).where(pd.notnull(df), None)


def _row_values(row: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for column in EXPORT_COLUMNS:
        if column == "id" or column not in row:
            continue
        value = row[column]
        if column in LIST_COLUMNS:
            value = _split_list(value)
        elif column in BOOL_COLUMNS:
            value = _to_bool(value)
        elif value is not None:
            value = str(value).strip() or None
        values[column] = value
    return values


def import_companies(db: Session, df: pd.DataFrame) -> ImportResult:
    """Upsert companies by slug (derived from the name when the sheet has none)."""
    result = ImportResult()
    for index, row in enumerate(df.to_dict(orient="records"), start=2):
        values = _row_values(row)
        if not all(values.get(col) for col in REQUIRED_COLUMNS):
            result.skipped += 1
            result.errors.append({"row": index, "error": "missing required value"})
            continue

        slug = values.get("slug") or generate_slug(values["name"])
        values["slug"] = slug
        existing = db.query(Company).filter(Company.slug == slug).first()
        try:
            if existing is None:
                create_company(db, values)
                result.created += 1
            else:
                update_company(db, existing, values)
                result.updated += 1
        except (SlugConflictError, ValueError) as exc:
            result.skipped += 1
            result.errors.append({"row": index, "error": str(exc)})

    db.commit()
    logger.info(
        "Company import: created=%s updated=%s skipped=%s",
        result.created,
        result.updated,
        result.skipped,
    )
    return result


def export_companies(db: Session, fmt: str) -> tuple[bytes, str, str]:
    companies = db.query(Company).order_by(Company.name).all()
    records = [{col: getattr(c, col) for col in EXPORT_COLUMNS} for c in companies]

    if fmt == "json":
        content = json.dumps(records, ensure_ascii=False).encode("utf-8")
        return content, "application/json", "companies.json"

    df = pd.DataFrame(records, columns=EXPORT_COLUMNS)
    for column in LIST_COLUMNS:
        df[column] = df[column].apply(lambda items: ";".join(items or []))
    content = df.to_csv(index=False).encode("utf-8")
    return content, "text/csv", "companies.csv"
