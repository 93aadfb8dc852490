import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import ComplianceError, NotFoundError
from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import UserToken
from shared.utils.spreadsheet_parser import is_empty_cell
from ..common.sequence_crud import generate_business_id, generate_registration_number, generate_tax_id
from ..system.audit_crud import record_audit
from ...enum.system_enum import AuditAction
from ...models.businesses.businesses import Business
from ...schemas.businesses.business_schemas import BusinessCreate

logger = logging.getLogger(__name__)

# Columns an import row or review snapshot may write
BUSINESS_FIELDS = (
    "business_name",
    "owner_name",
    "address",
    "contact_phone",
    "contact_email",
    "business_type",
    "tax_id",
    "registration_number",
    "district",
)

# Filled on merge when the existing business has no value
MERGE_FIELDS = (
    "owner_name",
    "address",
    "contact_phone",
    "contact_email",
    "district",
    "business_type",
    "tax_id",
)


def _clean(value: Any) -> Optional[str]:
    if is_empty_cell(value):
        return None
    return str(value).strip()


def get_business(db: Session, business_id: UUID) -> Business:
    business = db.query(Business).filter(Business.id == business_id).first()
    if not business:
        raise NotFoundError("Business not found")
    return business


def add_business(
    db: Session,
    data: Dict[str, Any],
    user_id: Optional[UUID] = None,
    on_date: Optional[date] = None,
) -> Business:
    """
    Stage a new business, generating its BIZ/TAX/REG identifiers.

    The caller owns the commit; the identifiers roll back with it.
    """
    values = {k: v for k, v in data.items() if k in Business.__table__.columns.keys()}
    for field in BUSINESS_FIELDS:
        if field in values:
            values[field] = _clean(values[field])

    if not values.get("business_name"):
        raise ComplianceError(
            "business_name is required", app_status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    business = Business(**values)
    business.business_id = generate_business_id(db, on_date)
    if not business.tax_id:
        business.tax_id = generate_tax_id(db, on_date)
    if not business.registration_number:
        business.registration_number = generate_registration_number(db, on_date)

    db.add(business)
    db.flush()

    record_audit(db, AuditAction.CREATE, "business", business.id, user_id, {
        "business_id": business.business_id,
        "business_name": business.business_name,
        "owner_name": business.owner_name,
        "contact_email": business.contact_email,
        "contact_phone": business.contact_phone,
    })
    return business


def update_business_fields(
    db: Session,
    business: Business,
    data: Dict[str, Any],
    user_id: Optional[UUID] = None,
    only_missing: bool = False,
    fields=BUSINESS_FIELDS,
) -> List[str]:
    """Copy non-empty values onto the business; returns the changed field names."""
    changed = []
    for field in fields:
        value = _clean(data.get(field))
        if value is None:
            continue
        if only_missing and not is_empty_cell(getattr(business, field)):
            continue
        if getattr(business, field) != value:
            setattr(business, field, value)
            changed.append(field)

    if changed:
        db.flush()
        record_audit(db, AuditAction.UPDATE, "business", business.id, user_id, {
            "fields": changed,
            **{f: getattr(business, f) for f in changed},
        })
    return changed


def create_business(db: Session, business: BusinessCreate, current_user: UserToken) -> Business:
    db_business = add_business(
        db, business.model_dump(exclude_none=True), current_user.user_id)
    db.commit()
    db.refresh(db_business)
    logger.info("Business %s created by %s",
                db_business.business_id, current_user.user_id)
    return db_business
