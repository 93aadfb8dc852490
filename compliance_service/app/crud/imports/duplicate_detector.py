from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.utils.spreadsheet_parser import is_empty_cell
from ...enum.import_enum import MatchType
from ...models.businesses.businesses import Business


@dataclass
class DuplicateMatch:
    business: Business
    match_type: MatchType


def _text(value: Any) -> Optional[str]:
    if is_empty_cell(value):
        return None
    return str(value).strip()


def find_duplicate(
    db: Session,
    business_name: Any,
    owner_name: Any,
    tax_id: Any = None,
) -> Optional[DuplicateMatch]:
    """
    An exact tax_id hit wins. Otherwise name and owner must both match,
    trimmed and case-insensitive. A name-only hit is a different business.
    """
    tax_id = _text(tax_id)
    if tax_id:
        by_tax = (
            db.query(Business)
            .filter(Business.tax_id == tax_id)
            .order_by(Business.created_at)
            .first()
        )
        if by_tax:
            return DuplicateMatch(by_tax, MatchType.TAX_ID)

    business_name = _text(business_name)
    owner_name = _text(owner_name)
    if business_name and owner_name:
        match = (
            db.query(Business)
            .filter(
                func.lower(func.trim(Business.business_name)) == business_name.lower(),
                func.lower(func.trim(Business.owner_name)) == owner_name.lower(),
            )
            .order_by(Business.created_at)
            .first()
        )
        if match:
            return DuplicateMatch(match, MatchType.BOTH)

    return None
