import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import RowValidationError
from shared.utils.spreadsheet_parser import is_empty_cell
from ..businesses.businesses_crud import add_business, update_business_fields
from ..cases.cases_crud import has_case_signal, open_case_for_business, parse_case_date, parse_fine
from ...enum.import_enum import DuplicatePolicy, ImportRowStatus
from ...models.imports.duplicate_reviews import DuplicateReview
from ...schemas.imports.duplicate_review_schemas import NewBusinessSnapshot
from ...schemas.imports.imports_schemas import ColumnMapping, ImportRowLog, ImportSummary
from .duplicate_detector import DuplicateMatch, find_duplicate
from .header_mapper import HeaderIndex

logger = logging.getLogger(__name__)


@dataclass
class RowResult:
    status: ImportRowStatus
    message: Optional[str] = None
    business_id: Optional[UUID] = None
    check_in_id: Optional[UUID] = None
    case_id: Optional[UUID] = None
    review_id: Optional[UUID] = None
    skipped: bool = False

    def to_log(self, row_index: int) -> ImportRowLog:
        return ImportRowLog(
            row_index=row_index,
            status=self.status,
            message=self.message,
            business_id=str(self.business_id) if self.business_id else None,
            check_in_id=str(self.check_in_id) if self.check_in_id else None,
            case_id=str(self.case_id) if self.case_id else None,
            review_id=str(self.review_id) if self.review_id else None,
            skipped=self.skipped,
        )


def _text(value: Any) -> Optional[str]:
    if is_empty_cell(value):
        return None
    return str(value).strip()


def build_candidate(row: Sequence[Any], header_index: HeaderIndex, mapping: ColumnMapping) -> Dict[str, Any]:
    def cell(field: str) -> Optional[str]:
        return _text(header_index.field(row, mapping, field))

    owner_name = cell("owner_name")
    title = cell("title")
    if title and owner_name:
        owner_name = f"{title}: {owner_name}"
    elif title:
        owner_name = title

    district = cell("district")
    return {
        "business_name": cell("business_name") or "",
        "owner_name": owner_name,
        "address": cell("address") or district,
        "contact_phone": cell("contact_phone"),
        "contact_email": cell("contact_email"),
        "business_type": cell("department"),
        "tax_id": cell("tax_id"),
        "district": district,
    }


def _stage_review(
    db: Session,
    match: DuplicateMatch,
    candidate: Dict[str, Any],
    fine: Optional[float],
    case_text: Optional[str],
    case_date: Optional[date],
    import_job_id: Optional[UUID],
) -> DuplicateReview:
    snapshot = NewBusinessSnapshot(
        **candidate,
        fined_amount=fine,
        case_field=case_text,
        case_date=case_date,
    )
    review = DuplicateReview(
        existing_business_id=match.business.id,
        new_business_data=snapshot.model_dump(mode="json"),
        match_type=match.match_type,
        import_job_id=import_job_id,
    )
    db.add(review)
    db.flush()
    return review


def process_row(
    db: Session,
    row: Sequence[Any],
    header_index: HeaderIndex,
    mapping: ColumnMapping,
    policy: DuplicatePolicy,
    user_id: UUID,
    summary: ImportSummary,
    import_job_id: Optional[UUID] = None,
    today: Optional[date] = None,
) -> RowResult:
    """
    Turn one spreadsheet row into storage mutations and commit them.

    Raises RowValidationError for rows without a business name. Any exception
    leaves the session with uncommitted work for the caller to roll back, and
    the summary untouched.
    """
    today = today or date.today()
    candidate = build_candidate(row, header_index, mapping)
    if not candidate["business_name"]:
        raise RowValidationError("business_name is required")

    fine_raw = header_index.field(row, mapping, "fined_amount")
    case_raw = header_index.field(row, mapping, "case_field")
    case_date_raw = header_index.field(row, mapping, "case_date")

    match = find_duplicate(
        db, candidate["business_name"], candidate["owner_name"], candidate["tax_id"])

    created_business = updated_business = False
    if match is None:
        business = add_business(db, candidate, user_id, today)
        created_business = True
    elif policy == DuplicatePolicy.SKIP:
        summary.skipped += 1
        return RowResult(
            status=ImportRowStatus.PROCESSED,
            message="Skipped duplicate",
            business_id=match.business.id,
            skipped=True,
        )
    elif policy == DuplicatePolicy.UPDATE:
        business = match.business
        update_business_fields(db, business, candidate, user_id)
        updated_business = True
    elif policy == DuplicatePolicy.CREATE:
        business = add_business(db, candidate, user_id, today)
        created_business = True
    else:
        review = _stage_review(
            db, match, candidate,
            fine=parse_fine(fine_raw),
            case_text=_text(case_raw),
            case_date=parse_case_date(case_date_raw),
            import_job_id=import_job_id,
        )
        db.commit()
        summary.pending_reviews += 1
        return RowResult(
            status=ImportRowStatus.PENDING_REVIEW,
            message=f"Flagged for duplicate review ({match.match_type.value})",
            business_id=match.business.id,
            review_id=review.id,
        )

    check_in = case = None
    if has_case_signal(fine_raw, case_raw, case_date_raw):
        check_in, case = open_case_for_business(
            db, business, user_id,
            case_date=parse_case_date(case_date_raw),
            fine=parse_fine(fine_raw),
            case_text=case_raw,
            today=today,
        )

    db.commit()

    if created_business:
        summary.created_businesses += 1
    if updated_business:
        summary.updated_businesses += 1
    if case is not None:
        summary.created_check_ins += 1
        summary.created_cases += 1

    return RowResult(
        status=ImportRowStatus.PROCESSED,
        message="Updated existing business" if updated_business else None,
        business_id=business.id,
        check_in_id=check_in.id if check_in else None,
        case_id=case.id if case else None,
    )
