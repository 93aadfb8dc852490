import re
from datetime import date, datetime, time, timezone
from decimal import Decimal
from numbers import Number
from typing import Any, Optional, Tuple
from uuid import UUID

from dateutil import parser as date_parser
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from shared.core.exceptions import NotFoundError
from shared.utils.spreadsheet_parser import is_empty_cell
from ..common.sequence_crud import generate_case_number
from ..system.audit_crud import record_audit
from ...enum.case_enum import CaseStatus, CaseType
from ...enum.system_enum import AuditAction
from ...models.businesses.businesses import Business
from ...models.businesses.check_ins import CheckIn
from ...models.cases.cases import Case
from ...schemas.cases.cases_schemas import CaseListRequest, CaseListResponse, CaseOut

IMPORTED_CHECK_IN_NOTE = "Imported"

DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
NON_NUMERIC = re.compile(r"[^0-9.]")


# ----- cell parsing -----

def classify_case_type(case_value: Any) -> Tuple[CaseType, str]:
    """Keyword classification of free case text: TCC, then EVC, else OTHER."""
    if is_empty_cell(case_value):
        return CaseType.OTHER, ""
    text = str(case_value).strip()
    upper = text.upper()
    if "TCC" in upper:
        return CaseType.TCC, text
    if "EVC" in upper:
        return CaseType.EVC, text
    return CaseType.OTHER, text


def parse_fine(raw: Any) -> Optional[float]:
    """Fine from a number or a string with currency noise; only positive amounts count."""
    if is_empty_cell(raw) or isinstance(raw, bool):
        return None
    try:
        if isinstance(raw, Number):
            value = float(raw)
        else:
            value = float(NON_NUMERIC.sub("", str(raw)))
    except ValueError:
        return None
    if value != value or value <= 0:
        return None
    return value


def parse_case_date(raw: Any) -> Optional[date]:
    if is_empty_cell(raw):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    text = str(raw).strip()
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        pass

    day_first = DAY_FIRST_PATTERN.match(text)
    if day_first:
        day, month, year = (int(part) for part in day_first.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


def has_case_signal(fine_raw: Any, case_raw: Any, case_date_raw: Any) -> bool:
    return not (is_empty_cell(fine_raw) and is_empty_cell(case_raw) and is_empty_cell(case_date_raw))


# ----- materialization -----

def open_case_for_business(
    db: Session,
    business: Business,
    officer_id: UUID,
    case_date: Optional[date] = None,
    fine: Optional[float] = None,
    case_text: Any = None,
    today: Optional[date] = None,
) -> Tuple[CheckIn, Case]:
    """
    Stage one CheckIn and exactly one Case under it.

    The check-in is dated on the case date when known, otherwise now. The case
    number is drawn from the creation date. The caller owns the commit.
    """
    today = today or date.today()
    if case_date:
        check_in_date = datetime.combine(case_date, time.min, tzinfo=timezone.utc)
    else:
        check_in_date = datetime.now(timezone.utc)

    amount = Decimal(str(fine)) if fine else Decimal("0")
    check_in = CheckIn(
        business_id=business.id,
        officer_id=officer_id,
        check_in_date=check_in_date,
        phone=business.contact_phone,
        fine=amount,
        notes=IMPORTED_CHECK_IN_NOTE,
    )
    db.add(check_in)
    db.flush()

    case_type, description = classify_case_type(case_text)
    case = Case(
        check_in_id=check_in.id,
        case_type=case_type,
        case_number=generate_case_number(db, today),
        description=description or None,
        status=CaseStatus.UNDER_ASSESSMENT,
        assigned_officer_id=officer_id,
        fine_amount=amount,
        comeback_notification_sent=False,
    )
    db.add(case)
    db.flush()

    record_audit(db, AuditAction.CREATE, "case", case.id, officer_id, {
        "case_number": case.case_number,
        "case_type": case_type.value,
        "business_id": str(business.id),
        "check_in_id": str(check_in.id),
    })
    return check_in, case


# ----- queries -----

def get_case(db: Session, case_id: UUID) -> Case:
    case = (
        db.query(Case)
        .options(selectinload(Case.resolution_papers))
        .filter(Case.id == case_id)
        .first()
    )
    if not case:
        raise NotFoundError("Case not found")
    return case


def get_cases(db: Session, params: CaseListRequest) -> CaseListResponse:
    filters = []

    if params.status:
        filters.append(Case.status == params.status)
    if params.case_type:
        filters.append(Case.case_type == params.case_type)
    if params.assigned_officer_id:
        filters.append(Case.assigned_officer_id == params.assigned_officer_id)
    if params.search:
        search_term = f"%{params.search.lower()}%"
        filters.append(
            or_(
                func.lower(Case.case_number).like(search_term),
                func.lower(Case.description).like(search_term),
            )
        )

    base_query = db.query(Case).filter(*filters)
    total = base_query.count()

    cases = (
        base_query
        .options(selectinload(Case.resolution_papers))
        .order_by(Case.created_at.desc(), Case.case_number.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return CaseListResponse(
        cases=[CaseOut.model_validate(c) for c in cases],
        total=total
    )
