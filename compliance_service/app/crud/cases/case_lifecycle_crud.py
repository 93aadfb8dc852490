import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import ComplianceError, InvalidCaseStateError
from shared.core.schemas import Lookup
from .cases_crud import get_case
from ..system.audit_crud import record_audit
from ...enum.case_enum import CaseDecision, CaseResult, CaseStatus
from ...enum.system_enum import AuditAction
from ...models.cases.cases import Case, CaseResolutionPaper
from ...schemas.cases.cases_schemas import ResolutionPaperCreate

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[CaseStatus, List[CaseStatus]] = {
    CaseStatus.UNDER_ASSESSMENT: [
        CaseStatus.NOT_GUILTY,
        CaseStatus.FINED,
        CaseStatus.PENDING_COMEBACK,
    ],
    CaseStatus.NOT_GUILTY: [CaseStatus.RESOLVED, CaseStatus.ESCALATED],
    CaseStatus.FINED: [CaseStatus.RESOLVED, CaseStatus.ESCALATED],
    CaseStatus.PENDING_COMEBACK: [CaseStatus.RESOLVED, CaseStatus.ESCALATED],
    CaseStatus.GUILTY: [CaseStatus.RESOLVED, CaseStatus.ESCALATED],
    CaseStatus.RESOLVED: [],
    CaseStatus.ESCALATED: [],
}

STATUS_LABELS = {
    CaseStatus.UNDER_ASSESSMENT: "Under Assessment",
    CaseStatus.NOT_GUILTY: "Not Guilty",
    CaseStatus.GUILTY: "Guilty",
    CaseStatus.FINED: "Fined",
    CaseStatus.PENDING_COMEBACK: "Pending Comeback",
    CaseStatus.RESOLVED: "Resolved",
    CaseStatus.ESCALATED: "Escalated",
}


def get_next_statuses(db: Session, case_id: UUID) -> List[Lookup]:
    case = get_case(db, case_id)
    return [
        Lookup(id=status.value, name=STATUS_LABELS[status])
        for status in ALLOWED_TRANSITIONS.get(case.status, [])
    ]


def _decide(
    db: Session,
    case_id: UUID,
    user_id: UUID,
    decision: CaseDecision,
    values: Dict[Any, Any],
    details: Dict[str, Any],
) -> Case:
    case = get_case(db, case_id)

    # guarded on the current status so a concurrent decision cannot land twice
    updated = (
        db.query(Case)
        .filter(Case.id == case_id, Case.status == CaseStatus.UNDER_ASSESSMENT)
        .update(values, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise InvalidCaseStateError(
            f"Case {case.case_number} is {case.status.value}; "
            f"only cases under assessment can be decided")

    record_audit(db, AuditAction.UPDATE, "case", case_id, user_id, {
        "decision": decision.value,
        **details,
    })
    db.commit()
    db.refresh(case)

    logger.info("Case %s decided %s by %s",
                case.case_number, decision.value, user_id)
    return case


def decide_not_guilty(db: Session, case_id: UUID, user_id: UUID) -> Case:
    return _decide(
        db, case_id, user_id, CaseDecision.NOT_GUILTY,
        {
            Case.status: CaseStatus.NOT_GUILTY,
            Case.result: CaseResult.PASS,
        },
        {"status": CaseStatus.NOT_GUILTY.value},
    )


def decide_guilty_fine(db: Session, case_id: UUID, fine_amount: float, user_id: UUID) -> Case:
    if fine_amount is None or fine_amount < 0:
        raise ComplianceError("Fine amount must be zero or greater")

    amount = Decimal(str(fine_amount))
    return _decide(
        db, case_id, user_id, CaseDecision.GUILTY_FINE,
        {
            Case.status: CaseStatus.FINED,
            Case.result: CaseResult.FAIL,
            Case.fine_amount: amount,
        },
        {"status": CaseStatus.FINED.value, "fine_amount": str(amount)},
    )


def decide_guilty_comeback(db: Session, case_id: UUID, comeback_date: date, user_id: UUID) -> Case:
    return _decide(
        db, case_id, user_id, CaseDecision.GUILTY_COMEBACK,
        {
            Case.status: CaseStatus.PENDING_COMEBACK,
            Case.result: CaseResult.FAIL,
            Case.comeback_date: comeback_date,
            # re-arms the comeback sweep
            Case.comeback_notification_sent: False,
        },
        {"status": CaseStatus.PENDING_COMEBACK.value,
         "comeback_date": comeback_date.isoformat()},
    )


def add_resolution_paper(
    db: Session,
    case_id: UUID,
    payload: ResolutionPaperCreate,
    user_id: UUID,
) -> CaseResolutionPaper:
    case = get_case(db, case_id)

    paper = CaseResolutionPaper(
        case_id=case.id,
        officer_id=user_id,
        **payload.model_dump(),
    )
    db.add(paper)
    db.flush()

    record_audit(db, AuditAction.CREATE, "case_resolution_paper", paper.id, user_id, {
        "case_id": str(case.id),
        "paper_type": payload.paper_type.value,
        "file_url": payload.file_url,
    })
    db.commit()
    db.refresh(paper)
    return paper
