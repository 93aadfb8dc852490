import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from shared.core.exceptions import ComplianceError, NotFoundError, ReviewConflictError
from ..businesses.businesses_crud import MERGE_FIELDS, add_business, get_business, update_business_fields
from ..cases.cases_crud import open_case_for_business
from ..system.audit_crud import record_audit
from ...enum.import_enum import ReviewDecision, ReviewStatus
from ...enum.system_enum import AuditAction
from ...models.businesses.businesses import Business
from ...models.imports.duplicate_reviews import DuplicateReview
from ...schemas.imports.duplicate_review_schemas import BulkDecisionItem, NewBusinessSnapshot

logger = logging.getLogger(__name__)

DECISION_STATUS = {
    ReviewDecision.KEEP: ReviewStatus.APPROVED,
    ReviewDecision.DELETE: ReviewStatus.REJECTED,
    ReviewDecision.MERGE: ReviewStatus.MERGED,
}


def list_reviews(
    db: Session,
    status: Optional[ReviewStatus] = ReviewStatus.PENDING,
    import_job_id: Optional[UUID] = None,
) -> List[DuplicateReview]:
    query = db.query(DuplicateReview).options(
        joinedload(DuplicateReview.existing_business))
    if status:
        query = query.filter(DuplicateReview.status == status)
    if import_job_id:
        query = query.filter(DuplicateReview.import_job_id == import_job_id)
    return query.order_by(DuplicateReview.created_at.desc()).all()


def get_review(db: Session, review_id: UUID) -> DuplicateReview:
    review = (
        db.query(DuplicateReview)
        .options(joinedload(DuplicateReview.existing_business))
        .filter(DuplicateReview.id == review_id)
        .first()
    )
    if not review:
        raise NotFoundError("Duplicate review not found")
    return review


def _claim_review(
    db: Session,
    review_id: UUID,
    decision: ReviewDecision,
    notes: Optional[str],
    user_id: UUID,
) -> DuplicateReview:
    # conditional update: only one decider can move a review out of pending
    claimed = (
        db.query(DuplicateReview)
        .filter(
            DuplicateReview.id == review_id,
            DuplicateReview.status == ReviewStatus.PENDING,
        )
        .update(
            {
                DuplicateReview.status: DECISION_STATUS[decision],
                DuplicateReview.decision: decision,
                DuplicateReview.reviewed_by: user_id,
                DuplicateReview.reviewed_at: datetime.now(timezone.utc),
                DuplicateReview.notes: notes,
            },
            synchronize_session=False,
        )
    )
    review = get_review(db, review_id)
    if not claimed:
        raise ReviewConflictError(
            f"Review already decided ({review.status.value})")
    db.refresh(review)
    return review


def _materialize(
    db: Session,
    review: DuplicateReview,
    decision: ReviewDecision,
    user_id: UUID,
    today: date,
) -> Optional[Business]:
    if decision == ReviewDecision.DELETE:
        return None

    snapshot = NewBusinessSnapshot.model_validate(review.new_business_data)
    data = snapshot.model_dump(exclude={"fined_amount", "case_field", "case_date"})

    if decision == ReviewDecision.KEEP:
        business = add_business(db, data, user_id, today)
    else:
        business = get_business(db, review.existing_business_id)
        update_business_fields(
            db, business, data, user_id, only_missing=True, fields=MERGE_FIELDS)

    if snapshot.fined_amount or snapshot.case_field or snapshot.case_date:
        open_case_for_business(
            db, business, user_id,
            case_date=snapshot.case_date,
            fine=snapshot.fined_amount,
            case_text=snapshot.case_field,
            today=today,
        )
    return business


def decide_review(
    db: Session,
    review_id: UUID,
    decision: ReviewDecision,
    notes: Optional[str],
    user_id: UUID,
    today: Optional[date] = None,
) -> Tuple[DuplicateReview, Optional[Business]]:
    """
    keep: new business from the snapshot. merge: fill gaps on the existing one.
    delete: discard. Case data in the snapshot opens a check-in and case on the
    resulting business. Non-pending reviews raise ReviewConflictError untouched.
    """
    decision = ReviewDecision(decision)
    review = _claim_review(db, review_id, decision, notes, user_id)
    business = _materialize(db, review, decision, user_id, today or date.today())

    record_audit(db, AuditAction.UPDATE, "duplicate_review", review.id, user_id, {
        "decision": decision.value,
        "status": review.status.value,
        "existing_business_id": str(review.existing_business_id),
        "business_id": str(business.id) if business else None,
        "notes": notes,
    })
    db.commit()
    db.refresh(review)
    if business is not None:
        db.refresh(business)

    logger.info("Duplicate review %s decided %s by %s",
                review_id, decision.value, user_id)
    return review, business


def bulk_decide(
    db: Session,
    review_ids: List[UUID],
    decision: ReviewDecision,
    notes: Optional[str],
    user_id: UUID,
    today: Optional[date] = None,
) -> List[BulkDecisionItem]:
    results = []
    for review_id in review_ids:
        try:
            _, business = decide_review(
                db, review_id, decision, notes, user_id, today)
            results.append(BulkDecisionItem(
                review_id=review_id,
                success=True,
                message="Decision applied",
                business_id=business.id if business else None,
            ))
        except ComplianceError as exc:
            db.rollback()
            results.append(BulkDecisionItem(
                review_id=review_id, success=False, message=exc.message))
        except Exception as exc:
            db.rollback()
            logger.exception("Bulk decision failed for review %s", review_id)
            results.append(BulkDecisionItem(
                review_id=review_id, success=False, message=str(exc)))
    return results
