from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.imports import duplicate_review_crud as crud
from ...schemas.businesses.business_schemas import BusinessOut
from ...schemas.imports.duplicate_review_schemas import (
    BulkDecisionOut,
    BulkReviewDecisionRequest,
    DuplicateReviewFilter,
    DuplicateReviewOut,
    ReviewDecisionOut,
    ReviewDecisionRequest,
)

router = APIRouter(prefix="/api/duplicate-reviews", tags=["duplicate-reviews"])


@router.get("/all")
def get_duplicate_reviews(
    params: DuplicateReviewFilter = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    reviews = crud.list_reviews(db, params.status, params.import_job_id)
    return success_response(
        data=[DuplicateReviewOut.model_validate(r) for r in reviews])


@router.post("/bulk-decide")
def bulk_decide_reviews(
    request: BulkReviewDecisionRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    results = crud.bulk_decide(
        db, request.review_ids, request.decision, request.notes, current_user.user_id)
    return success_response(
        data=BulkDecisionOut(
            results=results,
            total=len(results),
            successful=sum(1 for r in results if r.success),
        ),
        message="Bulk decision processed",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.get("/{review_id}")
def get_duplicate_review(
    review_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(
        data=DuplicateReviewOut.model_validate(crud.get_review(db, review_id)))


@router.post("/{review_id}/decide")
def decide_duplicate_review(
    review_id: UUID,
    request: ReviewDecisionRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    review, business = crud.decide_review(
        db, review_id, request.decision, request.notes, current_user.user_id)
    return success_response(
        data=ReviewDecisionOut(
            review=DuplicateReviewOut.model_validate(review),
            business=BusinessOut.model_validate(business) if business else None,
            message=f"Review {review.status.value}",
        ),
        message="Decision applied",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )
