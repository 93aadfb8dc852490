from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from ...enum.import_enum import MatchType, ReviewDecision, ReviewStatus
from ..businesses.business_schemas import BusinessOut


class NewBusinessSnapshot(BaseModel):
    business_name: str
    owner_name: Optional[str] = None
    address: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    business_type: Optional[str] = None
    tax_id: Optional[str] = None
    district: Optional[str] = None
    fined_amount: Optional[float] = None
    case_field: Optional[str] = None
    case_date: Optional[date] = None


class DuplicateReviewFilter(BaseModel):
    status: ReviewStatus = ReviewStatus.PENDING
    import_job_id: Optional[UUID] = None


class DuplicateReviewOut(BaseModel):
    id: UUID
    existing_business_id: UUID
    existing_business: Optional[BusinessOut] = None
    new_business_data: NewBusinessSnapshot
    match_type: MatchType
    status: ReviewStatus
    decision: Optional[ReviewDecision] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None
    import_job_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReviewDecisionRequest(BaseModel):
    decision: ReviewDecision
    notes: Optional[str] = None


class BulkReviewDecisionRequest(BaseModel):
    review_ids: List[UUID] = Field(min_length=1)
    decision: ReviewDecision
    notes: Optional[str] = None


class ReviewDecisionOut(BaseModel):
    review: DuplicateReviewOut
    business: Optional[BusinessOut] = None
    message: str


class BulkDecisionItem(BaseModel):
    review_id: UUID
    success: bool
    message: str
    business_id: Optional[UUID] = None


class BulkDecisionOut(BaseModel):
    results: List[BulkDecisionItem]
    total: int
    successful: int
