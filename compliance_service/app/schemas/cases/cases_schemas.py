from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from ...enum.case_enum import CaseResult, CaseStatus, CaseType, ResolutionPaperType


class CheckInOut(BaseModel):
    id: UUID
    business_id: UUID
    officer_id: UUID
    check_in_date: datetime
    fine: Optional[float] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class ResolutionPaperCreate(BaseModel):
    paper_type: ResolutionPaperType
    file_url: str = Field(min_length=1)
    extracted_date: Optional[date] = None
    confirmed_date: Optional[date] = None
    notes: Optional[str] = None


class ResolutionPaperOut(ResolutionPaperCreate):
    id: UUID
    officer_id: UUID
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class CaseOut(BaseModel):
    id: UUID
    check_in_id: UUID
    case_type: CaseType
    case_number: str
    description: Optional[str] = None
    violations: Optional[str] = None
    status: CaseStatus
    result: Optional[CaseResult] = None
    assigned_officer_id: Optional[UUID] = None
    deadline_date: Optional[date] = None
    comeback_date: Optional[date] = None
    comeback_notification_sent: bool = False
    fine_amount: Optional[float] = None
    resolution_papers: List[ResolutionPaperOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CaseListRequest(CommonQueryParams):
    status: Optional[CaseStatus] = None
    case_type: Optional[CaseType] = None
    assigned_officer_id: Optional[UUID] = None


class CaseListResponse(BaseModel):
    cases: List[CaseOut]
    total: int


# ---------------- Decisions ----------------
class GuiltyFineRequest(BaseModel):
    fine_amount: float = Field(ge=0)


class GuiltyComebackRequest(BaseModel):
    comeback_date: date
