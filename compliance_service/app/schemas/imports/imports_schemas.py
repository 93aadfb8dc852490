from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict

from ...enum.import_enum import DuplicatePolicy, ImportJobStatus, ImportRowStatus


# ---------------- Column Mapping ----------------
class ColumnMapping(BaseModel):
    """Canonical field -> original spreadsheet header. Unmapped fields stay None."""

    model_config = ConfigDict(extra="forbid")

    business_name: Optional[str] = None
    owner_name: Optional[str] = None
    tax_id: Optional[str] = None
    fined_amount: Optional[str] = None
    contact_phone: Optional[str] = None
    district: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    case_field: Optional[str] = None
    case_date: Optional[str] = None
    address: Optional[str] = None
    contact_email: Optional[str] = None


# ---------------- Summary / Row Log ----------------
class ImportSummary(BaseModel):
    total: int = 0
    created_businesses: int = 0
    updated_businesses: int = 0
    created_check_ins: int = 0
    created_cases: int = 0
    pending_reviews: int = 0
    skipped: int = 0
    failed: int = 0


class ImportRowLog(BaseModel):
    row_index: int
    status: ImportRowStatus
    message: Optional[str] = None
    business_id: Optional[str] = None
    check_in_id: Optional[str] = None
    case_id: Optional[str] = None
    review_id: Optional[str] = None
    skipped: bool = False


# ---------------- Requests ----------------
class ImportPreviewRequest(BaseModel):
    import_id: UUID


class ImportProcessRequest(BaseModel):
    import_id: UUID
    # omitted -> auto-detected from the file headers
    mapping: Optional[ColumnMapping] = None
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REVIEW


class ImportReprocessRequest(BaseModel):
    import_id: UUID


# ---------------- Responses ----------------
class ImportUploadOut(BaseModel):
    import_id: UUID
    filename: Optional[str] = None
    status: ImportJobStatus


class ImportPreviewOut(BaseModel):
    import_id: UUID
    headers: List[str]
    auto_mapping: ColumnMapping
    sample_rows: List[Dict[str, Any]]
    total_rows: int


class ImportProgressOut(BaseModel):
    import_id: UUID
    status: ImportJobStatus
    total_rows: int = 0
    processed_rows: int = 0
    progress_percent: int = 0
    current_batch: int = 0
    total_batches: int = 0
    summary: Optional[ImportSummary] = None
    error_message: Optional[str] = None


class ImportJobOut(BaseModel):
    id: UUID
    filename: str
    original_filename: Optional[str] = None
    uploaded_by: UUID
    mapping: Optional[ColumnMapping] = None
    duplicate_policy: Optional[DuplicatePolicy] = None
    status: ImportJobStatus
    total_rows: int = 0
    processed_rows: int = 0
    progress_percent: int = 0
    current_batch: int = 0
    total_batches: int = 0
    error_message: Optional[str] = None
    summary: Optional[ImportSummary] = None
    rows: Optional[List[ImportRowLog]] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
