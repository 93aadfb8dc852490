import enum
from enum import Enum


class ImportJobStatus(enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportRowStatus(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    PENDING_REVIEW = "pending_review"


class DuplicatePolicy(str, Enum):
    SKIP = "skip"
    UPDATE = "update"
    CREATE = "create"
    REVIEW = "review"


class MatchType(enum.Enum):
    TAX_ID = "tax_id"
    BOTH = "both"
    BUSINESS_NAME_ONLY = "business_name_only"


class ReviewStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MERGED = "merged"


class ReviewDecision(str, Enum):
    KEEP = "keep"
    DELETE = "delete"
    MERGE = "merge"
