# Import all models to ensure they are registered with SQLAlchemy
from .businesses.businesses import Business
from .businesses.check_ins import CheckIn
from .cases.cases import Case, CaseResolutionPaper
from .imports.import_jobs import ImportJob
from .imports.duplicate_reviews import DuplicateReview
from .system.notifications import Notification
from .system.audit_logs import AuditLog
from .system.sequence_counters import SequenceCounter
