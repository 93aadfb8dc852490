import enum


class CaseStatus(enum.Enum):
    UNDER_ASSESSMENT = "UnderAssessment"
    NOT_GUILTY = "NotGuilty"
    GUILTY = "Guilty"
    FINED = "Fined"
    PENDING_COMEBACK = "PendingComeback"
    RESOLVED = "Resolved"
    ESCALATED = "Escalated"


class CaseResult(enum.Enum):
    PASS = "Pass"
    FAIL = "Fail"
    NEEDS_REVIEW = "NeedsReview"


class CaseType(enum.Enum):
    TCC = "TCC"
    EVC = "EVC"
    OTHER = "OTHER"


class ResolutionPaperType(enum.Enum):
    FINE_PAID = "fine_paid"
    COMEBACK_DATE = "comeback_date"


class CaseDecision(str, enum.Enum):
    NOT_GUILTY = "not-guilty"
    GUILTY_FINE = "guilty-fine"
    GUILTY_COMEBACK = "guilty-comeback"
