import enum


class NotificationType(enum.Enum):
    COMEBACK_REMINDER = "comeback_reminder"
    CASE_UPDATE = "case_update"


class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
