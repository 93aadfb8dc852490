import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, String, Uuid
from ...enum.system_enum import NotificationType
from shared.core.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=True, index=True)

    type = Column(
        Enum(
            NotificationType,
            name="notification_type_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    read = Column(Boolean, default=False)
    read_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notification_user_read", "user_id", "read", "created_at"),
    )
