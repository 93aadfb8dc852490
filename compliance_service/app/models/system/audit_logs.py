import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Index, String, Uuid
from shared.core.column_types import JSONDocument
from shared.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String(32), nullable=False)
    entity = Column(String(64), nullable=False)
    entity_id = Column(String(64))
    user_id = Column(Uuid)
    details = Column(JSONDocument)
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_audit_entity_action", "entity", "action", "created_at"),
    )
