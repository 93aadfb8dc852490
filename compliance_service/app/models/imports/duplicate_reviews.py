import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Text, Uuid, func
from sqlalchemy.orm import relationship
from ...enum.import_enum import MatchType, ReviewDecision, ReviewStatus
from shared.core.column_types import JSONDocument
from shared.core.database import Base


class DuplicateReview(Base):
    __tablename__ = "duplicate_reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    existing_business_id = Column(Uuid, ForeignKey("businesses.id"),
                                  nullable=False, index=True)
    # snapshot of the colliding row; never modified after insert
    new_business_data = Column(JSONDocument, nullable=False)
    match_type = Column(
        Enum(
            MatchType,
            name="match_type_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    status = Column(
        Enum(
            ReviewStatus,
            name="review_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ReviewStatus.PENDING,
        nullable=False,
    )
    decision = Column(
        Enum(
            ReviewDecision,
            name="review_decision_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    reviewed_by = Column(Uuid)
    reviewed_at = Column(DateTime(timezone=True))
    notes = Column(Text)
    import_job_id = Column(Uuid, ForeignKey("import_jobs.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    existing_business = relationship("Business")

    __table_args__ = (
        Index("ix_duplicate_review_status_job", "status", "import_job_id"),
    )
