import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Index, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import relationship
from ...enum.case_enum import CaseResult, CaseStatus, CaseType, ResolutionPaperType
from shared.core.database import Base


class Case(Base):
    __tablename__ = "cases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # one case per check-in
    check_in_id = Column(Uuid, ForeignKey("check_ins.id"),
                         nullable=False, unique=True, index=True)
    case_type = Column(
        Enum(
            CaseType,
            name="case_type_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    # CASE-YYYYMMDD-NNNN
    case_number = Column(String(32), unique=True, nullable=False)
    description = Column(Text)
    violations = Column(Text)
    status = Column(
        Enum(
            CaseStatus,
            name="case_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CaseStatus.UNDER_ASSESSMENT,
        nullable=False,
    )
    result = Column(
        Enum(
            CaseResult,
            name="case_result_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    assigned_officer_id = Column(Uuid, index=True)
    deadline_date = Column(Date)
    comeback_date = Column(Date, index=True)
    comeback_notification_sent = Column(Boolean, default=False, nullable=False)
    fine_amount = Column(Numeric(12, 2), default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    check_in = relationship("CheckIn", back_populates="case")
    resolution_papers = relationship(
        "CaseResolutionPaper",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CaseResolutionPaper.uploaded_at",
    )

    __table_args__ = (
        Index("ix_case_status_comeback", "status", "comeback_date"),
        Index("ix_case_officer_status", "assigned_officer_id", "status"),
    )


class CaseResolutionPaper(Base):
    __tablename__ = "case_resolution_papers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    paper_type = Column(
        Enum(
            ResolutionPaperType,
            name="resolution_paper_type_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    file_url = Column(String(500), nullable=False)
    extracted_date = Column(Date)
    confirmed_date = Column(Date)
    officer_id = Column(Uuid, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=False,
                         default=lambda: datetime.now(timezone.utc))
    notes = Column(Text)

    case = relationship("Case", back_populates="resolution_papers")
