import uuid
from sqlalchemy import Column, DateTime, Enum, Integer, String, Text, Uuid, func
from ...enum.import_enum import DuplicatePolicy, ImportJobStatus
from shared.core.column_types import JSONDocument
from shared.core.database import Base


class ImportJob(Base):
    __tablename__ = "import_jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # blob store reference
    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255))
    uploaded_by = Column(Uuid, nullable=False)
    mapping = Column(JSONDocument)
    duplicate_policy = Column(
        Enum(
            DuplicatePolicy,
            name="duplicate_policy_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    status = Column(
        Enum(
            ImportJobStatus,
            name="import_job_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ImportJobStatus.PENDING,
        nullable=False,
    )

    total_rows = Column(Integer, default=0, nullable=False)
    processed_rows = Column(Integer, default=0, nullable=False)
    progress_percent = Column(Integer, default=0, nullable=False)
    current_batch = Column(Integer, default=0, nullable=False)
    total_batches = Column(Integer, default=0, nullable=False)

    error_message = Column(Text)
    summary = Column(JSONDocument)
    # capped row log, newest entries kept
    rows = Column(JSONDocument)

    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())
