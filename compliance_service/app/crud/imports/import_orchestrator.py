import asyncio
import logging
import math
import os
import tempfile
from collections import deque
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.config import Settings
from shared.core.exceptions import (
    ComplianceError,
    ImportInProgressError,
    ImportValidationError,
    NotFoundError,
    RowValidationError,
)
from shared.utils.blob_store import BlobStore
from shared.utils.spreadsheet_parser import parse_spreadsheet, split_table
from shared.utils.task_runner import TaskRunner
from ...enum.import_enum import DuplicatePolicy, ImportJobStatus, ImportRowStatus
from ...enum.system_enum import AuditAction
from ...models.imports.import_jobs import ImportJob
from ...schemas.imports.imports_schemas import (
    ColumnMapping,
    ImportJobOut,
    ImportPreviewOut,
    ImportProgressOut,
    ImportSummary,
)
from ..system.audit_crud import record_audit
from .header_mapper import HeaderIndex, detect_mapping
from .row_processor import RowResult, process_row

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".xlsx", ".xls", ".csv"}
# spreadsheet row 1 is the header row
FIRST_DATA_ROW = 2


def _preview_cell(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class ImportOrchestrator:
    """
    Drives an ImportJob from upload to a completed or failed summary.

    Processing runs detached on the injected TaskRunner with its own session;
    the persisted job row is the only channel back to callers.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        blob_store: BlobStore,
        task_runner: TaskRunner,
        settings: Settings,
        clock: Callable[[], date] = date.today,
    ):
        self.session_factory = session_factory
        self.blob_store = blob_store
        self.task_runner = task_runner
        self.settings = settings
        self.clock = clock

    # ----- job lookup -----

    def get_job(self, db: Session, import_id: UUID) -> ImportJob:
        job = db.query(ImportJob).filter(ImportJob.id == import_id).first()
        if not job:
            raise NotFoundError("Import job not found")
        return job

    def get_progress(self, db: Session, import_id: UUID) -> ImportProgressOut:
        job = self.get_job(db, import_id)
        return ImportProgressOut(
            import_id=job.id,
            status=job.status,
            total_rows=job.total_rows or 0,
            processed_rows=job.processed_rows or 0,
            progress_percent=job.progress_percent or 0,
            current_batch=job.current_batch or 0,
            total_batches=job.total_batches or 0,
            summary=job.summary,
            error_message=job.error_message,
        )

    def get_report(self, db: Session, import_id: UUID) -> ImportJobOut:
        return ImportJobOut.model_validate(self.get_job(db, import_id))

    # ----- upload / preview -----

    async def upload(self, db: Session, filename: str, content: bytes, user_id: UUID) -> ImportJob:
        suffix = Path(filename or "").suffix.lower()
        if suffix not in ALLOWED_EXTENSIONS:
            raise ImportValidationError(
                "Unsupported file type. Please upload an .xlsx, .xls or .csv file.")
        if not content:
            raise ImportValidationError("Uploaded file is empty")

        file_ref = await self.blob_store.save(filename, content)
        job = ImportJob(
            filename=file_ref,
            original_filename=filename,
            uploaded_by=user_id,
            status=ImportJobStatus.PENDING,
        )
        db.add(job)
        db.commit()
        db.refresh(job)
        logger.info("Import %s uploaded by %s (%s)", job.id, user_id, filename)
        return job

    @asynccontextmanager
    async def _local_copy(self, file_ref: str):
        """Download the blob to a temp file that is removed on every exit path."""
        content = await self.blob_store.download(file_ref)
        temp_dir = self.settings.IMPORT_TEMP_DIR
        if temp_dir:
            os.makedirs(temp_dir, exist_ok=True)
        fd, path = tempfile.mkstemp(
            prefix="import-", suffix=Path(file_ref).suffix.lower(), dir=temp_dir)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            yield path
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    async def _load_table(self, file_ref: str) -> Tuple[List[str], List[List[Any]]]:
        async with self._local_copy(file_ref) as path:
            rows = await asyncio.to_thread(parse_spreadsheet, path)
        return split_table(rows)

    async def preview(self, db: Session, import_id: UUID) -> ImportPreviewOut:
        job = self.get_job(db, import_id)
        headers, data_rows = await self._load_table(job.filename)
        header_index = HeaderIndex(headers)

        sample_rows = [
            {k: _preview_cell(v) for k, v in header_index.as_dict(row).items()}
            for row in data_rows[:self.settings.IMPORT_PREVIEW_ROWS]
        ]
        return ImportPreviewOut(
            import_id=job.id,
            headers=headers,
            auto_mapping=detect_mapping(headers),
            sample_rows=sample_rows,
            total_rows=len(data_rows),
        )

    # ----- processing -----

    def start_processing(
        self,
        db: Session,
        import_id: UUID,
        mapping: Optional[ColumnMapping],
        duplicate_policy: DuplicatePolicy,
        user_id: UUID,
        reprocess: bool = False,
    ) -> ImportJob:
        """Claim the job for a fresh run and spawn the batch loop. Must be called on the event loop."""
        job = self.get_job(db, import_id)

        claimed = (
            db.query(ImportJob)
            .filter(
                ImportJob.id == import_id,
                ImportJob.status != ImportJobStatus.PROCESSING,
            )
            .update(
                {
                    ImportJob.status: ImportJobStatus.PROCESSING,
                    ImportJob.mapping: mapping.model_dump() if mapping else None,
                    ImportJob.duplicate_policy: DuplicatePolicy(duplicate_policy),
                    ImportJob.total_rows: 0,
                    ImportJob.processed_rows: 0,
                    ImportJob.progress_percent: 0,
                    ImportJob.current_batch: 0,
                    ImportJob.total_batches: 0,
                    ImportJob.error_message: None,
                    ImportJob.summary: None,
                    ImportJob.rows: None,
                    ImportJob.started_at: datetime.now(timezone.utc),
                    ImportJob.completed_at: None,
                },
                synchronize_session=False,
            )
        )
        if not claimed:
            db.rollback()
            raise ImportInProgressError("Import is already being processed")
        db.commit()
        db.refresh(job)

        self.task_runner.spawn(self.run_job(job.id, user_id, reprocess),
                               name=f"import-{job.id}")
        logger.info("Import %s queued (policy=%s, mapping=%s)", job.id,
                    job.duplicate_policy.value, "explicit" if mapping else "auto")
        return job

    def reprocess(self, db: Session, import_id: UUID, user_id: UUID) -> ImportJob:
        job = self.get_job(db, import_id)
        if job.status == ImportJobStatus.PROCESSING:
            raise ImportInProgressError("Import is already being processed")
        if not job.mapping:
            raise ImportValidationError(
                "Import has no stored mapping. Process it before reprocessing.")

        return self.start_processing(
            db,
            import_id,
            ColumnMapping(**job.mapping),
            job.duplicate_policy or DuplicatePolicy.REVIEW,
            user_id,
            reprocess=True,
        )

    def _process_one(self, db, row, header_index, mapping, policy, user_id, summary, job_id, today) -> RowResult:
        try:
            return process_row(db, row, header_index, mapping, policy,
                               user_id, summary, job_id, today)
        except RowValidationError as exc:
            db.rollback()
            summary.failed += 1
            return RowResult(status=ImportRowStatus.FAILED, message=exc.message)
        except Exception as exc:
            db.rollback()
            summary.failed += 1
            logger.warning("Import %s row failed: %s", job_id, exc)
            message = exc.message if isinstance(exc, ComplianceError) else str(exc)
            return RowResult(status=ImportRowStatus.FAILED, message=message)

    async def run_job(self, job_id: UUID, user_id: UUID, reprocess: bool = False):
        """
        Batch loop; every exit path leaves the job completed or failed.

        The session is only touched from worker threads, one call at a time,
        so the event loop keeps serving requests while rows are written.
        """
        db = self.session_factory()
        try:
            await self._run(db, job_id, user_id, reprocess)
        except Exception as exc:
            logger.exception("Import %s failed", job_id)
            await asyncio.to_thread(self._mark_failed, db, job_id, exc)
        finally:
            await asyncio.to_thread(db.close)

    async def _run(self, db: Session, job_id: UUID, user_id: UUID, reprocess: bool):
        job = await asyncio.to_thread(self.get_job, db, job_id)
        headers, data_rows = await self._load_table(job.filename)

        total = len(data_rows)
        batch_size = max(1, self.settings.IMPORT_BATCH_SIZE)
        total_batches = math.ceil(total / batch_size)
        mapping, policy = await asyncio.to_thread(
            self._begin, db, job_id, headers, total, total_batches)
        today = self.clock()
        logger.info("Import %s started: %d rows in %d batches",
                    job_id, total, total_batches)

        header_index = HeaderIndex(headers)
        summary = ImportSummary(total=total)
        row_log = deque(maxlen=self.settings.IMPORT_ROW_LOG_CAP)

        for batch_no, start in enumerate(range(0, total, batch_size), 1):
            for offset, row in enumerate(data_rows[start:start + batch_size]):
                result = await asyncio.to_thread(
                    self._process_one,
                    db, row, header_index, mapping, policy, user_id, summary, job_id, today)
                row_log.append(
                    result.to_log(start + offset + FIRST_DATA_ROW).model_dump(mode="json"))

            processed = min(start + batch_size, total)
            if processed < total:
                await asyncio.to_thread(
                    self._save_progress, db, job_id, batch_no, processed, total, summary)
                logger.info("Import %s batch %d/%d done (%d/%d rows)",
                            job_id, batch_no, total_batches, processed, total)

        await asyncio.to_thread(
            self._complete, db, job_id, total, total_batches, summary,
            list(row_log), user_id, reprocess)
        logger.info("Import %s completed: %s", job_id, summary.model_dump())

    def _begin(self, db: Session, job_id: UUID, headers: List[str],
               total: int, total_batches: int) -> Tuple[ColumnMapping, DuplicatePolicy]:
        job = self.get_job(db, job_id)
        if job.mapping:
            mapping = ColumnMapping(**job.mapping)
        else:
            mapping = detect_mapping(headers)
        policy = job.duplicate_policy or DuplicatePolicy.REVIEW

        job.mapping = mapping.model_dump()
        job.duplicate_policy = policy
        job.total_rows = total
        job.total_batches = total_batches
        db.commit()
        return mapping, policy

    def _save_progress(self, db: Session, job_id: UUID, batch_no: int,
                       processed: int, total: int, summary: ImportSummary):
        job = self.get_job(db, job_id)
        job.processed_rows = processed
        job.current_batch = batch_no
        job.progress_percent = min(round(processed / total * 100), 99)
        job.summary = summary.model_dump()
        db.commit()

    def _complete(self, db: Session, job_id: UUID, total: int, total_batches: int,
                  summary: ImportSummary, rows: List[Dict[str, Any]],
                  user_id: UUID, reprocess: bool):
        # final counters land in the same commit as completion
        job = self.get_job(db, job_id)
        job.processed_rows = total
        job.current_batch = total_batches
        job.progress_percent = 100
        job.status = ImportJobStatus.COMPLETED
        job.summary = summary.model_dump()
        job.rows = rows
        job.completed_at = datetime.now(timezone.utc)
        record_audit(db, AuditAction.UPDATE, "import", job.id, user_id,
                     {"summary": job.summary, "reprocess": reprocess})
        db.commit()

    def _mark_failed(self, db: Session, job_id: UUID, exc: Exception):
        message = exc.message if isinstance(exc, ComplianceError) else str(exc)
        try:
            db.rollback()
            job = self.get_job(db, job_id)
            job.status = ImportJobStatus.FAILED
            job.error_message = message
            job.summary = None
            job.completed_at = datetime.now(timezone.utc)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Could not record failure of import %s", job_id)
