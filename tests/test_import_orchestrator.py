import asyncio
import time
import uuid

import pytest

from compliance_service.app.crud.imports import import_orchestrator as orchestrator_module
from compliance_service.app.enum.import_enum import DuplicatePolicy, ImportJobStatus
from compliance_service.app.models import AuditLog, Business, Case, DuplicateReview, ImportJob
from compliance_service.app.schemas.imports.imports_schemas import ColumnMapping
from shared.core.exceptions import ImportInProgressError, ImportValidationError, NotFoundError
from shared.utils.spreadsheet_parser import ENCRYPTED_PACKAGE_MARKER, OLE_MAGIC

HEADERS = ["Business Name", "Owner Name", "Fine", "Case", "Case Date"]
ROWS = [
    ["Acme", "Ali", "100", "TCC violation", "2025-01-02"],
    ["Bakaal", "Hodan", "", "", ""],
    ["", "", "", "", ""],
    ["Cafe Nur", "Nur", "$50", "EVC expired", "03/01/2025"],
    ["", "Nameless", "10", "", ""],
    ["Dukaan", "Omar", "", "Hygiene", ""],
    ["Ebla", "Faisal", "", "", ""],
]


def _job(db, import_id) -> ImportJob:
    db.expire_all()
    return db.query(ImportJob).filter(ImportJob.id == import_id).one()


def _temp_files(temp_dir):
    return list(temp_dir.iterdir()) if temp_dir.exists() else []


def test_full_run_completes_with_summary(db, upload, run_import, temp_dir):
    import_id = upload([HEADERS] + ROWS)

    run_import(import_id)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.COMPLETED
    assert job.progress_percent == 100
    # the blank spreadsheet row is ignored
    assert job.total_rows == 6
    assert job.processed_rows == 6
    assert job.total_batches == 3
    assert job.current_batch == 3
    assert job.completed_at is not None
    assert job.mapping["business_name"] == "Business Name"
    assert job.duplicate_policy == DuplicatePolicy.REVIEW

    assert job.summary == {
        "total": 6,
        "created_businesses": 5,
        "updated_businesses": 0,
        "created_check_ins": 3,
        "created_cases": 3,
        "pending_reviews": 0,
        "skipped": 0,
        "failed": 1,
    }
    assert db.query(Business).count() == 5
    assert db.query(Case).count() == 3
    assert _temp_files(temp_dir) == []


def test_row_log_indexes_and_failures(db, upload, run_import):
    import_id = upload([HEADERS] + ROWS)

    run_import(import_id)

    rows = _job(db, import_id).rows
    assert [r["row_index"] for r in rows] == [2, 3, 4, 5, 6, 7]
    failed = [r for r in rows if r["status"] == "failed"]
    assert len(failed) == 1
    assert failed[0]["message"] == "business_name is required"
    assert rows[0]["case_id"] is not None


def test_row_log_keeps_most_recent_entries(db, upload, run_import, test_settings):
    test_settings.IMPORT_ROW_LOG_CAP = 3
    import_id = upload([HEADERS] + [[f"Shop {i}", f"Owner {i}", "", "", ""] for i in range(5)])

    run_import(import_id)

    job = _job(db, import_id)
    assert [r["row_index"] for r in job.rows] == [4, 5, 6]
    assert job.summary["created_businesses"] == 5


def test_progress_stays_below_100_until_completed(db, upload, run_import, session_factory, monkeypatch):
    import_id = upload([HEADERS] + [[f"Shop {i}", f"Owner {i}", "", "", ""] for i in range(5)])
    observed = []
    real_process_row = orchestrator_module.process_row

    def spying_process_row(*args, **kwargs):
        session = session_factory()
        try:
            job = session.query(ImportJob).filter(ImportJob.id == import_id).one()
            observed.append((job.status, job.progress_percent, job.processed_rows, job.summary))
        finally:
            session.close()
        return real_process_row(*args, **kwargs)

    monkeypatch.setattr(orchestrator_module, "process_row", spying_process_row)

    run_import(import_id)

    assert all(status == ImportJobStatus.PROCESSING for status, _, _, _ in observed)
    assert all(percent < 100 for _, percent, _, _ in observed)
    # batches of two: counters move after rows 2 and 4
    assert [processed for _, _, processed, _ in observed] == [0, 0, 2, 2, 4]
    assert [s and s["created_businesses"] for _, _, _, s in observed] == [None, None, 2, 2, 4]
    assert observed[2][3]["total"] == 5
    assert observed[2][1] == 40
    assert observed[4][1] == 80
    assert _job(db, import_id).progress_percent == 100


def test_explicit_mapping_is_used(db, upload, run_import):
    import_id = upload([["Shop", "Boss", "Penalty Paid"], ["Acme", "Ali", "20"]])
    mapping = ColumnMapping(business_name="Shop", owner_name="Boss", fined_amount="Penalty Paid")

    run_import(import_id, mapping=mapping)

    business = db.query(Business).one()
    assert business.owner_name == "Ali"
    assert _job(db, import_id).mapping["fined_amount"] == "Penalty Paid"
    assert db.query(Case).count() == 1


def test_empty_file_completes_at_100(db, upload, run_import):
    import_id = upload([HEADERS])

    run_import(import_id)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.COMPLETED
    assert job.progress_percent == 100
    assert job.total_rows == 0
    assert job.summary["total"] == 0


def test_password_protected_workbook_fails_job(db, upload, run_import, temp_dir):
    content = OLE_MAGIC + b"\x00" * 512 + ENCRYPTED_PACKAGE_MARKER + b"\x00" * 64
    import_id = upload(content, filename="locked.xlsx")

    run_import(import_id)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.FAILED
    assert "password-protected" in job.error_message
    assert job.summary is None
    assert _temp_files(temp_dir) == []


def test_unreadable_file_fails_job(db, upload, run_import, temp_dir):
    import_id = upload(b"this is not a workbook", filename="broken.xlsx")

    run_import(import_id)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.FAILED
    assert job.error_message
    assert job.summary is None
    assert _temp_files(temp_dir) == []


def test_missing_blob_fails_job(db, upload, run_import, blob_store):
    import_id = upload([HEADERS] + ROWS)
    blob_store.blobs.clear()

    run_import(import_id)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.FAILED
    assert "File not found" in job.error_message


def test_processing_job_rejects_second_run(db, upload, orchestrator, officer_id):
    import_id = upload([HEADERS] + ROWS)
    job = _job(db, import_id)
    job.status = ImportJobStatus.PROCESSING
    job.mapping = ColumnMapping(business_name="Business Name").model_dump()
    db.commit()

    with pytest.raises(ImportInProgressError):
        orchestrator.start_processing(db, import_id, None, DuplicatePolicy.SKIP, officer_id)
    with pytest.raises(ImportInProgressError):
        orchestrator.reprocess(db, import_id, officer_id)
    assert orchestrator.task_runner.active_count == 0


def test_reprocess_requires_stored_mapping(db, upload, orchestrator, officer_id):
    import_id = upload([HEADERS] + ROWS)

    with pytest.raises(ImportValidationError):
        orchestrator.reprocess(db, import_id, officer_id)


def test_reprocess_replays_mapping_and_policy(db, upload, run_import):
    import_id = upload([HEADERS] + ROWS)
    run_import(import_id)

    run_import(import_id, reprocess=True)

    job = _job(db, import_id)
    assert job.status == ImportJobStatus.COMPLETED
    assert job.summary["created_businesses"] == 0
    assert job.summary["pending_reviews"] == 5
    assert job.summary["failed"] == 1
    assert db.query(DuplicateReview).filter(
        DuplicateReview.import_job_id == import_id).count() == 5
    assert db.query(Business).count() == 5


def test_preview_returns_headers_mapping_and_samples(db, upload, orchestrator, temp_dir, test_settings):
    test_settings.IMPORT_PREVIEW_ROWS = 2
    import_id = upload([HEADERS] + ROWS)

    preview = asyncio.run(orchestrator.preview(db, import_id))

    assert preview.headers == HEADERS
    assert preview.auto_mapping.case_date == "Case Date"
    assert preview.total_rows == 6
    assert len(preview.sample_rows) == 2
    assert preview.sample_rows[0]["Business Name"] == "Acme"
    assert _temp_files(temp_dir) == []


def test_upload_rejects_unsupported_files(db, orchestrator, officer_id):
    with pytest.raises(ImportValidationError):
        asyncio.run(orchestrator.upload(db, "notes.pdf", b"%PDF", officer_id))
    with pytest.raises(ImportValidationError):
        asyncio.run(orchestrator.upload(db, "empty.csv", b"", officer_id))


def test_progress_for_unknown_job(db, orchestrator):
    with pytest.raises(NotFoundError):
        orchestrator.get_progress(db, uuid.uuid4())


def test_batch_loop_keeps_event_loop_responsive(db, upload, orchestrator, officer_id, monkeypatch):
    import_id = upload([HEADERS] + [[f"Shop {i}", f"Owner {i}", "", "", ""] for i in range(3)])
    real_process_row = orchestrator_module.process_row

    def slow_process_row(*args, **kwargs):
        time.sleep(0.2)
        return real_process_row(*args, **kwargs)

    monkeypatch.setattr(orchestrator_module, "process_row", slow_process_row)
    gaps = []

    async def _go():
        session = orchestrator.session_factory()
        try:
            orchestrator.start_processing(
                session, import_id, None, DuplicatePolicy.REVIEW, officer_id)
        finally:
            session.close()

        last = time.monotonic()
        while orchestrator.task_runner.active_count:
            await asyncio.sleep(0.01)
            now = time.monotonic()
            gaps.append(now - last)
            last = now
        await orchestrator.task_runner.drain()

    asyncio.run(_go())

    assert _job(db, import_id).status == ImportJobStatus.COMPLETED
    # three rows at 0.2s each; a blocked loop would show one long gap per row
    assert len(gaps) > 10
    assert max(gaps) < 0.15


def test_completion_and_reprocess_are_audited(db, upload, run_import, officer_id):
    import_id = upload([HEADERS] + ROWS)

    run_import(import_id)
    run_import(import_id, reprocess=True)

    entries = (
        db.query(AuditLog)
        .filter(AuditLog.entity == "import")
        .order_by(AuditLog.created_at)
        .all()
    )
    assert len(entries) == 2
    assert all(e.action == "update" for e in entries)
    assert all(e.entity_id == str(import_id) for e in entries)
    assert all(e.user_id == officer_id for e in entries)
    assert entries[0].details["reprocess"] is False
    assert entries[0].details["summary"]["created_businesses"] == 5
    assert entries[1].details["reprocess"] is True
    assert entries[1].details["summary"]["pending_reviews"] == 5


def test_failed_job_is_not_audited(db, upload, run_import):
    import_id = upload(b"this is not a workbook", filename="broken.xlsx")

    run_import(import_id)

    assert db.query(AuditLog).filter(AuditLog.entity == "import").count() == 0


def test_skip_policy_marks_row_log(db, upload, run_import):
    import_id = upload([HEADERS, ["Acme", "Ali", "", "", ""]])
    run_import(import_id)

    run_import(import_id, policy=DuplicatePolicy.SKIP)

    job = _job(db, import_id)
    assert job.summary["skipped"] == 1
    assert job.rows[0]["skipped"] is True
    assert job.rows[0]["status"] == "processed"
