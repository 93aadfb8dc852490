from uuid import UUID
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.imports.import_orchestrator import ImportOrchestrator
from ...schemas.imports.imports_schemas import (
    ImportPreviewRequest,
    ImportProcessRequest,
    ImportProgressOut,
    ImportReprocessRequest,
    ImportUploadOut,
)
from ..dependencies import get_import_orchestrator

router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.post("/upload")
async def upload_import(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    content = await file.read()
    job = await orchestrator.upload(db, file.filename, content, current_user.user_id)
    return success_response(
        data=ImportUploadOut(import_id=job.id,
                             filename=job.original_filename, status=job.status),
        message="File uploaded successfully",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.post("/preview")
async def preview_import(
    request: ImportPreviewRequest,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(
        data=await orchestrator.preview(db, request.import_id),
        message="Preview generated"
    )


@router.post("/process")
async def process_import(
    request: ImportProcessRequest,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    job = orchestrator.start_processing(
        db, request.import_id, request.mapping, request.duplicate_policy, current_user.user_id)
    return success_response(
        data=orchestrator.get_progress(db, job.id),
        message="Import processing started",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.post("/reprocess")
async def reprocess_import(
    request: ImportReprocessRequest,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    job = orchestrator.reprocess(db, request.import_id, current_user.user_id)
    return success_response(
        data=orchestrator.get_progress(db, job.id),
        message="Import reprocessing started",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.get("/{import_id}/progress")
def get_import_progress(
    import_id: UUID,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    progress: ImportProgressOut = orchestrator.get_progress(db, import_id)
    return success_response(data=progress)


@router.get("/{import_id}/report")
def get_import_report(
    import_id: UUID,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=orchestrator.get_report(db, import_id))
