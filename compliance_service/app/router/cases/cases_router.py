from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.cases import case_lifecycle_crud as lifecycle
from ...crud.cases import cases_crud as crud
from ...schemas.cases.cases_schemas import (
    CaseListRequest,
    CaseOut,
    GuiltyComebackRequest,
    GuiltyFineRequest,
    ResolutionPaperCreate,
    ResolutionPaperOut,
)

router = APIRouter(prefix="/api/cases", tags=["cases"])


@router.get("/all")
def get_cases(
    params: CaseListRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_cases(db, params))


@router.get("/next-statuses/{case_id}")
def get_next_statuses(
    case_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=lifecycle.get_next_statuses(db, case_id))


@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=CaseOut.model_validate(crud.get_case(db, case_id)))


# ----- decisions -----

@router.post("/{case_id}/decision/not-guilty")
def decide_not_guilty(
    case_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    case = lifecycle.decide_not_guilty(db, case_id, current_user.user_id)
    return success_response(
        data=CaseOut.model_validate(case),
        message="Case marked not guilty",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.post("/{case_id}/decision/guilty-fine")
def decide_guilty_fine(
    case_id: UUID,
    request: GuiltyFineRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    case = lifecycle.decide_guilty_fine(
        db, case_id, request.fine_amount, current_user.user_id)
    return success_response(
        data=CaseOut.model_validate(case),
        message="Case fined",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.post("/{case_id}/decision/guilty-comeback")
def decide_guilty_comeback(
    case_id: UUID,
    request: GuiltyComebackRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    case = lifecycle.decide_guilty_comeback(
        db, case_id, request.comeback_date, current_user.user_id)
    return success_response(
        data=CaseOut.model_validate(case),
        message="Comeback scheduled",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.post("/{case_id}/resolution-papers")
def add_resolution_paper(
    case_id: UUID,
    request: ResolutionPaperCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    paper = lifecycle.add_resolution_paper(db, case_id, request, current_user.user_id)
    return success_response(
        data=ResolutionPaperOut.model_validate(paper),
        message="Resolution paper added",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )
