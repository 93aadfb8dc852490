from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.businesses import businesses_crud as crud
from ...schemas.businesses.business_schemas import BusinessCreate, BusinessOut

router = APIRouter(prefix="/api/businesses", tags=["businesses"])


@router.post("/")
def create_business(
    request: BusinessCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    business = crud.create_business(db, request, current_user)
    return success_response(
        data=BusinessOut.model_validate(business),
        message="Business created successfully",
        status_code=AppStatusCode.OPERATION_SUCCESSFUL
    )


@router.get("/{business_id}")
def get_business(
    business_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=BusinessOut.model_validate(crud.get_business(db, business_id)))
