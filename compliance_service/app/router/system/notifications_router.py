from fastapi import APIRouter, Depends

from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import CommonQueryParams, UserToken
from shared.helpers.json_response_helper import success_response
from ...crud.scheduler.scheduler_service import ComebackScheduler
from ...crud.system import notifications_crud as crud
from ..dependencies import get_comeback_scheduler

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/all")
def get_notifications(
    params: CommonQueryParams = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_notifications(db, current_user.user_id, params))


@router.post("/comeback-sweep")
def run_comeback_sweep(
    scheduler: ComebackScheduler = Depends(get_comeback_scheduler),
    current_user: UserToken = Depends(validate_current_token)
):
    """Run the comeback reminder sweep now instead of waiting for the next tick."""
    return success_response(data=scheduler.run_once(), message="Comeback sweep completed")
