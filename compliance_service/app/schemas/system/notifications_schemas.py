from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from ...enum.system_enum import NotificationType


class NotificationOut(BaseModel):
    id: UUID
    user_id: UUID
    case_id: Optional[UUID] = None
    type: NotificationType
    title: str
    message: str
    read: bool = False
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class NotificationListResponse(BaseModel):
    notifications: List[NotificationOut]
    total: int


class ComebackSweepOut(BaseModel):
    run_date: date
    checked: int
    notifications: int
