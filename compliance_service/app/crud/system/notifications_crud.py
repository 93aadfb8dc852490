from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.schemas import CommonQueryParams
from ...enum.system_enum import NotificationType
from ...models.system.notifications import Notification
from ...schemas.system.notifications_schemas import NotificationListResponse, NotificationOut


def create_notification(
    db: Session,
    user_id: UUID,
    case_id: Optional[UUID],
    type: NotificationType,
    title: str,
    message: str,
) -> Notification:
    # committed by the caller together with whatever triggered it
    notification = Notification(
        user_id=user_id,
        case_id=case_id,
        type=type,
        title=title,
        message=message,
        read=False,
    )
    db.add(notification)
    return notification


def get_notifications(db: Session, user_id: UUID, params: CommonQueryParams) -> NotificationListResponse:
    base_query = db.query(Notification).filter(Notification.user_id == user_id)
    total = base_query.count()

    notifications = (
        base_query
        .order_by(Notification.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return NotificationListResponse(
        notifications=[NotificationOut.model_validate(n) for n in notifications],
        total=total
    )
