from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.exceptions import ValidationError
from app.models.notification import Notification, RecipientType
from app.repositories.storage import Storage
from app.schemas.common import ResponseModel
from app.schemas.notification import NotificationResponse
from app.services import notification_service

router = APIRouter()


def _notification_to_item(n: Notification) -> dict:
    return NotificationResponse.model_validate(n).model_dump(by_alias=True, mode="json")


@router.get("", response_model=ResponseModel)
def get_notifications(
    recipientType: str = Query(..., alias="recipientType"),
    recipientId: Optional[str] = Query(None, alias="recipientId"),
    unread: bool = False,
    db: Session = Depends(get_db)
):
    """
    Inbox for one recipient, newest first. Broadcasts to the recipient type are included.
    Supports ?unread=true for unread-only.
    """
    try:
        recipient_type = RecipientType(recipientType)
    except ValueError:
        raise ValidationError(f"Invalid recipient type: {recipientType}")

    notifications = Storage(db).get_notifications(recipient_type, recipientId, unread_only=unread)
    return ResponseModel(
        success=True,
        data={
            "notifications": [_notification_to_item(n) for n in notifications],
            "unreadCount": sum(1 for n in notifications if not n.is_read),
        }
    )


@router.put("/{notification_id}/read", response_model=ResponseModel)
def mark_notification_read(notification_id: str, db: Session = Depends(get_db)):
    """Mark one notification as read."""
    notification_service.mark_read(db, notification_id)
    return ResponseModel(success=True, message="Notification marked as read")
