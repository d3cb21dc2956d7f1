from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.models.notification import RecipientType


class NotificationResponse(BaseModel):
    """Single notification for API response. Uses 'read' and camelCase keys for app compatibility."""
    id: str
    type: str
    title: str
    message: str
    recipient_type: RecipientType = Field(serialization_alias="recipientType")
    recipient_id: Optional[str] = Field(default=None, serialization_alias="recipientId")
    order_id: Optional[str] = Field(default=None, serialization_alias="orderId")
    read: bool = Field(alias="is_read", serialization_alias="read")
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, use_enum_values=True)
