from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from app.database import Base


class RecipientType(str, enum.Enum):
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    DRIVER = "driver"
    ADMIN = "admin"


class NotificationType(str, enum.Enum):
    NEW_ORDER = "new_order"
    ORDER_STATUS = "order_status"
    DRIVER_ASSIGNED = "driver_assigned"
    ORDER_TAKEN = "order_taken"
    ORDER_CANCELLED = "order_cancelled"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    recipient_type = Column(SQLEnum(RecipientType), nullable=False, index=True)
    # NULL means broadcast to every recipient of recipient_type.
    # Customers are addressed by customer id, or by phone for guest orders.
    recipient_id = Column(String(64), nullable=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    order = relationship("Order")
