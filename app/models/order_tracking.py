from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from app.models.order import OrderStatus
from app.database import Base


class ActorType(str, enum.Enum):
    SYSTEM = "system"
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    DRIVER = "driver"
    ADMIN = "admin"


class OrderTracking(Base):
    """Append-only audit trail: one row per status change of an order."""
    __tablename__ = "order_tracking"

    # Autoincrement keeps insertion order stable when timestamps collide
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(SQLEnum(OrderStatus), nullable=False)
    message = Column(Text, nullable=False)
    created_by = Column(String(64), nullable=False, default="system")
    created_by_type = Column(SQLEnum(ActorType), nullable=False, default=ActorType.SYSTEM)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="tracking")
