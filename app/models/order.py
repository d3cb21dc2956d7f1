from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Enum as SQLEnum, Text, Float
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from app.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    ON_WAY = "on_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Fixed forward edge for every non-terminal status; cancelled is reachable from all of them
ORDER_STATUS_FLOW = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.PICKED_UP,
    OrderStatus.PICKED_UP: OrderStatus.ON_WAY,
    OrderStatus.ON_WAY: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

ACTIVE_STATUSES = tuple(s for s in OrderStatus if s not in TERMINAL_STATUSES)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    # Customer (guest checkout is allowed, so customer_id is optional)
    customer_id = Column(String(36), nullable=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False, index=True)
    customer_email = Column(String(255), nullable=True)
    delivery_address = Column(Text, nullable=False)
    customer_location_lat = Column(Float, nullable=True)
    customer_location_lng = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    payment_method = Column(String(50), default="cash", nullable=False)
    status = Column(SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    items = Column(Text, nullable=False)  # JSON array of {name, price, quantity, notes}

    subtotal = Column(Numeric(10, 2), default=0, nullable=False)
    delivery_fee = Column(Numeric(10, 2), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    driver_earnings = Column(Numeric(10, 2), default=0, nullable=False)  # Fixed at creation

    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    estimated_time = Column(String(50), nullable=True)

    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    restaurant = relationship("Restaurant")
    driver = relationship("Driver", back_populates="orders")
    tracking = relationship(
        "OrderTracking",
        back_populates="order",
        order_by="OrderTracking.id"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status.value if self.status else None})>"
