"""
Driver Model
Delivery agents who claim orders from the driver dashboard
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from app.database import Base


class Driver(Base):
    """
    A driver holds at most one active order at a time.
    is_available flips to False when an order is assigned and back to True
    once that order is delivered or cancelled.
    """
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)
    vehicle_type = Column(String(50), nullable=True)  # bike, car, scooter, etc.

    # Status
    is_active = Column(Boolean, default=True, nullable=False)  # Account-level enablement
    is_available = Column(Boolean, default=False, nullable=False, index=True)  # Free for new assignments

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="driver")

    def __repr__(self):
        return f"<Driver {self.name} ({self.phone})>"
