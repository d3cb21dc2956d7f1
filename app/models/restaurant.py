from sqlalchemy import Column, String, Boolean, DateTime, Text
import uuid
from datetime import datetime
from app.database import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    delivery_time = Column(String(50), nullable=True)  # e.g. "30-45 minutes", copied onto new orders
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
