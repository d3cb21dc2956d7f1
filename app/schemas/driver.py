from pydantic import BaseModel
from typing import Optional
from app.models.driver import Driver


class DriverAvailabilityUpdate(BaseModel):
    isAvailable: Optional[bool] = None


def serialize_driver(driver: Driver) -> dict:
    return {
        "id": driver.id,
        "name": driver.name,
        "phone": driver.phone,
        "email": driver.email,
        "vehicleType": driver.vehicle_type,
        "isActive": driver.is_active,
        "isAvailable": driver.is_available,
        "createdAt": driver.created_at.isoformat() if driver.created_at else None
    }
