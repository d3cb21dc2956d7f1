"""
Driver Endpoints
Driver dashboard: profile, availability toggle and stats
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.repositories.storage import Storage
from app.schemas.common import ResponseModel
from app.schemas.driver import DriverAvailabilityUpdate, serialize_driver
from app.services import assignment_service

router = APIRouter()


@router.get("", response_model=ResponseModel)
def list_drivers(
    available: Optional[bool] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """List drivers with optional availability filters"""
    drivers = Storage(db).get_drivers(is_available=available, is_active=active)
    return ResponseModel(
        success=True,
        data={
            "items": [serialize_driver(d) for d in drivers],
            "total": len(drivers)
        },
        message="Drivers retrieved successfully"
    )


@router.get("/{driver_id}", response_model=ResponseModel)
def get_driver(driver_id: str, db: Session = Depends(get_db)):
    driver = assignment_service.get_driver(db, driver_id)
    return ResponseModel(success=True, data=serialize_driver(driver))


@router.put("/{driver_id}", response_model=ResponseModel)
def update_driver_availability(
    driver_id: str,
    update: DriverAvailabilityUpdate,
    db: Session = Depends(get_db)
):
    """Toggle a driver's availability for new orders"""
    driver = assignment_service.set_driver_availability(db, driver_id, update.isAvailable)
    return ResponseModel(
        success=True,
        data=serialize_driver(driver),
        message=f"Availability set to {'available' if driver.is_available else 'unavailable'}"
    )


@router.get("/{driver_id}/stats")
def get_driver_stats(driver_id: str, db: Session = Depends(get_db)):
    """Order counts and earnings for the driver dashboard"""
    return assignment_service.get_driver_stats(db, driver_id)
