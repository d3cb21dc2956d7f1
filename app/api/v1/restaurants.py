from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.repositories.storage import Storage
from app.schemas.common import ResponseModel

router = APIRouter()


@router.get("", response_model=ResponseModel)
def list_restaurants(db: Session = Depends(get_db)):
    """Active restaurants for the ordering flow"""
    restaurants = Storage(db).get_restaurants(active_only=True)
    return ResponseModel(
        success=True,
        data=[
            {
                "id": r.id,
                "name": r.name,
                "phone": r.phone,
                "address": r.address,
                "deliveryTime": r.delivery_time
            }
            for r in restaurants
        ]
    )
