"""
Order Endpoints
Used by the ordering flow, the restaurant panel and the driver dashboard
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db, get_session_factory
from app.schemas.order import (
    OrderCreate, OrderStatusUpdate, DriverAssignment, OrderCancel,
    serialize_order, serialize_order_summary, serialize_tracking
)
from app.services import order_service, assignment_service, notification_service

router = APIRouter()


@router.post("", status_code=201)
def create_order(
    order_data: OrderCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Create a new order"""
    order = order_service.create_order(db, order_data)
    background_tasks.add_task(notification_service.notify_order_created, session_factory, order.id)
    return {
        "success": True,
        "order": serialize_order_summary(order)
    }


@router.get("")
def list_orders(
    status: Optional[str] = None,
    driverId: Optional[str] = Query(None, alias="driverId"),
    available: bool = False,
    restaurantId: Optional[str] = Query(None, alias="restaurantId"),
    db: Session = Depends(get_db)
):
    """
    List orders, newest first.
    ?available=true returns confirmed orders no driver has claimed yet.
    """
    orders = order_service.list_orders(
        db,
        status=status,
        driver_id=driverId,
        available=available,
        restaurant_id=restaurantId
    )
    return [serialize_order(o) for o in orders]


@router.get("/customer/{phone}")
def get_customer_orders(phone: str, db: Session = Depends(get_db)):
    """Orders placed from a phone number, newest first"""
    orders = order_service.list_customer_orders(db, phone)
    return [serialize_order(o) for o in orders]


@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db)):
    """Get order details"""
    return serialize_order(order_service.get_order(db, order_id))


@router.get("/{order_id}/tracking")
def get_order_tracking(order_id: str, db: Session = Depends(get_db)):
    """Status history of an order, oldest first"""
    entries = order_service.get_order_tracking(db, order_id)
    return [serialize_tracking(e) for e in entries]


@router.put("/{order_id}")
def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Update order status"""
    order = _apply_status_update(db, order_id, status_data, background_tasks, session_factory)
    return {
        "success": True,
        "order": serialize_order(order)
    }


@router.patch("/{order_id}/status")
def patch_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Update order status (restaurant panel variant)"""
    order = _apply_status_update(db, order_id, status_data, background_tasks, session_factory)
    return {
        "success": True,
        "status": order.status.value
    }


@router.put("/{order_id}/assign-driver")
def assign_driver(
    order_id: str,
    assignment: DriverAssignment,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Claim an order for a driver"""
    order = assignment_service.assign_driver(db, order_id, assignment.driverId)
    background_tasks.add_task(notification_service.notify_driver_assigned, session_factory, order.id)
    return {
        "success": True,
        "order": serialize_order(order)
    }


@router.patch("/{order_id}/cancel")
def cancel_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    cancel_data: Optional[OrderCancel] = None,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Cancel an order"""
    cancel_data = cancel_data or OrderCancel()
    cancelled = order_service.cancel_order(
        db,
        order_id,
        reason=cancel_data.reason,
        cancelled_by=cancel_data.cancelledBy,
        cancelled_by_type=cancel_data.cancelledByType
    )
    if cancelled:
        background_tasks.add_task(
            notification_service.notify_order_cancelled, session_factory, order_id, cancel_data.reason
        )
    return {
        "success": True,
        "status": "cancelled"
    }


def _apply_status_update(db, order_id, status_data, background_tasks, session_factory):
    order = order_service.update_status(
        db,
        order_id,
        status_data.status,
        updated_by=status_data.updatedBy,
        updated_by_type=status_data.updatedByType,
        message=status_data.message
    )
    message = order_service.status_message(order.status, status_data.message)
    background_tasks.add_task(notification_service.notify_status_changed, session_factory, order.id, message)
    return order
