"""
Driver assignment.

Several drivers poll the same available-orders list, so two of them can try to
claim one order at the same moment. The claim is a pair of conditional updates
in one transaction: the order only takes a driver while driver_id is NULL, and
the driver only goes busy while still available. If either update touches no
row, the transaction is rolled back and the caller gets a ConflictError.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ValidationError, NotFoundError, ConflictError, InternalError
from app.models.driver import Driver
from app.models.order import Order, OrderStatus
from app.models.order_tracking import ActorType
from app.repositories.storage import Storage

logger = logging.getLogger(__name__)

# Orders a driver can still pick up; the claim moves them to preparing,
# so every claim writes exactly one status change to the tracking log
ASSIGNABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)

ALREADY_ASSIGNED = "Order already assigned to a driver"
DRIVER_UNAVAILABLE = "Driver unavailable"


def assign_driver(db: Session, order_id: str, driver_id: Optional[str]) -> Order:
    """Bind one available driver to one unassigned order, atomically."""
    storage = Storage(db)
    if not driver_id:
        raise ValidationError("driverId is required")

    order = storage.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.driver_id:
        raise ConflictError(ALREADY_ASSIGNED, details={"orderId": order_id})
    if order.status not in ASSIGNABLE_STATUSES:
        raise ConflictError(
            f"Order is {order.status.value} and can no longer be assigned",
            details={"orderId": order_id}
        )

    driver = storage.get_driver(driver_id)
    if not driver:
        raise NotFoundError("Driver not found")
    if not (driver.is_available and driver.is_active):
        raise ConflictError(DRIVER_UNAVAILABLE, details={"driverId": driver_id})

    try:
        if not storage.claim_order(order_id, driver_id, ASSIGNABLE_STATUSES):
            db.rollback()
            logger.info(f"Driver {driver_id} lost the race for order {order_id}")
            raise ConflictError(ALREADY_ASSIGNED, details={"orderId": order_id})

        if not storage.claim_driver(driver_id):
            db.rollback()
            logger.info(f"Driver {driver_id} became unavailable before claiming order {order_id}")
            raise ConflictError(DRIVER_UNAVAILABLE, details={"driverId": driver_id})

        storage.create_order_tracking(
            order_id=order_id,
            status=OrderStatus.PREPARING,
            message=f"order accepted by driver {driver.name}",
            created_by=driver_id,
            created_by_type=ActorType.DRIVER
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to assign driver {driver_id} to order {order_id}: {e}", exc_info=True)
        raise InternalError("Could not assign the driver")

    # Core updates bypass the identity map; re-read committed state
    db.expire_all()
    order = storage.get_order(order_id)
    logger.info(f"Order {order.order_number} assigned to driver {driver_id}")
    return order


def set_driver_availability(db: Session, driver_id: str, is_available: Optional[bool]) -> Driver:
    """
    Self-service sign on/off from the driver dashboard.
    A driver still holding an active order cannot sign back on.
    """
    storage = Storage(db)
    if is_available is None:
        raise ValidationError("isAvailable is required")

    driver = storage.get_driver(driver_id)
    if not driver:
        raise NotFoundError("Driver not found")

    if is_available:
        if not driver.is_active:
            raise ConflictError("Driver account is not active")
        if storage.count_active_orders_for_driver(driver_id):
            raise ConflictError("Driver has an active order", details={"driverId": driver_id})

    try:
        storage.update_driver(driver, {"is_available": is_available})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update availability for driver {driver_id}: {e}", exc_info=True)
        raise InternalError("Could not update the driver")

    db.refresh(driver)
    logger.info(f"Driver {driver_id} is now {'available' if is_available else 'unavailable'}")
    return driver


def get_driver(db: Session, driver_id: str) -> Driver:
    driver = Storage(db).get_driver(driver_id)
    if not driver:
        raise NotFoundError("Driver not found")
    return driver


def get_driver_stats(db: Session, driver_id: str, today=None) -> dict:
    """Dashboard counters: orders handled and commission earned (delivered orders only)."""
    storage = Storage(db)
    if not storage.get_driver(driver_id):
        raise NotFoundError("Driver not found")

    orders = storage.get_orders(driver_id=driver_id)
    delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
    active = [o for o in orders if not o.is_terminal]

    today = today or datetime.utcnow().date()
    today_delivered = [o for o in delivered if o.updated_at and o.updated_at.date() == today]

    return {
        "totalOrders": len(orders),
        "completedOrders": len(delivered),
        "activeOrders": len(active),
        "totalEarnings": float(sum(o.driver_earnings for o in delivered)),
        "todayEarnings": float(sum(o.driver_earnings for o in today_delivered))
    }
