"""
Order lifecycle: creation, status transitions and cancellation.

Every status change and its tracking entry commit in one transaction.
Notifications are not sent from here; the API layer schedules the fan-out
once the change is committed (see app.services.notification_service).
"""
import json
import logging
import random
import string
import time
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ValidationError, NotFoundError, ConflictError, InternalError
from app.models.order import Order, OrderStatus, ORDER_STATUS_FLOW, TERMINAL_STATUSES
from app.models.order_tracking import ActorType
from app.repositories.storage import Storage
from app.schemas.order import OrderCreate

logger = logging.getLogger(__name__)

ORDER_RECEIVED_MESSAGE = "order received and under review"
ORDER_CHANGED = "Order was changed by another request"

STATUS_MESSAGES = {
    OrderStatus.CONFIRMED: "order confirmed, preparing",
    OrderStatus.PREPARING: "order is being prepared",
    OrderStatus.READY: "order ready for pickup",
    OrderStatus.PICKED_UP: "order picked up by driver",
    OrderStatus.ON_WAY: "driver en route",
    OrderStatus.DELIVERED: "order delivered successfully",
    OrderStatus.CANCELLED: "order cancelled",
}

REQUIRED_ORDER_FIELDS = {
    "customerName": "customer name",
    "customerPhone": "customer phone",
    "deliveryAddress": "delivery address",
    "items": "items",
    "restaurantId": "restaurant id",
}

_BASE36 = string.digits + string.ascii_lowercase
_CENT = Decimal("0.01")


def generate_order_number() -> str:
    """ORD-<epoch millis>-<9 random base36 chars>. Collisions are not re-checked."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"ORD-{timestamp}-{suffix}"


def calculate_driver_earnings(total_amount: Decimal) -> Decimal:
    """Commission on the order total, rounded half-up to a whole unit."""
    rate = Decimal(str(settings.DRIVER_COMMISSION_RATE))
    return (Decimal(total_amount) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def serialize_items(items: Any) -> str:
    """Items are stored as a JSON array string; a pre-serialized string must decode to an array."""
    invalid = ValidationError("invalid item format", details="items must be a valid JSON array")
    if isinstance(items, str):
        try:
            decoded = json.loads(items)
        except ValueError:
            raise invalid
        if not isinstance(decoded, list) or not decoded:
            raise invalid
        return items
    if not isinstance(items, (list, tuple)):
        raise invalid
    try:
        return json.dumps(list(items))
    except (TypeError, ValueError):
        raise invalid


def normalize_phone(phone: str) -> str:
    return "".join(phone.split())


def status_message(status: OrderStatus, message: Optional[str] = None) -> str:
    if message:
        return message
    return STATUS_MESSAGES.get(status, f"order status updated to {status.value}")


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().lower())
    except (ValueError, AttributeError):
        raise ValidationError(
            f"Invalid status: {value}",
            details=f"Valid values: {', '.join(s.value for s in OrderStatus)}"
        )


def parse_actor_type(value: Optional[str]) -> ActorType:
    if not value:
        return ActorType.SYSTEM
    try:
        return ActorType(value.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid actor type: {value}",
            details=f"Valid values: {', '.join(a.value for a in ActorType)}"
        )


def validate_transition(current: OrderStatus, new: OrderStatus) -> None:
    """Only the fixed successor or cancelled is accepted, and never out of a terminal state."""
    if current in TERMINAL_STATUSES:
        raise ValidationError(f"Cannot change status of a {current.value} order")
    if new == OrderStatus.CANCELLED:
        return
    if ORDER_STATUS_FLOW.get(current) != new:
        raise ValidationError(
            f"Cannot change status from {current.value} to {new.value}",
            details=f"Next allowed status: {ORDER_STATUS_FLOW[current].value}"
        )


def _to_amount(value: Optional[Decimal], field: str) -> Decimal:
    amount = Decimal(value) if value is not None else Decimal("0")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def _release_driver(storage: Storage, driver_id: Optional[str], order_number: str) -> None:
    if driver_id and storage.release_driver(driver_id):
        logger.info(f"Driver {driver_id} released by order {order_number}")


def create_order(db: Session, order_data: OrderCreate) -> Order:
    """Validate and persist a new order at pending with its first tracking entry."""
    storage = Storage(db)

    missing = [
        label for field, label in REQUIRED_ORDER_FIELDS.items()
        if not _present(getattr(order_data, field))
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing": missing}
        )

    restaurant_id = order_data.restaurantId.strip()
    try:
        uuid.UUID(restaurant_id)
    except ValueError:
        raise ValidationError("invalid restaurant id", details={"restaurantId": restaurant_id})

    restaurant = storage.get_restaurant(restaurant_id)
    if not restaurant:
        raise ValidationError("restaurant not found", details={"restaurantId": restaurant_id})

    items = serialize_items(order_data.items)

    subtotal = _to_amount(order_data.subtotal, "subtotal")
    delivery_fee = _to_amount(order_data.deliveryFee, "delivery fee")
    total_amount = subtotal + delivery_fee
    if order_data.totalAmount is not None and _to_amount(order_data.totalAmount, "total") != total_amount:
        raise ValidationError(
            "total does not match subtotal + delivery fee",
            details={"expected": float(total_amount), "received": float(order_data.totalAmount)}
        )

    order = Order(
        order_number=generate_order_number(),
        customer_id=order_data.customerId or None,
        customer_name=order_data.customerName.strip(),
        customer_phone=normalize_phone(order_data.customerPhone),
        customer_email=order_data.customerEmail.strip() if order_data.customerEmail else None,
        delivery_address=order_data.deliveryAddress.strip(),
        customer_location_lat=order_data.customerLocationLat,
        customer_location_lng=order_data.customerLocationLng,
        notes=order_data.notes.strip() if order_data.notes else None,
        payment_method=order_data.paymentMethod or settings.DEFAULT_PAYMENT_METHOD,
        status=OrderStatus.PENDING,
        items=items,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total_amount=total_amount,
        driver_earnings=calculate_driver_earnings(total_amount),
        restaurant_id=restaurant.id,
        estimated_time=restaurant.delivery_time or settings.DEFAULT_ESTIMATED_TIME,
    )

    try:
        storage.create_order(order)
        storage.create_order_tracking(
            order_id=order.id,
            status=OrderStatus.PENDING,
            message=ORDER_RECEIVED_MESSAGE,
            created_by="system",
            created_by_type=ActorType.SYSTEM
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create order for {order.customer_phone}: {e}", exc_info=True)
        raise InternalError("Could not save the order")

    db.refresh(order)
    logger.info(f"Order {order.order_number} created for restaurant {restaurant.id}")
    return order


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def get_order(db: Session, order_id: str) -> Order:
    order = Storage(db).get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def update_status(
    db: Session,
    order_id: str,
    new_status: str,
    updated_by: Optional[str] = None,
    updated_by_type: Optional[str] = None,
    message: Optional[str] = None,
) -> Order:
    """
    Move an order one step along its flow (or to cancelled) and log the change.
    The write only lands if the row still has the status and driver that were
    validated; otherwise the caller gets a ConflictError and nothing is written.
    """
    storage = Storage(db)
    if not new_status:
        raise ValidationError("status is required")

    target = parse_status(new_status)
    actor_type = parse_actor_type(updated_by_type)

    order = storage.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")

    current_status, driver_id, order_number = order.status, order.driver_id, order.order_number
    validate_transition(current_status, target)
    text = status_message(target, message)

    values = {"status": target}
    if target == OrderStatus.CANCELLED:
        values["cancelled_at"] = datetime.utcnow()
        values["cancellation_reason"] = message

    try:
        if not storage.transition_order(order_id, current_status, driver_id, values):
            db.rollback()
            logger.info(f"Order {order_number} changed before it could move to {target.value}")
            raise ConflictError(ORDER_CHANGED, details={"orderId": order_id})

        if target in TERMINAL_STATUSES:
            _release_driver(storage, driver_id, order_number)
        storage.create_order_tracking(
            order_id=order_id,
            status=target,
            message=text,
            created_by=updated_by or "system",
            created_by_type=actor_type
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update order {order_id} to {target.value}: {e}", exc_info=True)
        raise InternalError("Could not update the order")

    # Core update bypasses the identity map; re-read committed state
    db.expire_all()
    order = storage.get_order(order_id)
    logger.info(f"Order {order_number} moved to {target.value} by {updated_by or 'system'}")
    return order


def cancel_order(
    db: Session,
    order_id: str,
    reason: Optional[str] = None,
    cancelled_by: Optional[str] = None,
    cancelled_by_type: Optional[str] = None,
) -> bool:
    """
    Cancel from any active state, releasing the assigned driver.
    Returns False when the order was already cancelled (nothing written).
    Delivered orders cannot be cancelled. If the order changes (e.g. a driver
    claims it) between the read and the write, the cancel fails with a
    ConflictError so the driver to release is never taken from a stale read.
    """
    storage = Storage(db)
    actor_type = parse_actor_type(cancelled_by_type)

    order = storage.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")

    if order.status == OrderStatus.CANCELLED:
        return False
    if order.status == OrderStatus.DELIVERED:
        raise ConflictError("Delivered orders cannot be cancelled")

    current_status, driver_id, order_number = order.status, order.driver_id, order.order_number
    reason = reason.strip() if reason else None

    try:
        changed = storage.transition_order(order_id, current_status, driver_id, {
            "status": OrderStatus.CANCELLED,
            "cancelled_at": datetime.utcnow(),
            "cancellation_reason": reason,
        })
        if not changed:
            db.rollback()
            current = storage.get_order(order_id)
            if current is not None and current.status == OrderStatus.CANCELLED:
                return False
            logger.info(f"Order {order_number} changed before it could be cancelled")
            raise ConflictError(ORDER_CHANGED, details={"orderId": order_id})

        _release_driver(storage, driver_id, order_number)
        storage.create_order_tracking(
            order_id=order_id,
            status=OrderStatus.CANCELLED,
            message=status_message(OrderStatus.CANCELLED, reason),
            created_by=cancelled_by or "system",
            created_by_type=actor_type
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to cancel order {order_id}: {e}", exc_info=True)
        raise InternalError("Could not cancel the order")

    db.expire_all()
    logger.info(f"Order {order_number} cancelled by {cancelled_by or 'system'}")
    return True


def list_orders(
    db: Session,
    status: Optional[str] = None,
    driver_id: Optional[str] = None,
    available: bool = False,
    restaurant_id: Optional[str] = None,
) -> list:
    """
    Filtered, newest-first listing.
    available=True is the driver pool view: confirmed orders nobody has claimed.
    """
    status_filter = parse_status(status) if status else None
    if available:
        status_filter = OrderStatus.CONFIRMED
    return Storage(db).get_orders(
        status=status_filter,
        driver_id=driver_id,
        restaurant_id=restaurant_id,
        unassigned=available
    )


def list_customer_orders(db: Session, phone: str) -> list:
    phone = normalize_phone(phone or "")
    if not phone:
        raise ValidationError("phone number is required")
    return Storage(db).get_orders(customer_phone=phone)


def get_order_tracking(db: Session, order_id: str) -> list:
    storage = Storage(db)
    if not storage.get_order(order_id):
        raise NotFoundError("Order not found")
    return storage.get_order_tracking(order_id)
