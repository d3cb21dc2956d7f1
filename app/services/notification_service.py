"""
Notification fan-out.

Runs after an order/driver change has been committed, in its own session
(scheduled as a FastAPI background task). Best-effort: every failure is
logged and swallowed, and one failed notification does not stop the others.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, InternalError
from app.models.notification import RecipientType, NotificationType
from app.models.order import Order
from app.repositories.storage import Storage

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def customer_recipient(order: Order) -> str:
    """Registered customers by id, guest checkouts by phone."""
    return order.customer_id or order.customer_phone


def _emit(
    db: Session,
    order: Order,
    type: NotificationType,
    title: str,
    message: str,
    recipient_type: RecipientType,
    recipient_id: Optional[str] = None,
) -> bool:
    try:
        Storage(db).create_notification(
            type=type.value,
            title=title,
            message=message,
            recipient_type=recipient_type,
            recipient_id=recipient_id,
            order_id=order.id,
            is_read=False
        )
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(
            f"Failed to create {type.value} notification for {recipient_type.value} "
            f"on order {order.order_number}: {e}",
            exc_info=True
        )
        return False


def _fan_out(session_factory: SessionFactory, order_id: str, event: str, send: Callable[[Session, Order], None]):
    db = None
    try:
        db = session_factory()
        order = Storage(db).get_order(order_id)
        if not order:
            logger.warning(f"Skipping {event} notifications: order {order_id} not found")
            return
        send(db, order)
    except Exception as e:
        logger.error(f"{event} notifications failed for order {order_id}: {e}", exc_info=True)
    finally:
        if db is not None:
            db.close()


def notify_order_created(session_factory: SessionFactory, order_id: str):
    """New order: the restaurant, the whole driver pool and admins hear about it."""
    def send(db: Session, order: Order):
        restaurant_name = order.restaurant.name if order.restaurant else "the restaurant"
        _emit(
            db, order, NotificationType.NEW_ORDER,
            title="New order",
            message=f"New order {order.order_number} from {order.customer_name}",
            recipient_type=RecipientType.RESTAURANT,
            recipient_id=order.restaurant_id
        )
        _emit(
            db, order, NotificationType.NEW_ORDER,
            title="New order available",
            message=f"New delivery available from {restaurant_name}",
            recipient_type=RecipientType.DRIVER
        )
        _emit(
            db, order, NotificationType.NEW_ORDER,
            title="New order",
            message=f"Order {order.order_number} received",
            recipient_type=RecipientType.ADMIN
        )

    _fan_out(session_factory, order_id, "order created", send)


def notify_status_changed(session_factory: SessionFactory, order_id: str, status_message: str):
    """Plain status updates go to the customer and admins only."""
    def send(db: Session, order: Order):
        _emit(
            db, order, NotificationType.ORDER_STATUS,
            title="Order status updated",
            message=f"Your order {order.order_number}: {status_message}",
            recipient_type=RecipientType.CUSTOMER,
            recipient_id=customer_recipient(order)
        )
        _emit(
            db, order, NotificationType.ORDER_STATUS,
            title="Order status updated",
            message=f"Order {order.order_number} is now {order.status.value}",
            recipient_type=RecipientType.ADMIN
        )

    _fan_out(session_factory, order_id, "status change", send)


def notify_driver_assigned(session_factory: SessionFactory, order_id: str):
    """
    Customer learns who is coming, admins get an audit line, and every other
    available driver is told the order is gone from their list.
    """
    def send(db: Session, order: Order):
        driver_name = order.driver.name if order.driver else "a driver"
        _emit(
            db, order, NotificationType.DRIVER_ASSIGNED,
            title="Driver assigned",
            message=f"{driver_name} will deliver your order {order.order_number}",
            recipient_type=RecipientType.CUSTOMER,
            recipient_id=customer_recipient(order)
        )
        for other in Storage(db).get_available_drivers(exclude_id=order.driver_id):
            _emit(
                db, order, NotificationType.ORDER_TAKEN,
                title="Order taken",
                message=f"Order {order.order_number} was accepted by another driver",
                recipient_type=RecipientType.DRIVER,
                recipient_id=other.id
            )
        _emit(
            db, order, NotificationType.DRIVER_ASSIGNED,
            title="Driver assigned",
            message=f"Order {order.order_number} assigned to {driver_name}",
            recipient_type=RecipientType.ADMIN
        )

    _fan_out(session_factory, order_id, "driver assigned", send)


def notify_order_cancelled(session_factory: SessionFactory, order_id: str, reason: Optional[str] = None):
    def send(db: Session, order: Order):
        suffix = f": {reason}" if reason else ""
        _emit(
            db, order, NotificationType.ORDER_CANCELLED,
            title="Order cancelled",
            message=f"Your order {order.order_number} has been cancelled{suffix}",
            recipient_type=RecipientType.CUSTOMER,
            recipient_id=customer_recipient(order)
        )

    _fan_out(session_factory, order_id, "order cancelled", send)


def mark_read(db: Session, notification_id: str):
    """Flip the read flag of one notification."""
    notification = Storage(db).get_notification(notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    try:
        notification.is_read = True
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to mark notification {notification_id} as read: {e}", exc_info=True)
        raise InternalError("Could not update the notification")
    db.refresh(notification)
    return notification
