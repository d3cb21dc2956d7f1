"""
Storage layer for orders, drivers, restaurants, notifications and tracking.

No commits here; services own the transaction boundaries.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update, or_
from sqlalchemy.orm import Session

from app.models.driver import Driver
from app.models.notification import Notification, RecipientType
from app.models.order import Order, OrderStatus, ACTIVE_STATUSES
from app.models.order_tracking import OrderTracking
from app.models.restaurant import Restaurant


class Storage:
    def __init__(self, db: Session):
        self.db = db

    # ---- Orders ----

    def get_orders(
        self,
        status: Optional[OrderStatus] = None,
        driver_id: Optional[str] = None,
        restaurant_id: Optional[str] = None,
        customer_phone: Optional[str] = None,
        unassigned: bool = False,
    ) -> List[Order]:
        """Newest first."""
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        if driver_id:
            query = query.filter(Order.driver_id == driver_id)
        if restaurant_id:
            query = query.filter(Order.restaurant_id == restaurant_id)
        if customer_phone:
            query = query.filter(Order.customer_phone == customer_phone)
        if unassigned:
            query = query.filter(Order.driver_id.is_(None))
        return query.order_by(Order.created_at.desc()).all()

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def create_order(self, order: Order) -> Order:
        """Insert without committing, but make sure the id is populated."""
        self.db.add(order)
        self.db.flush()
        return order

    def transition_order(
        self,
        order_id: str,
        current_status: OrderStatus,
        current_driver_id: Optional[str],
        values: Dict[str, Any],
    ) -> bool:
        """
        Write values only if the row still has the status and driver the caller validated against.
        Returns False when another request changed the order in between.
        """
        if current_driver_id is None:
            driver_matches = Order.driver_id.is_(None)
        else:
            driver_matches = Order.driver_id == current_driver_id
        result = self.db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == current_status,
                driver_matches
            )
            .values(updated_at=datetime.utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def count_active_orders_for_driver(self, driver_id: str) -> int:
        return self.db.query(Order).filter(
            Order.driver_id == driver_id,
            Order.status.in_(ACTIVE_STATUSES)
        ).count()

    # ---- Drivers ----

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        return self.db.query(Driver).filter(Driver.id == driver_id).first()

    def get_drivers(
        self,
        is_available: Optional[bool] = None,
        is_active: Optional[bool] = None,
    ) -> List[Driver]:
        query = self.db.query(Driver)
        if is_available is not None:
            query = query.filter(Driver.is_available == is_available)
        if is_active is not None:
            query = query.filter(Driver.is_active == is_active)
        return query.order_by(Driver.name.asc()).all()

    def get_available_drivers(self, exclude_id: Optional[str] = None) -> List[Driver]:
        query = self.db.query(Driver).filter(
            Driver.is_available.is_(True),
            Driver.is_active.is_(True)
        )
        if exclude_id:
            query = query.filter(Driver.id != exclude_id)
        return query.all()

    def update_driver(self, driver: Driver, values: Dict[str, Any]) -> Driver:
        for field, value in values.items():
            setattr(driver, field, value)
        driver.updated_at = datetime.utcnow()
        self.db.flush()
        return driver

    # ---- Assignment (compare-and-swap) ----

    def claim_order(self, order_id: str, driver_id: str, assignable_statuses) -> bool:
        """
        Bind driver_id to the order only if nobody holds it yet.
        Returns False when a concurrent claim already won.
        """
        result = self.db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.driver_id.is_(None),
                Order.status.in_(assignable_statuses)
            )
            .values(
                driver_id=driver_id,
                status=OrderStatus.PREPARING,
                updated_at=datetime.utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def claim_driver(self, driver_id: str) -> bool:
        """Flip an available, active driver to busy. False if someone got there first."""
        result = self.db.execute(
            update(Driver)
            .where(
                Driver.id == driver_id,
                Driver.is_available.is_(True),
                Driver.is_active.is_(True)
            )
            .values(is_available=False, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release_driver(self, driver_id: str) -> bool:
        """Mark the driver available again. No-op (returns False) if already available."""
        result = self.db.execute(
            update(Driver)
            .where(Driver.id == driver_id, Driver.is_available.is_(False))
            .values(is_available=True, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ---- Restaurants ----

    def get_restaurants(self, active_only: bool = False) -> List[Restaurant]:
        query = self.db.query(Restaurant)
        if active_only:
            query = query.filter(Restaurant.is_active.is_(True))
        return query.order_by(Restaurant.name.asc()).all()

    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        return self.db.query(Restaurant).filter(Restaurant.id == restaurant_id).first()

    # ---- Notifications ----

    def create_notification(self, **fields) -> Notification:
        notification = Notification(**fields)
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self.db.query(Notification).filter(Notification.id == notification_id).first()

    def get_notifications(
        self,
        recipient_type: RecipientType,
        recipient_id: Optional[str] = None,
        unread_only: bool = False,
    ) -> List[Notification]:
        """
        Inbox for one recipient: rows addressed to them plus broadcasts to their type.
        Without recipient_id only broadcasts are returned.
        """
        query = self.db.query(Notification).filter(Notification.recipient_type == recipient_type)
        if recipient_id:
            query = query.filter(
                or_(Notification.recipient_id == recipient_id, Notification.recipient_id.is_(None))
            )
        else:
            query = query.filter(Notification.recipient_id.is_(None))
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc()).all()

    # ---- Tracking ----

    def create_order_tracking(self, **fields) -> OrderTracking:
        entry = OrderTracking(**fields)
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_order_tracking(self, order_id: str) -> List[OrderTracking]:
        return self.db.query(OrderTracking).filter(
            OrderTracking.order_id == order_id
        ).order_by(OrderTracking.id.asc()).all()
