from app.models.restaurant import Restaurant
from app.models.driver import Driver
from app.models.order import Order, OrderStatus
from app.models.order_tracking import OrderTracking, ActorType
from app.models.notification import Notification, RecipientType, NotificationType

__all__ = [
    "Restaurant",
    "Driver",
    "Order",
    "OrderStatus",
    "OrderTracking",
    "ActorType",
    "Notification",
    "RecipientType",
    "NotificationType"
]
