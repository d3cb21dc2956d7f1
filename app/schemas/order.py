from pydantic import BaseModel
from typing import Any, Optional
from decimal import Decimal
import json
from app.models.order import Order
from app.models.order_tracking import OrderTracking


# Request bodies use the camelCase keys sent by the web clients.
# Required fields are Optional here so the service can report every missing field at once.

class OrderCreate(BaseModel):
    customerName: Optional[str] = None
    customerPhone: Optional[str] = None
    customerEmail: Optional[str] = None
    customerId: Optional[str] = None
    deliveryAddress: Optional[str] = None
    customerLocationLat: Optional[float] = None
    customerLocationLng: Optional[float] = None
    notes: Optional[str] = None
    paymentMethod: Optional[str] = None
    items: Optional[Any] = None  # list of {name, price, quantity, notes} or its JSON string
    subtotal: Optional[Decimal] = None
    deliveryFee: Optional[Decimal] = None
    totalAmount: Optional[Decimal] = None  # Optional; must equal subtotal + deliveryFee when sent
    restaurantId: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = None
    message: Optional[str] = None
    updatedBy: Optional[str] = None
    updatedByType: Optional[str] = None


class DriverAssignment(BaseModel):
    driverId: Optional[str] = None


class OrderCancel(BaseModel):
    reason: Optional[str] = None
    cancelledBy: Optional[str] = None
    cancelledByType: Optional[str] = None


def _money(value) -> float:
    return float(value) if value is not None else 0.0


def _items(raw: Optional[str]):
    """Stored items are a JSON string; hand clients the parsed list when possible."""
    if not raw:
        return []
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status.value,
        "customerId": order.customer_id,
        "customerName": order.customer_name,
        "customerPhone": order.customer_phone,
        "customerEmail": order.customer_email,
        "deliveryAddress": order.delivery_address,
        "customerLocationLat": order.customer_location_lat,
        "customerLocationLng": order.customer_location_lng,
        "notes": order.notes,
        "paymentMethod": order.payment_method,
        "items": _items(order.items),
        "subtotal": _money(order.subtotal),
        "deliveryFee": _money(order.delivery_fee),
        "totalAmount": _money(order.total_amount),
        "driverEarnings": _money(order.driver_earnings),
        "restaurantId": order.restaurant_id,
        "driverId": order.driver_id,
        "estimatedTime": order.estimated_time,
        "cancellationReason": order.cancellation_reason,
        "cancelledAt": order.cancelled_at.isoformat() if order.cancelled_at else None,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
        "updatedAt": order.updated_at.isoformat() if order.updated_at else None
    }


def serialize_order_summary(order: Order) -> dict:
    """Shape returned by POST /orders"""
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status.value,
        "estimatedTime": order.estimated_time,
        "total": _money(order.total_amount)
    }


def serialize_tracking(entry: OrderTracking) -> dict:
    return {
        "id": entry.id,
        "orderId": entry.order_id,
        "status": entry.status.value,
        "message": entry.message,
        "createdBy": entry.created_by,
        "createdByType": entry.created_by_type.value,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None
    }
