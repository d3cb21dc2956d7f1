import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import NotFoundError, InternalError
from app.models import Notification, RecipientType, NotificationType
from app.repositories.storage import Storage
from app.services import assignment_service, notification_service, order_service


def _notifications(db, order_id):
    db.expire_all()
    return db.query(Notification).filter(Notification.order_id == order_id).all()


def _audience(notifications):
    return sorted((n.type, n.recipient_type.value, n.recipient_id or "*") for n in notifications)


def test_order_created_reaches_restaurant_drivers_and_admin(db, session_factory, make_order, restaurant):
    order = make_order()

    notification_service.notify_order_created(session_factory, order.id)

    assert _audience(_notifications(db, order.id)) == [
        ("new_order", "admin", "*"),
        ("new_order", "driver", "*"),
        ("new_order", "restaurant", restaurant.id),
    ]


def test_status_change_reaches_customer_and_admin(db, session_factory, make_order):
    order = make_order()

    notification_service.notify_status_changed(session_factory, order.id, "order confirmed, preparing")

    notifications = _notifications(db, order.id)
    assert _audience(notifications) == [
        ("order_status", "admin", "*"),
        ("order_status", "customer", "0501234567"),
    ]
    customer = next(n for n in notifications if n.recipient_type == RecipientType.CUSTOMER)
    assert "order confirmed, preparing" in customer.message


def test_registered_customer_addressed_by_id(db, session_factory, make_order):
    order = make_order(customerId="cust-42")

    notification_service.notify_status_changed(session_factory, order.id, "order confirmed, preparing")

    customer = [n for n in _notifications(db, order.id) if n.recipient_type == RecipientType.CUSTOMER]
    assert [n.recipient_id for n in customer] == ["cust-42"]


def test_driver_assigned_tells_other_available_drivers(db, session_factory, make_order, make_driver):
    order = make_order()
    winner = make_driver(name="Omar Haddad")
    idle = make_driver()
    make_driver(available=False)
    make_driver(active=False)
    assignment_service.assign_driver(db, order.id, winner.id)

    notification_service.notify_driver_assigned(session_factory, order.id)

    notifications = _notifications(db, order.id)
    assert _audience(notifications) == [
        ("driver_assigned", "admin", "*"),
        ("driver_assigned", "customer", "0501234567"),
        ("order_taken", "driver", idle.id),
    ]
    customer = next(n for n in notifications if n.recipient_type == RecipientType.CUSTOMER)
    assert "Omar Haddad" in customer.message


def test_order_cancelled_reaches_customer(db, session_factory, make_order):
    order = make_order()
    order_service.cancel_order(db, order.id, "out of stock")

    notification_service.notify_order_cancelled(session_factory, order.id, "out of stock")

    notifications = _notifications(db, order.id)
    assert _audience(notifications) == [("order_cancelled", "customer", "0501234567")]
    assert notifications[0].message.endswith(": out of stock")


def test_unknown_order_is_skipped(db, session_factory):
    notification_service.notify_order_created(session_factory, "missing-order")
    assert db.query(Notification).count() == 0


def test_broken_session_factory_does_not_raise(make_order):
    order = make_order()

    def broken():
        raise RuntimeError("database unreachable")

    notification_service.notify_order_created(broken, order.id)


def test_one_failed_notification_does_not_stop_the_rest(db, session_factory, make_order, monkeypatch):
    order = make_order()
    create = Storage.create_notification

    def flaky(self, **fields):
        if fields["recipient_type"] == RecipientType.DRIVER:
            raise RuntimeError("insert failed")
        return create(self, **fields)

    monkeypatch.setattr(Storage, "create_notification", flaky)

    notification_service.notify_order_created(session_factory, order.id)

    assert _audience(_notifications(db, order.id)) == [
        ("new_order", "admin", "*"),
        ("new_order", "restaurant", order.restaurant_id),
    ]


def test_failed_notification_leaves_order_untouched(db, session_factory, make_order, monkeypatch):
    order = make_order()
    order = order_service.update_status(db, order.id, "confirmed")

    def failing(self, **fields):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(Storage, "create_notification", failing)
    notification_service.notify_status_changed(session_factory, order.id, "order confirmed, preparing")

    assert order_service.get_order(db, order.id).status.value == "confirmed"
    assert _notifications(db, order.id) == []


def test_inbox_includes_broadcasts(db, session_factory, make_order, make_driver):
    order = make_order()
    winner, idle = make_driver(), make_driver()
    notification_service.notify_order_created(session_factory, order.id)
    assignment_service.assign_driver(db, order.id, winner.id)
    notification_service.notify_driver_assigned(session_factory, order.id)

    db.expire_all()
    storage = Storage(db)
    idle_inbox = storage.get_notifications(RecipientType.DRIVER, idle.id)
    assert sorted(n.type for n in idle_inbox) == ["new_order", "order_taken"]

    winner_inbox = storage.get_notifications(RecipientType.DRIVER, winner.id)
    assert [n.type for n in winner_inbox] == ["new_order"]

    broadcasts = storage.get_notifications(RecipientType.DRIVER)
    assert [n.type for n in broadcasts] == [NotificationType.NEW_ORDER.value]


def test_mark_read(db, session_factory, make_order):
    order = make_order()
    notification_service.notify_order_created(session_factory, order.id)
    notification = _notifications(db, order.id)[0]

    updated = notification_service.mark_read(db, notification.id)

    assert updated.is_read is True
    unread = Storage(db).get_notifications(updated.recipient_type, updated.recipient_id, unread_only=True)
    assert notification.id not in [n.id for n in unread]


def test_mark_read_rolls_back_on_database_error(db, session_factory, make_order, monkeypatch):
    order = make_order()
    notification_service.notify_order_created(session_factory, order.id)
    notification = _notifications(db, order.id)[0]

    def failing_commit():
        raise OperationalError("UPDATE notifications", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(InternalError):
        notification_service.mark_read(db, notification.id)

    monkeypatch.undo()
    assert db.get(Notification, notification.id).is_read is False


def test_mark_read_unknown(db):
    with pytest.raises(NotFoundError):
        notification_service.mark_read(db, "missing")
