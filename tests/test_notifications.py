from decimal import Decimal

import pytest

from apartment_admin.core.errors import NotFoundError
from apartment_admin.services import notifications as notification_service


def test_overdue_and_payment_helpers_create_unread_notifications(db_session):
    notification_service.overdue_alert(db_session, "4", Decimal("1010"), "due-1")
    notification_service.payment_confirmation(db_session, "4", Decimal("250.5"), "payment-1")

    unread = notification_service.list_notifications(db_session, unread_only=True)

    assert {notification.type for notification in unread} == {"overdue", "payment"}
    messages = {notification.type: notification.message for notification in unread}
    assert messages["overdue"] == "Flat 4 - 1010.00 TL in dues is overdue."
    assert messages["payment"] == "Flat 4 - 250.50 TL payment recorded."


def test_mark_read_and_mark_all_read(db_session):
    first = notification_service.monthly_reminder(db_session, "March", 2025, count=12)
    notification_service.monthly_reminder(db_session, "April", 2025)
    notification_service.monthly_reminder(db_session, "May", 2025)

    read = notification_service.mark_read(db_session, first.id)

    assert read.is_read is True
    assert read.read_at is not None
    assert len(notification_service.list_notifications(db_session, unread_only=True)) == 2
    assert notification_service.mark_all_read(db_session) == 2
    assert notification_service.list_notifications(db_session, unread_only=True) == []
    assert len(notification_service.list_notifications(db_session)) == 3


def test_mark_read_unknown_notification(db_session):
    with pytest.raises(NotFoundError):
        notification_service.mark_read(db_session, "missing")
