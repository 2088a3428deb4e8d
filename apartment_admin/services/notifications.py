from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.models import Notification, utcnow
from ..utils.csv_utils import money
from .ledger_store import LedgerStore

logger = logging.getLogger(__name__)


def create_notification(
    session: Session,
    *,
    type: str,
    title: str,
    message: str,
    entity_type: str,
    entity_id: str,
) -> Notification:
    store = LedgerStore(session)
    notification = store.create(
        Notification,
        type=type,
        title=title,
        message=message,
        is_read=False,
        entity_type=entity_type,
        entity_id=entity_id,
        read_at=None,
    )
    logger.debug("Notification %s created for %s %s", notification.id, entity_type, entity_id)
    return notification


def list_notifications(session: Session, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    store = LedgerStore(session)
    query = store.query(Notification, is_read=False) if unread_only else store.query(Notification)
    return store.all(query.order_by(Notification.created_at.desc()).limit(limit))


def mark_read(session: Session, notification_id: str) -> Notification:
    store = LedgerStore(session)
    notification = store.require(Notification, notification_id)
    if not notification.is_read:
        store.update(notification, is_read=True, read_at=utcnow())
    return notification


def mark_all_read(session: Session) -> int:
    store = LedgerStore(session)
    unread = store.all(store.query(Notification, is_read=False))
    for notification in unread:
        store.update(notification, is_read=True, read_at=utcnow())
    return len(unread)


def overdue_alert(session: Session, flat_number: str, outstanding: Decimal, due_id: str) -> Notification:
    return create_notification(
        session,
        type="overdue",
        title="Overdue dues",
        message=f"Flat {flat_number} - {money(outstanding)} TL in dues is overdue.",
        entity_type="due",
        entity_id=due_id,
    )


def payment_confirmation(session: Session, flat_number: str, amount: Decimal, payment_id: str) -> Notification:
    return create_notification(
        session,
        type="payment",
        title="Payment received",
        message=f"Flat {flat_number} - {money(amount)} TL payment recorded.",
        entity_type="payment",
        entity_id=payment_id,
    )


def monthly_reminder(session: Session, month_label: str, year: int, count: Optional[int] = None) -> Notification:
    suffix = f" ({count} flats)" if count is not None else ""
    return create_notification(
        session,
        type="reminder",
        title="Monthly dues generated",
        message=f"Dues for {month_label} {year} have been generated{suffix}.",
        entity_type="system",
        entity_id="monthly-reminder",
    )
