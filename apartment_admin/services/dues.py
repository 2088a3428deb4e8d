import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..config import settings
from ..constants import OPEN_DUE_STATUSES, SETTLEMENT_PAYMENT_METHOD
from ..core.errors import BackendUnavailableError, ConcurrentUpdateError, DuplicateDueError
from ..models.models import Block, Due, Flat
from ..utils.validators import month_name
from .audit import audit_log
from .due_status import (
    as_decimal,
    calculate_late_fee,
    days_late,
    outstanding_balance,
    period_due_date,
    resident_for_flat,
    status_for_balance,
)
from .ledger_store import LedgerStore, snapshot
from .notifications import monthly_reminder, overdue_alert
from .payments import record_payment

logger = logging.getLogger(__name__)

DUE_FIELDS = ("amount", "due_date", "status", "paid_amount", "late_fee", "late_fee_applied", "description")


def _existing_period_flat_ids(store: LedgerStore, flat_ids: List[str], month: int, year: int) -> set:
    if not flat_ids:
        return set()
    rows = store.all(store.query(Due, flat_id=flat_ids, month=month, year=year).with_entities(Due.flat_id))
    return {row.flat_id for row in rows}


def create_due(
    db: Session,
    actor: AdminSession,
    *,
    flat_id: str,
    amount: Decimal,
    month: int,
    year: int,
    due_date: Optional[date] = None,
    resident_id: Optional[str] = None,
    description: str = "",
) -> Due:
    """Create a single due for a flat, attributed to its tenant or owner unless given explicitly."""
    store = LedgerStore(db)
    flat = store.require(Flat, flat_id)
    if not settings.allow_duplicate_period_dues and _existing_period_flat_ids(store, [flat.id], month, year):
        raise DuplicateDueError(f"Flat {flat.flat_number} already has a due for {month_name(month)} {year}.")

    due = store.create(
        Due,
        apartment_id=flat.apartment_id,
        block_id=flat.block_id,
        flat_id=flat.id,
        resident_id=resident_for_flat(flat) if resident_id is None else resident_id,
        amount=as_decimal(amount),
        month=month,
        year=year,
        due_date=due_date or period_due_date(year, month),
        status="pending",
        paid_amount=Decimal("0"),
        late_fee=Decimal("0"),
        late_fee_applied=False,
        description=description,
    )
    audit_log(
        db,
        actor,
        action="create",
        entity_type="due",
        entity_id=due.id,
        new_value={"flat_id": flat.id, "amount": due.amount, "month": month, "year": year},
        description=f"Due created: flat {flat.flat_number} - {month_name(month)} {year}",
    )
    return due


def bulk_create_dues(
    db: Session,
    actor: AdminSession,
    *,
    apartment_id: str,
    amount: Decimal,
    month: int,
    year: int,
    block_id: Optional[str] = None,
    description: str = "",
) -> List[str]:
    """Generate one pending due per flat in the apartment (or one block of it).

    Rows are written in chunks of at most ``batch_write_limit``; a storage
    failure part-way leaves earlier chunks in place. Flats that already have a
    due for the period are skipped unless duplicates are allowed. Returns the
    ids of the created dues.
    """
    store = LedgerStore(db)
    if block_id:
        store.require(Block, block_id)
        flats = store.all(store.query(Flat, block_id=block_id).order_by(Flat.flat_number.asc()))
    else:
        flats = store.all(store.query(Flat, apartment_id=apartment_id).order_by(Flat.flat_number.asc()))

    if not settings.allow_duplicate_period_dues:
        existing = _existing_period_flat_ids(store, [flat.id for flat in flats], month, year)
        if existing:
            logger.info("Skipping %s flats that already have dues for %s/%s", len(existing), month, year)
        flats = [flat for flat in flats if flat.id not in existing]

    due_date = period_due_date(year, month)
    description = description or f"{month}/{year} dues"
    rows = [
        {
            "apartment_id": flat.apartment_id,
            "block_id": flat.block_id,
            "flat_id": flat.id,
            "resident_id": resident_for_flat(flat),
            "amount": as_decimal(amount),
            "month": month,
            "year": year,
            "due_date": due_date,
            "status": "pending",
            "paid_amount": Decimal("0"),
            "late_fee": Decimal("0"),
            "late_fee_applied": False,
            "description": description,
        }
        for flat in flats
    ]
    due_ids = store.batch_create(Due, rows)

    label = month_name(month)
    audit_log(
        db,
        actor,
        action="create",
        entity_type="due",
        entity_id="bulk",
        new_value={
            "apartment_id": apartment_id,
            "block_id": block_id,
            "amount": as_decimal(amount),
            "month": month,
            "year": year,
            "count": len(due_ids),
        },
        description=f"Bulk dues created: {len(due_ids)} flats - {label} {year}",
    )
    if due_ids:
        try:
            monthly_reminder(db, label, year, count=len(due_ids))
        except BackendUnavailableError:
            logger.warning("Monthly reminder notification skipped for %s %s", label, year)
    return due_ids


def update_due(db: Session, actor: AdminSession, due_id: str, changes: Dict[str, Any]) -> Due:
    store = LedgerStore(db)
    due = store.require(Due, due_id)
    before = snapshot(due, DUE_FIELDS)
    for field, value in changes.items():
        setattr(due, field, value)
    changes = {**changes, "status": status_for_balance(due)}
    store.update(due, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="due",
        entity_id=due.id,
        old_value=before,
        new_value=changes,
        description=f"Due updated: {month_name(due.month)} {due.year}",
    )
    return due


def mark_as_paid(db: Session, actor: AdminSession, due_id: str, payment_date: Optional[date] = None) -> Due:
    """Settle a due in full.

    The outstanding balance is booked as a settlement payment so that the
    payment ledger and ``paid_amount`` stay in agreement. A due with nothing
    outstanding only has its status set.
    """
    store = LedgerStore(db)
    due = store.require(Due, due_id)
    balance = outstanding_balance(due)
    if balance > 0:
        record_payment(
            db,
            actor,
            due_id=due.id,
            amount=balance,
            payment_date=payment_date or date.today(),
            payment_method=SETTLEMENT_PAYMENT_METHOD,
            description="Marked as paid",
        )
        db.refresh(due)
        return due
    if due.status != "paid":
        before = {"status": due.status}
        store.update(due, status="paid")
        audit_log(
            db,
            actor,
            action="update",
            entity_type="due",
            entity_id=due.id,
            old_value=before,
            new_value={"status": "paid"},
            description=f"Due marked as paid: {month_name(due.month)} {due.year}",
        )
    return due


def apply_late_fees(
    db: Session,
    actor: AdminSession,
    now: Optional[Union[date, datetime]] = None,
    rate: Optional[float] = None,
) -> int:
    """Charge late fees on every open due whose due date has passed.

    Only pending and partial dues are considered, so the fee is fixed when a
    due first turns overdue and a second run updates nothing. Each due is
    committed on its own; a due modified concurrently is skipped and picked up
    by the next run. Returns the number of dues updated.
    """
    if now is None:
        today = date.today()
    elif isinstance(now, datetime):
        today = now.date()
    else:
        today = now

    store = LedgerStore(db)
    candidates = store.all(
        store.query(Due, status=list(OPEN_DUE_STATUSES)).filter(Due.due_date < today).order_by(Due.due_date.asc())
    )
    flat_numbers: Dict[str, str] = {}
    if candidates:
        flats = store.all(store.query(Flat, id=list({due.flat_id for due in candidates})))
        flat_numbers = {flat.id: flat.flat_number for flat in flats}

    updated = 0
    for due in candidates:
        late_fee = calculate_late_fee(due.amount, days_late(due.due_date, today), rate)
        try:
            store.update(due, late_fee=late_fee, late_fee_applied=True, status="overdue")
        except ConcurrentUpdateError:
            logger.warning("Late fee skipped for due %s: modified concurrently", due.id)
            continue
        updated += 1
        try:
            overdue_alert(db, flat_numbers.get(due.flat_id, due.flat_id), outstanding_balance(due), due.id)
        except BackendUnavailableError:
            logger.warning("Overdue notification skipped for due %s", due.id)

    if updated:
        audit_log(
            db,
            actor,
            action="update",
            entity_type="due",
            entity_id="batch",
            new_value={"updated": updated, "date": today},
            description=f"Late fees applied to {updated} dues",
        )
    logger.info("Late fee run on %s updated %s dues", today.isoformat(), updated)
    return updated


def get_due(db: Session, due_id: str) -> Due:
    return LedgerStore(db).require(Due, due_id)


def list_dues(
    db: Session,
    *,
    apartment_id: Optional[str] = None,
    block_id: Optional[str] = None,
    flat_id: Optional[str] = None,
    resident_id: Optional[str] = None,
    status: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> List[Due]:
    filters = {
        key: value
        for key, value in {
            "apartment_id": apartment_id,
            "block_id": block_id,
            "flat_id": flat_id,
            "resident_id": resident_id,
            "status": status,
            "month": month,
            "year": year,
        }.items()
        if value is not None
    }
    store = LedgerStore(db)
    return store.all(store.query(Due, **filters).order_by(Due.year.desc(), Due.month.desc(), Due.due_date.asc()))


def overdue_dues(db: Session, apartment_id: Optional[str] = None) -> List[Due]:
    return list_dues(db, apartment_id=apartment_id, status="overdue")
