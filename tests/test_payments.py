import re
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

import apartment_admin.services.audit as audit_module
from apartment_admin.config import settings
from apartment_admin.core.errors import ConcurrentUpdateError, NotFoundError, OverpaymentError
from apartment_admin.models.models import AuditLog, Due, Notification, Payment
from apartment_admin.services import payments as payment_service
from apartment_admin.services.ledger_store import LedgerStore


def _pay(db_session, actor, due, amount, **extra):
    return payment_service.record_payment(
        db_session,
        actor,
        due_id=due.id,
        amount=Decimal(amount),
        payment_date=extra.pop("payment_date", date(2025, 1, 20)),
        payment_method=extra.pop("payment_method", "bank-transfer"),
        **extra,
    )


def test_full_payment_marks_due_paid(db_session, actor, create_due):
    due = create_due(amount="500.00")

    _pay(db_session, actor, due, "500.00")

    db_session.refresh(due)
    assert due.status == "paid"
    assert due.paid_amount == Decimal("500.00")


def test_partial_payment_marks_due_partial(db_session, actor, create_due):
    due = create_due(amount="500.00")

    _pay(db_session, actor, due, "200.00")

    db_session.refresh(due)
    assert due.status == "partial"
    assert due.paid_amount == Decimal("200.00")


def test_payments_accumulate_until_due_including_late_fee_is_settled(db_session, actor, create_due):
    due = create_due(amount="1000.00", late_fee="10.00", status="overdue")

    _pay(db_session, actor, due, "600.00")
    db_session.refresh(due)
    assert due.status == "partial"

    _pay(db_session, actor, due, "410.00")
    db_session.refresh(due)
    assert due.status == "paid"
    assert due.paid_amount == Decimal("1010.00")


def test_payment_snapshots_due_location_and_issues_receipt(db_session, actor, create_flat, create_resident, create_due):
    flat = create_flat()
    resident = create_resident(flat=flat)
    due = create_due(flat=flat, amount="300.00")

    payment = _pay(db_session, actor, due, "300.00", bank_reference="TR-123", installment_number=1, total_installments=1)

    assert payment.apartment_id == flat.apartment_id
    assert payment.block_id == flat.block_id
    assert payment.flat_id == flat.id
    assert payment.resident_id == resident.id
    assert payment.created_by == actor.user_id
    assert re.fullmatch(r"RCP-\d{13}-[0-9A-F]{4}", payment.receipt_number)


def test_overpayment_is_rejected_by_default(db_session, actor, create_due):
    due = create_due(amount="500.00")

    with pytest.raises(OverpaymentError):
        _pay(db_session, actor, due, "600.00")

    db_session.refresh(due)
    assert due.paid_amount == Decimal("0")
    assert db_session.query(Payment).count() == 0


def test_overpayment_is_absorbed_when_configured(db_session, actor, create_due, monkeypatch):
    monkeypatch.setattr(settings, "overpayment_policy", "absorb")
    due = create_due(amount="500.00")

    _pay(db_session, actor, due, "600.00")

    db_session.refresh(due)
    assert due.status == "paid"
    assert due.paid_amount == Decimal("600.00")


def test_payment_for_missing_or_deleted_due_raises_not_found(db_session, actor, create_due):
    due = create_due()
    due.is_deleted = True
    db_session.commit()

    with pytest.raises(NotFoundError):
        _pay(db_session, actor, due, "10.00")
    with pytest.raises(NotFoundError):
        payment_service.record_payment(
            db_session,
            actor,
            due_id="missing",
            amount=Decimal("10"),
            payment_date=date(2025, 1, 1),
            payment_method="cash",
        )


def test_payment_is_audited_and_confirmed(db_session, actor, create_due):
    due = create_due(amount="500.00")

    payment = _pay(db_session, actor, due, "500.00")

    entry = db_session.query(AuditLog).filter(AuditLog.entity_type == "payment").one()
    assert entry.entity_id == payment.id
    assert entry.user_id == actor.user_id
    assert payment.receipt_number in entry.description
    due_entry = db_session.query(AuditLog).filter(AuditLog.entity_type == "due", AuditLog.entity_id == due.id).one()
    assert '"status": "paid"' in due_entry.new_value
    notification = db_session.query(Notification).filter(Notification.type == "payment").one()
    assert notification.entity_id == payment.id


def test_audit_failure_does_not_fail_the_payment(db_session, actor, create_due, monkeypatch):
    original = audit_module.AuditLog

    def _broken_entry(**fields):
        return original(**{**fields, "action": None})

    monkeypatch.setattr(audit_module, "AuditLog", _broken_entry)
    due = create_due(amount="500.00")

    payment = _pay(db_session, actor, due, "500.00")

    assert db_session.query(Payment).filter(Payment.id == payment.id).count() == 1
    db_session.refresh(due)
    assert due.status == "paid"
    assert db_session.query(AuditLog).count() == 0


def test_receipt_numbers_do_not_collide():
    receipts = {payment_service.generate_receipt_number() for _ in range(10_000)}

    assert len(receipts) == 10_000


def test_list_payments_filters_by_flat_and_date_range(db_session, actor, create_flat, create_due):
    flat = create_flat()
    other_flat = create_flat()
    due = create_due(flat=flat, amount="900.00")
    other_due = create_due(flat=other_flat, amount="900.00")
    early = _pay(db_session, actor, due, "100.00", payment_date=date(2025, 1, 5))
    late = _pay(db_session, actor, due, "100.00", payment_date=date(2025, 2, 5))
    _pay(db_session, actor, other_due, "100.00", payment_date=date(2025, 1, 5))

    by_flat = payment_service.list_payments(db_session, flat_id=flat.id)
    january = payment_service.list_payments(db_session, start=date(2025, 1, 1), end=date(2025, 1, 31))

    assert [payment.id for payment in by_flat] == [late.id, early.id]
    assert len(january) == 2
    assert early.id in {payment.id for payment in january}


def test_concurrent_due_change_rolls_back_the_payment(db_session, actor, create_due, monkeypatch):
    due = create_due(amount="500.00")
    other_session = Session(bind=db_session.get_bind())
    original_status = payment_service.status_after_payment

    def _status_after_concurrent_edit(target, paid_amount):
        competing = other_session.get(Due, due.id)
        LedgerStore(other_session).update(competing, paid_amount=Decimal("100.00"), status="partial")
        return original_status(target, paid_amount)

    monkeypatch.setattr(payment_service, "status_after_payment", _status_after_concurrent_edit)
    try:
        with pytest.raises(ConcurrentUpdateError):
            _pay(db_session, actor, due, "200.00")
    finally:
        other_session.close()

    db_session.refresh(due)
    assert due.paid_amount == Decimal("100.00")
    assert due.status == "partial"
    assert payment_service.list_payments(db_session, due_id=due.id) == []
    assert db_session.query(Payment).count() == 0
