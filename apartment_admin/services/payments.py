import logging
import secrets
import threading
import time
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..config import settings
from ..constants import RECEIPT_PREFIX
from ..core.errors import BackendUnavailableError, OverpaymentError
from ..models.models import Due, Flat, Payment
from ..utils.csv_utils import money
from .audit import audit_log
from .due_status import as_decimal, outstanding_balance, status_after_payment, total_due
from .ledger_store import LedgerStore
from .notifications import payment_confirmation

logger = logging.getLogger(__name__)

_receipt_lock = threading.Lock()
_last_receipt_millis = 0


def generate_receipt_number() -> str:
    """Return ``RCP-<epoch millis>-<4 random hex chars>``.

    The millisecond part never repeats within a process: a second receipt in
    the same millisecond takes the next one. The unique column on
    ``payments.receipt_number`` catches clashes between processes.
    """
    global _last_receipt_millis
    with _receipt_lock:
        millis = max(int(time.time() * 1000), _last_receipt_millis + 1)
        _last_receipt_millis = millis
    return f"{RECEIPT_PREFIX}-{millis}-{secrets.token_hex(2).upper()}"


def record_payment(
    db: Session,
    actor: AdminSession,
    *,
    due_id: str,
    amount: Decimal,
    payment_date: date,
    payment_method: str,
    bank_reference: str = "",
    description: str = "",
    installment_number: Optional[int] = None,
    total_installments: Optional[int] = None,
    overpayment_policy: Optional[str] = None,
) -> Payment:
    """Record a payment against a due and bring the due's paid amount and status up to date.

    The payment snapshots the due's apartment/block/flat/resident ids and is
    never modified afterwards. Raises ``NotFoundError`` for unknown dues and
    ``OverpaymentError`` when the amount exceeds the outstanding balance under
    the ``reject`` policy.
    """
    store = LedgerStore(db)
    due = store.require(Due, due_id)
    amount = as_decimal(amount)

    policy = overpayment_policy or settings.overpayment_policy
    balance = outstanding_balance(due)
    if policy == "reject" and amount > balance:
        raise OverpaymentError(
            f"Payment of {money(amount)} exceeds the outstanding balance of {money(balance)}."
        )

    before = {"paid_amount": due.paid_amount, "status": due.status}
    new_paid_amount = as_decimal(due.paid_amount) + amount
    new_status = status_after_payment(due, new_paid_amount)

    receipt_number = generate_receipt_number()
    # The payment row and the due's balance commit together; a stale due rolls back both.
    payment = store.create_with_update(
        Payment,
        {
            "due_id": due.id,
            "apartment_id": due.apartment_id,
            "block_id": due.block_id,
            "flat_id": due.flat_id,
            "resident_id": due.resident_id,
            "amount": amount,
            "payment_date": payment_date,
            "payment_method": payment_method,
            "bank_reference": bank_reference,
            "receipt_number": receipt_number,
            "description": description,
            "installment_number": installment_number,
            "total_installments": total_installments,
            "created_by": actor.user_id,
        },
        due,
        paid_amount=new_paid_amount,
        status=new_status,
    )
    if new_paid_amount > total_due(due):
        logger.warning("Due %s overpaid by %s", due.id, money(new_paid_amount - total_due(due)))

    audit_log(
        db,
        actor,
        action="update",
        entity_type="due",
        entity_id=due.id,
        old_value=before,
        new_value={"paid_amount": new_paid_amount, "status": new_status},
        description=f"Due updated by payment {receipt_number}",
    )
    audit_log(
        db,
        actor,
        action="create",
        entity_type="payment",
        entity_id=payment.id,
        new_value={
            "due_id": due.id,
            "amount": amount,
            "payment_date": payment_date,
            "payment_method": payment_method,
            "receipt_number": receipt_number,
        },
        description=f"Payment recorded: {money(amount)} TL - {receipt_number}",
    )

    flat = store.get(Flat, due.flat_id)
    try:
        payment_confirmation(db, flat.flat_number if flat else due.flat_id, amount, payment.id)
    except BackendUnavailableError:
        logger.warning("Payment confirmation notification skipped for %s", payment.id)
    return payment


def list_payments(
    db: Session,
    *,
    due_id: Optional[str] = None,
    resident_id: Optional[str] = None,
    flat_id: Optional[str] = None,
    apartment_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Payment]:
    store = LedgerStore(db)
    filters = {
        key: value
        for key, value in {
            "due_id": due_id,
            "resident_id": resident_id,
            "flat_id": flat_id,
            "apartment_id": apartment_id,
        }.items()
        if value
    }
    query = store.query(Payment, **filters)
    if start:
        query = query.filter(Payment.payment_date >= start)
    if end:
        query = query.filter(Payment.payment_date <= end)
    return store.all(query.order_by(Payment.payment_date.desc(), Payment.created_at.desc()))


def get_payment(db: Session, payment_id: str) -> Payment:
    return LedgerStore(db).require(Payment, payment_id)
