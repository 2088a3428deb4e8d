from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..config import settings
from ..models.models import Due, Flat

CENT = Decimal("0.01")


def as_decimal(amount: Decimal | float | int | str | None) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def calculate_late_fee(amount: Decimal | float, days_late: int, rate: Optional[float] = None) -> Decimal:
    """Simple daily-rate penalty: ``amount * rate * days_late`` rounded half-up to cents."""
    if days_late <= 0:
        return Decimal("0.00")
    rate_per_day = as_decimal(settings.late_fee_rate if rate is None else rate)
    return (as_decimal(amount) * rate_per_day * days_late).quantize(CENT, rounding=ROUND_HALF_UP)


def days_late(due_date: date, today: date) -> int:
    return max(0, (today - due_date).days)


def total_due(due: Due) -> Decimal:
    return as_decimal(due.amount) + as_decimal(due.late_fee)


def outstanding_balance(due: Due) -> Decimal:
    return max(total_due(due) - as_decimal(due.paid_amount), Decimal("0.00"))


def status_after_payment(due: Due, paid_amount: Decimal) -> str:
    # Any payment clears "overdue"; the due is either settled or partially paid.
    return "paid" if paid_amount >= total_due(due) else "partial"


def status_for_balance(due: Due) -> str:
    """Status implied by ``paid_amount`` against amount plus late fee.

    An unsettled overdue due stays overdue so its late fee is not charged again.
    """
    paid = as_decimal(due.paid_amount)
    if paid > 0 and paid >= total_due(due):
        return "paid"
    if due.status == "overdue":
        return "overdue"
    return "partial" if paid > 0 else "pending"


def period_due_date(year: int, month: int, day: Optional[int] = None) -> date:
    return date(year, month, day or settings.default_due_day)


def resident_for_flat(flat: Flat) -> str:
    """Tenant if present, else owner, else an empty attribution."""
    return flat.tenant_id or flat.owner_id or ""
