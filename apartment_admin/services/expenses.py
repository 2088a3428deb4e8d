from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..core.errors import InvalidTransitionError
from ..models.models import Apartment, Expense, utcnow
from ..utils.csv_utils import money
from .audit import audit_log
from .due_status import as_decimal
from .ledger_store import LedgerStore, snapshot

EXPENSE_FIELDS = (
    "category",
    "amount",
    "description",
    "vendor",
    "expense_date",
    "is_recurring",
    "recurring_period",
    "status",
)


def create_expense(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Expense:
    store = LedgerStore(db)
    store.require(Apartment, data["apartment_id"])
    expense = store.create(
        Expense,
        **{**data, "status": "pending", "approved_by": None, "approval_date": None, "created_by": actor.user_id},
    )
    audit_log(
        db,
        actor,
        action="create",
        entity_type="expense",
        entity_id=expense.id,
        new_value=data,
        description=f"Expense recorded: {expense.category} - {money(expense.amount)} TL",
    )
    return expense


def update_expense(db: Session, actor: AdminSession, expense_id: str, changes: Dict[str, Any]) -> Expense:
    store = LedgerStore(db)
    expense = store.require(Expense, expense_id)
    before = snapshot(expense, EXPENSE_FIELDS)
    if changes.get("is_recurring") is False:
        changes = {**changes, "recurring_period": None}
    store.update(expense, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="expense",
        entity_id=expense.id,
        old_value=before,
        new_value=changes,
        description=f"Expense updated: {expense.category}",
    )
    return expense


def delete_expense(db: Session, actor: AdminSession, expense_id: str) -> None:
    store = LedgerStore(db)
    expense = store.require(Expense, expense_id)
    store.soft_delete(expense)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="expense",
        entity_id=expense.id,
        description=f"Expense deleted: {expense.category} - {money(expense.amount)} TL",
    )


def _decide(db: Session, actor: AdminSession, expense_id: str, decision: str) -> Expense:
    store = LedgerStore(db)
    expense = store.require(Expense, expense_id)
    if expense.status != "pending":
        raise InvalidTransitionError(f"Expense is already {expense.status}.")
    store.update(expense, status=decision, approved_by=actor.user_id, approval_date=utcnow())
    audit_log(
        db,
        actor,
        action="approve" if decision == "approved" else "reject",
        entity_type="expense",
        entity_id=expense.id,
        old_value={"status": "pending"},
        new_value={"status": decision},
        description=f"Expense {decision}: {expense.category} - {money(expense.amount)} TL",
    )
    return expense


def approve_expense(db: Session, actor: AdminSession, expense_id: str) -> Expense:
    return _decide(db, actor, expense_id, "approved")


def reject_expense(db: Session, actor: AdminSession, expense_id: str) -> Expense:
    return _decide(db, actor, expense_id, "rejected")


def list_expenses(
    db: Session,
    *,
    apartment_id: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    recurring: Optional[bool] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Expense]:
    filters: Dict[str, Any] = {}
    if apartment_id:
        filters["apartment_id"] = apartment_id
    if category:
        filters["category"] = category
    if status:
        filters["status"] = status
    if recurring is not None:
        filters["is_recurring"] = recurring
    store = LedgerStore(db)
    query = store.query(Expense, **filters)
    if start:
        query = query.filter(Expense.expense_date >= start)
    if end:
        query = query.filter(Expense.expense_date <= end)
    return store.all(query.order_by(Expense.expense_date.desc()))


def category_totals(expenses: List[Expense]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for expense in expenses:
        totals[expense.category] += as_decimal(expense.amount)
    return dict(totals)


def monthly_summary(db: Session, apartment_id: str, year: int, month: int) -> Dict[str, Any]:
    """Expense totals for one calendar month, excluding rejected expenses."""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    expenses = [
        expense
        for expense in list_expenses(db, apartment_id=apartment_id, start=start)
        if expense.expense_date < end and expense.status != "rejected"
    ]
    return {
        "year": year,
        "month": month,
        "count": len(expenses),
        "total": sum((as_decimal(expense.amount) for expense in expenses), Decimal("0")),
        "by_category": category_totals(expenses),
    }
