from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..models.models import Apartment, Income
from ..utils.csv_utils import money
from .audit import audit_log
from .ledger_store import LedgerStore, snapshot

INCOME_FIELDS = ("category", "amount", "description", "payer", "income_date")


def create_income(db: Session, actor: AdminSession, data: Dict[str, Any]) -> Income:
    store = LedgerStore(db)
    store.require(Apartment, data["apartment_id"])
    income = store.create(Income, **{**data, "created_by": actor.user_id})
    audit_log(
        db,
        actor,
        action="create",
        entity_type="income",
        entity_id=income.id,
        new_value=data,
        description=f"Income recorded: {income.category} - {money(income.amount)} TL",
    )
    return income


def update_income(db: Session, actor: AdminSession, income_id: str, changes: Dict[str, Any]) -> Income:
    store = LedgerStore(db)
    income = store.require(Income, income_id)
    before = snapshot(income, INCOME_FIELDS)
    store.update(income, **changes)
    audit_log(
        db,
        actor,
        action="update",
        entity_type="income",
        entity_id=income.id,
        old_value=before,
        new_value=changes,
        description=f"Income updated: {income.category}",
    )
    return income


def delete_income(db: Session, actor: AdminSession, income_id: str) -> None:
    store = LedgerStore(db)
    income = store.require(Income, income_id)
    store.soft_delete(income)
    audit_log(
        db,
        actor,
        action="delete",
        entity_type="income",
        entity_id=income.id,
        description=f"Income deleted: {income.category} - {money(income.amount)} TL",
    )


def list_incomes(
    db: Session,
    *,
    apartment_id: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Income]:
    filters: Dict[str, Any] = {}
    if apartment_id:
        filters["apartment_id"] = apartment_id
    if category:
        filters["category"] = category
    store = LedgerStore(db)
    query = store.query(Income, **filters)
    if start:
        query = query.filter(Income.income_date >= start)
    if end:
        query = query.filter(Income.income_date <= end)
    return store.all(query.order_by(Income.income_date.desc()))
