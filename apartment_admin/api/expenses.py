from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..models.models import Expense
from ..schemas.schemas import ExpenseCreate, ExpenseRead, ExpenseStatus, ExpenseUpdate
from ..services import expenses as expense_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[ExpenseRead])
def list_expenses(
    apartment_id: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[ExpenseStatus] = None,
    recurring: Optional[bool] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return expense_service.list_expenses(
        db,
        apartment_id=apartment_id,
        category=category,
        status=status,
        recurring=recurring,
        start=start,
        end=end,
    )


@router.get("/summary")
def monthly_summary(
    apartment_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
) -> Dict[str, Any]:
    return expense_service.monthly_summary(db, apartment_id, year, month)


@router.post("/", response_model=ExpenseRead, status_code=201)
def create_expense(payload: ExpenseCreate, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return expense_service.create_expense(db, actor, payload.model_dump())


@router.get("/{expense_id}", response_model=ExpenseRead)
def get_expense(expense_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Expense, expense_id)


@router.patch("/{expense_id}", response_model=ExpenseRead)
def update_expense(
    expense_id: str,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return expense_service.update_expense(db, actor, expense_id, payload.model_dump(exclude_unset=True))


@router.delete("/{expense_id}", status_code=204)
def delete_expense(expense_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> None:
    expense_service.delete_expense(db, actor, expense_id)


@router.post("/{expense_id}/approve", response_model=ExpenseRead)
def approve_expense(expense_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return expense_service.approve_expense(db, actor, expense_id)


@router.post("/{expense_id}/reject", response_model=ExpenseRead)
def reject_expense(expense_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return expense_service.reject_expense(db, actor, expense_id)
