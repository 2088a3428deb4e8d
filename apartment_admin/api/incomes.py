from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..models.models import Income
from ..schemas.schemas import IncomeCreate, IncomeRead, IncomeUpdate
from ..services import incomes as income_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[IncomeRead])
def list_incomes(
    apartment_id: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return income_service.list_incomes(db, apartment_id=apartment_id, category=category, start=start, end=end)


@router.post("/", response_model=IncomeRead, status_code=201)
def create_income(payload: IncomeCreate, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return income_service.create_income(db, actor, payload.model_dump())


@router.get("/{income_id}", response_model=IncomeRead)
def get_income(income_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Income, income_id)


@router.patch("/{income_id}", response_model=IncomeRead)
def update_income(
    income_id: str,
    payload: IncomeUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return income_service.update_income(db, actor, income_id, payload.model_dump(exclude_unset=True))


@router.delete("/{income_id}", status_code=204)
def delete_income(income_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> None:
    income_service.delete_income(db, actor, income_id)
