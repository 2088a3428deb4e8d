from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..schemas.schemas import PaymentCreate, PaymentRead
from ..services import payments as payment_service

router = APIRouter()


@router.get("/", response_model=List[PaymentRead])
def list_payments(
    due_id: Optional[str] = None,
    resident_id: Optional[str] = None,
    flat_id: Optional[str] = None,
    apartment_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return payment_service.list_payments(
        db,
        due_id=due_id,
        resident_id=resident_id,
        flat_id=flat_id,
        apartment_id=apartment_id,
        start=start,
        end=end,
    )


@router.post("/", response_model=PaymentRead, status_code=201)
def record_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return payment_service.record_payment(db, actor, **payload.model_dump())


@router.get("/{payment_id}", response_model=PaymentRead)
def get_payment(payment_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return payment_service.get_payment(db, payment_id)
