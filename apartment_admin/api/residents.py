from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..models.models import Resident
from ..schemas.schemas import ResidentCreate, ResidentMoveOut, ResidentRead, ResidentUpdate
from ..services import residents as resident_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[ResidentRead])
def list_residents(
    flat_id: Optional[str] = None,
    apartment_id: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return resident_service.list_residents(db, flat_id=flat_id, apartment_id=apartment_id, active_only=active_only)


@router.post("/", response_model=ResidentRead, status_code=201)
def create_resident(
    payload: ResidentCreate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return resident_service.create_resident(db, actor, payload.model_dump())


@router.get("/{resident_id}", response_model=ResidentRead)
def get_resident(resident_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Resident, resident_id)


@router.patch("/{resident_id}", response_model=ResidentRead)
def update_resident(
    resident_id: str,
    payload: ResidentUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return resident_service.update_resident(db, actor, resident_id, payload.model_dump(exclude_unset=True))


@router.delete("/{resident_id}", status_code=204)
def delete_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> None:
    resident_service.delete_resident(db, actor, resident_id)


@router.post("/{resident_id}/move-out", response_model=ResidentRead)
def move_out(
    resident_id: str,
    payload: ResidentMoveOut,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return resident_service.move_out(db, actor, resident_id, payload.move_out_date)
