from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..models.models import Flat
from ..schemas.schemas import FlatAssignment, FlatCreate, FlatRead, FlatUpdate, ResidentRead
from ..services import property as property_service
from ..services import residents as resident_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[FlatRead])
def list_flats(
    block_id: Optional[str] = None,
    apartment_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return property_service.list_flats(db, block_id=block_id, apartment_id=apartment_id)


@router.post("/", response_model=FlatRead, status_code=201)
def create_flat(payload: FlatCreate, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return property_service.create_flat(db, actor, payload.model_dump())


@router.get("/{flat_id}", response_model=FlatRead)
def get_flat(flat_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Flat, flat_id)


@router.patch("/{flat_id}", response_model=FlatRead)
def update_flat(
    flat_id: str,
    payload: FlatUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return property_service.update_flat(db, actor, flat_id, payload.model_dump(exclude_unset=True))


@router.delete("/{flat_id}", status_code=204)
def delete_flat(flat_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> None:
    property_service.delete_flat(db, actor, flat_id)


@router.post("/{flat_id}/assign", response_model=FlatRead)
def assign_resident(
    flat_id: str,
    payload: FlatAssignment,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return property_service.assign_resident(db, actor, flat_id, payload.resident_id, payload.role)


@router.get("/{flat_id}/history", response_model=List[ResidentRead])
def flat_history(flat_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    LedgerStore(db).require(Flat, flat_id)
    return resident_service.flat_history(db, flat_id)
