from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin, require_super_admin
from ..auth.session import AdminSession
from ..models.models import Apartment
from ..schemas.schemas import ApartmentCreate, ApartmentRead, ApartmentUpdate
from ..services import property as property_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[ApartmentRead])
def list_apartments(db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return property_service.list_apartments(db)


@router.post("/", response_model=ApartmentRead, status_code=201)
def create_apartment(
    payload: ApartmentCreate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return property_service.create_apartment(db, actor, payload.model_dump())


@router.get("/{apartment_id}", response_model=ApartmentRead)
def get_apartment(apartment_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Apartment, apartment_id)


@router.patch("/{apartment_id}", response_model=ApartmentRead)
def update_apartment(
    apartment_id: str,
    payload: ApartmentUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return property_service.update_apartment(db, actor, apartment_id, payload.model_dump(exclude_unset=True))


@router.delete("/{apartment_id}", status_code=204)
def delete_apartment(
    apartment_id: str,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_super_admin),
) -> None:
    property_service.delete_apartment(db, actor, apartment_id)
