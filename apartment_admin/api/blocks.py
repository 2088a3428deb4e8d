from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..models.models import Block
from ..schemas.schemas import BlockCreate, BlockRead, BlockUpdate
from ..services import property as property_service
from ..services.ledger_store import LedgerStore

router = APIRouter()


@router.get("/", response_model=List[BlockRead])
def list_blocks(
    apartment_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return property_service.list_blocks(db, apartment_id=apartment_id)


@router.post("/", response_model=BlockRead, status_code=201)
def create_block(payload: BlockCreate, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return property_service.create_block(db, actor, payload.model_dump())


@router.get("/{block_id}", response_model=BlockRead)
def get_block(block_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return LedgerStore(db).require(Block, block_id)


@router.patch("/{block_id}", response_model=BlockRead)
def update_block(
    block_id: str,
    payload: BlockUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return property_service.update_block(db, actor, block_id, payload.model_dump(exclude_unset=True))


@router.delete("/{block_id}", status_code=204)
def delete_block(block_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> None:
    property_service.delete_block(db, actor, block_id)
