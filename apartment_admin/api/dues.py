from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..schemas.schemas import (
    BulkDueCreate,
    BulkDueResult,
    DueCreate,
    DueRead,
    DueStatus,
    DueUpdate,
    LateFeeRunResult,
)
from ..services import dues as due_service

router = APIRouter()


@router.get("/", response_model=List[DueRead])
def list_dues(
    apartment_id: Optional[str] = None,
    block_id: Optional[str] = None,
    flat_id: Optional[str] = None,
    resident_id: Optional[str] = None,
    status: Optional[DueStatus] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return due_service.list_dues(
        db,
        apartment_id=apartment_id,
        block_id=block_id,
        flat_id=flat_id,
        resident_id=resident_id,
        status=status,
        month=month,
        year=year,
    )


@router.post("/", response_model=DueRead, status_code=201)
def create_due(payload: DueCreate, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return due_service.create_due(db, actor, **payload.model_dump())


@router.post("/bulk", response_model=BulkDueResult, status_code=201)
def bulk_create_dues(
    payload: BulkDueCreate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> BulkDueResult:
    due_ids = due_service.bulk_create_dues(db, actor, **payload.model_dump())
    return BulkDueResult(created=len(due_ids), due_ids=due_ids)


@router.post("/apply-late-fees", response_model=LateFeeRunResult)
def apply_late_fees(db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> LateFeeRunResult:
    return LateFeeRunResult(updated=due_service.apply_late_fees(db, actor))


@router.get("/{due_id}", response_model=DueRead)
def get_due(due_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return due_service.get_due(db, due_id)


@router.patch("/{due_id}", response_model=DueRead)
def update_due(
    due_id: str,
    payload: DueUpdate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
):
    return due_service.update_due(db, actor, due_id, payload.model_dump(exclude_unset=True))


@router.post("/{due_id}/mark-paid", response_model=DueRead)
def mark_due_paid(due_id: str, db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)):
    return due_service.mark_as_paid(db, actor, due_id)
