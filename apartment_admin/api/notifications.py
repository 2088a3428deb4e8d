from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..schemas.schemas import NotificationRead
from ..services import notifications as notification_service

router = APIRouter()


@router.get("/", response_model=List[NotificationRead])
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
):
    return notification_service.list_notifications(db, unread_only=unread_only, limit=limit)


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)) -> Dict[str, int]:
    return {"updated": notification_service.mark_all_read(db)}


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read(notification_id: str, db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)):
    return notification_service.mark_read(db, notification_id)
