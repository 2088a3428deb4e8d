from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..schemas.schemas import AuditLogEntry, AuditLogList
from ..services.audit import list_audit_logs

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("/", response_model=AuditLogList)
def read_audit_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_admin),
) -> AuditLogList:
    entries, total = list_audit_logs(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        start=start,
        end=end,
        limit=limit,
        offset=offset,
    )
    return AuditLogList(items=[AuditLogEntry.model_validate(entry) for entry in entries], total=total)
