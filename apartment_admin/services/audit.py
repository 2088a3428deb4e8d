import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.session import AdminSession
from ..models.models import AuditLog, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditReceipt:
    """Result of an audit write. ``ok`` is always true; ``entry_id`` is None when the write was dropped."""

    entry_id: Optional[str] = None
    ok: bool = True

    @property
    def recorded(self) -> bool:
        return self.entry_id is not None


def _serialize(data: Any) -> Optional[str]:
    if data is None:
        return None
    try:
        return json.dumps(data, default=str)
    except TypeError:
        return str(data)


def audit_log(
    db_session: Session,
    actor: AdminSession,
    action: str,
    entity_type: str,
    entity_id: str,
    description: str,
    old_value: Any = None,
    new_value: Any = None,
) -> AuditReceipt:
    """Append an audit entry after the primary write has committed.

    Failures are logged and discarded so they never fail or roll back the
    operation being audited.
    """
    try:
        entry = AuditLog(
            timestamp=utcnow(),
            user_id=actor.user_id if actor.user_id != "system" else None,
            user_email=actor.email,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=_serialize(old_value),
            new_value=_serialize(new_value),
            description=description,
            ip_address=actor.ip_address,
        )
    except Exception:
        logger.exception("Audit entry could not be built: %s %s %s", action, entity_type, entity_id)
        return AuditReceipt()
    try:
        db_session.add(entry)
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Audit write dropped: %s %s %s", action, entity_type, entity_id)
        return AuditReceipt()
    return AuditReceipt(entry_id=entry.id)


def list_audit_logs(
    db_session: Session,
    *,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[List[AuditLog], int]:
    query = db_session.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if start:
        query = query.filter(AuditLog.timestamp >= start)
    if end:
        query = query.filter(AuditLog.timestamp <= end)
    total = query.count()
    entries = query.order_by(AuditLog.timestamp.desc()).offset(offset).limit(limit).all()
    return entries, total
