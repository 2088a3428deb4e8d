import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_super_admin
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)) -> Dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "ok", "database": "ok"}


@router.get("/runtime", dependencies=[Depends(require_super_admin)])
def get_runtime_settings() -> Dict[str, Any]:
    """Expose non-sensitive runtime settings for debugging."""
    return {
        "late_fee_rate": settings.late_fee_rate,
        "default_due_day": settings.default_due_day,
        "batch_write_limit": settings.batch_write_limit,
        "overpayment_policy": settings.overpayment_policy,
        "allow_duplicate_period_dues": settings.allow_duplicate_period_dues,
        "log_level": settings.log_level,
    }
