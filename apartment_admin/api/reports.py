from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_admin
from ..auth.session import AdminSession
from ..schemas.schemas import DashboardStats
from ..services import dues as due_service
from ..services import expenses as expense_service
from ..services import payments as payment_service
from ..services.audit import audit_log, list_audit_logs
from ..services.reports import (
    CsvReport,
    dashboard_stats,
    export_audit_logs,
    export_dues,
    export_expenses,
    export_payments,
    financial_report,
)

router = APIRouter()

AUDIT_EXPORT_LIMIT = 5000


def _csv_response(report: CsvReport) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{report.filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=report.content, media_type="text/csv", headers=headers)


def _audit_export(session: Session, actor: AdminSession, report: CsvReport, label: str) -> None:
    audit_log(
        session,
        actor,
        action="export",
        entity_type="system",
        entity_id=label,
        description=f"Exported {report.filename}",
    )


@router.get("/reports/dashboard", response_model=DashboardStats)
def read_dashboard(db: Session = Depends(get_db), _: AdminSession = Depends(require_admin)) -> DashboardStats:
    return DashboardStats(**dashboard_stats(db))


@router.get("/reports/dues.csv")
def export_dues_csv(
    apartment_id: Optional[str] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> Response:
    report = export_dues(db, due_service.list_dues(db, apartment_id=apartment_id, year=year, month=month))
    _audit_export(db, actor, report, "dues")
    return _csv_response(report)


@router.get("/reports/payments.csv")
def export_payments_csv(
    apartment_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> Response:
    report = export_payments(db, payment_service.list_payments(db, apartment_id=apartment_id, start=start, end=end))
    _audit_export(db, actor, report, "payments")
    return _csv_response(report)


@router.get("/reports/expenses.csv")
def export_expenses_csv(
    apartment_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> Response:
    report = export_expenses(db, expense_service.list_expenses(db, apartment_id=apartment_id, start=start, end=end))
    _audit_export(db, actor, report, "expenses")
    return _csv_response(report)


@router.get("/reports/audit-logs.csv")
def export_audit_logs_csv(db: Session = Depends(get_db), actor: AdminSession = Depends(require_admin)) -> Response:
    entries, _ = list_audit_logs(db, limit=AUDIT_EXPORT_LIMIT)
    report = export_audit_logs(db, entries)
    _audit_export(db, actor, report, "audit-logs")
    return _csv_response(report)


@router.get("/reports/financial.csv")
def export_financial_report(
    year: int = Query(..., ge=2000, le=2100),
    apartment_id: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_admin),
) -> Response:
    report = financial_report(db, year, apartment_id=apartment_id)
    _audit_export(db, actor, report, f"financial-{year}")
    return _csv_response(report)
