from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.models import AuditLog, Due, Expense, Flat, Income, Payment, Resident
from ..utils.csv_utils import money, rows_to_csv, sections_to_csv
from ..utils.validators import month_name
from .due_status import as_decimal, outstanding_balance
from .ledger_store import LedgerStore

DASHBOARD_MONTHS = 6


@dataclass
class CsvReport:
    filename: str
    content: str


def _stamp(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()


def _sum(values) -> Decimal:
    return sum((as_decimal(value) for value in values), Decimal("0"))


def _recent_months(today: date, count: int) -> List[tuple[int, int]]:
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def dashboard_stats(session: Session, today: Optional[date] = None) -> Dict[str, object]:
    """Headline figures for the admin dashboard.

    Income is the sum of recorded incomes; overdue amount is the outstanding
    balance of dues in ``overdue`` status.
    """
    today = today or date.today()
    store = LedgerStore(session)
    incomes = store.all(store.query(Income))
    expenses = store.all(store.query(Expense))
    flats = store.all(store.query(Flat))
    overdue = store.all(store.query(Due, status="overdue"))
    total_residents = store.query(Resident, is_active=True).count()

    total_income = _sum(income.amount for income in incomes)
    total_expense = _sum(expense.amount for expense in expenses)
    occupied = sum(1 for flat in flats if flat.occupancy_status == "occupied")

    monthly = []
    for year, month in _recent_months(today, DASHBOARD_MONTHS):
        monthly.append(
            {
                "month": f"{month_name(month)[:3]} {year}",
                "income": _sum(
                    income.amount
                    for income in incomes
                    if (income.income_date.year, income.income_date.month) == (year, month)
                ),
                "expense": _sum(
                    expense.amount
                    for expense in expenses
                    if (expense.expense_date.year, expense.expense_date.month) == (year, month)
                ),
            }
        )

    by_category: Dict[str, Decimal] = {}
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, Decimal("0")) + as_decimal(expense.amount)
    breakdown = [
        {
            "category": category,
            "amount": amount,
            "percentage": round(float(amount / total_expense * 100), 1) if total_expense else 0.0,
        }
        for category, amount in sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    ]

    return {
        "total_income": total_income,
        "total_expense": total_expense,
        "net_balance": total_income - total_expense,
        "total_residents": total_residents,
        "total_flats": len(flats),
        "occupied_flats": occupied,
        "vacant_flats": sum(1 for flat in flats if flat.occupancy_status == "vacant"),
        "overdue_count": len(overdue),
        "overdue_amount": _sum(outstanding_balance(due) for due in overdue),
        "monthly": monthly,
        "expense_breakdown": breakdown,
    }


DUE_HEADERS = ["Month", "Year", "Amount", "Paid", "Late Fee", "Status", "Due Date"]
PAYMENT_HEADERS = ["Date", "Amount", "Method", "Bank Reference", "Receipt No", "Description"]
EXPENSE_HEADERS = ["Date", "Category", "Amount", "Description", "Vendor", "Status", "Recurring"]
AUDIT_HEADERS = ["Timestamp", "User", "Action", "Entity Type", "Entity ID", "Description"]


def _due_row(due: Due) -> List[str]:
    return [
        month_name(due.month),
        str(due.year),
        money(due.amount),
        money(due.paid_amount),
        money(due.late_fee),
        due.status,
        due.due_date.isoformat(),
    ]


def _payment_row(payment: Payment) -> List[str]:
    return [
        payment.payment_date.isoformat(),
        money(payment.amount),
        payment.payment_method,
        payment.bank_reference or "-",
        payment.receipt_number,
        payment.description or "-",
    ]


def _expense_row(expense: Expense) -> List[str]:
    return [
        expense.expense_date.isoformat(),
        expense.category,
        money(expense.amount),
        expense.description,
        expense.vendor or "-",
        expense.status,
        "yes" if expense.is_recurring else "no",
    ]


def export_dues(session: Session, dues: List[Due]) -> CsvReport:
    return CsvReport(filename=f"dues_{_stamp()}.csv", content=rows_to_csv(DUE_HEADERS, [_due_row(due) for due in dues]))


def export_payments(session: Session, payments: List[Payment]) -> CsvReport:
    return CsvReport(
        filename=f"payments_{_stamp()}.csv",
        content=rows_to_csv(PAYMENT_HEADERS, [_payment_row(payment) for payment in payments]),
    )


def export_expenses(session: Session, expenses: List[Expense]) -> CsvReport:
    return CsvReport(
        filename=f"expenses_{_stamp()}.csv",
        content=rows_to_csv(EXPENSE_HEADERS, [_expense_row(expense) for expense in expenses]),
    )


def export_audit_logs(session: Session, entries: List[AuditLog]) -> CsvReport:
    rows = [
        [
            entry.timestamp.isoformat() if isinstance(entry.timestamp, datetime) else str(entry.timestamp),
            entry.user_email or entry.user_id or "system",
            entry.action,
            entry.entity_type,
            entry.entity_id,
            entry.description,
        ]
        for entry in entries
    ]
    return CsvReport(filename=f"audit_logs_{_stamp()}.csv", content=rows_to_csv(AUDIT_HEADERS, rows))


def financial_report(session: Session, year: int, apartment_id: Optional[str] = None) -> CsvReport:
    """Yearly report with dues, payments, expenses and a summary section.

    Total income here is the sum of payments received during the year.
    """
    store = LedgerStore(session)
    scope = {"apartment_id": apartment_id} if apartment_id else {}
    dues = store.all(store.query(Due, year=year, **scope).order_by(Due.month.asc(), Due.due_date.asc()))
    payments = store.all(
        store.query(Payment, **scope)
        .filter(Payment.payment_date >= date(year, 1, 1), Payment.payment_date < date(year + 1, 1, 1))
        .order_by(Payment.payment_date.asc())
    )
    expenses = store.all(
        store.query(Expense, **scope)
        .filter(Expense.expense_date >= date(year, 1, 1), Expense.expense_date < date(year + 1, 1, 1))
        .order_by(Expense.expense_date.asc())
    )

    total_income = _sum(payment.amount for payment in payments)
    total_expense = _sum(expense.amount for expense in expenses)
    content = sections_to_csv(
        [
            ("Dues", DUE_HEADERS, [_due_row(due) for due in dues]),
            ("Payments", PAYMENT_HEADERS, [_payment_row(payment) for payment in payments]),
            ("Expenses", EXPENSE_HEADERS, [_expense_row(expense) for expense in expenses]),
            (
                "Summary",
                ["Item", "Amount"],
                [
                    ["Total income", money(total_income)],
                    ["Total expense", money(total_expense)],
                    ["Net balance", money(total_income - total_expense)],
                ],
            ),
        ]
    )
    return CsvReport(filename=f"financial_report_{year}.csv", content=content)
