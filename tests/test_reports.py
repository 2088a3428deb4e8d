import csv
from datetime import date
from decimal import Decimal
from io import StringIO

from apartment_admin.models.models import Expense, Income
from apartment_admin.services import payments as payment_service
from apartment_admin.services.reports import dashboard_stats, export_dues, financial_report


def _add_income(db_session, apartment, amount, income_date):
    db_session.add(
        Income(
            apartment_id=apartment.id,
            category="parking",
            amount=Decimal(amount),
            description="Parking rent",
            income_date=income_date,
        )
    )
    db_session.commit()


def _add_expense(db_session, apartment, amount, expense_date, category="cleaning"):
    db_session.add(
        Expense(
            apartment_id=apartment.id,
            category=category,
            amount=Decimal(amount),
            description="Monthly service",
            expense_date=expense_date,
        )
    )
    db_session.commit()


def test_dashboard_stats_totals_and_breakdown(db_session, create_apartment, create_flat, create_resident, create_due):
    apartment = create_apartment()
    occupied = create_flat()
    create_flat()
    create_resident(flat=occupied)
    create_due(amount="1000.00", late_fee="10.00", paid_amount="110.00", status="overdue")
    _add_income(db_session, apartment, "500.00", date(2025, 3, 2))
    _add_expense(db_session, apartment, "300.00", date(2025, 3, 5))
    _add_expense(db_session, apartment, "100.00", date(2025, 1, 5), category="water")

    stats = dashboard_stats(db_session, today=date(2025, 3, 31))

    assert stats["total_income"] == Decimal("500.00")
    assert stats["total_expense"] == Decimal("400.00")
    assert stats["net_balance"] == Decimal("100.00")
    assert stats["total_residents"] == 1
    assert stats["total_flats"] == 3
    assert stats["occupied_flats"] == 1
    assert stats["overdue_count"] == 1
    assert stats["overdue_amount"] == Decimal("900.00")
    assert [row["month"] for row in stats["monthly"]][-1] == "Mar 2025"
    assert len(stats["monthly"]) == 6
    assert stats["monthly"][-1]["expense"] == Decimal("300.00")
    assert stats["expense_breakdown"][0] == {"category": "cleaning", "amount": Decimal("300.00"), "percentage": 75.0}


def test_financial_report_sections_and_summary(db_session, actor, create_apartment, create_due):
    apartment = create_apartment()
    due = create_due(amount="800.00", year=2025)
    payment_service.record_payment(
        db_session,
        actor,
        due_id=due.id,
        amount=Decimal("800.00"),
        payment_date=date(2025, 1, 20),
        payment_method="cash",
    )
    _add_expense(db_session, apartment, "250.00", date(2025, 2, 1))
    _add_expense(db_session, apartment, "999.00", date(2024, 12, 31))

    report = financial_report(db_session, 2025)

    assert report.filename == "financial_report_2025.csv"
    rows = list(csv.reader(StringIO(report.content)))
    titles = [row[0] for row in rows if len(row) == 1]
    assert titles == ["Dues", "Payments", "Expenses", "Summary"]
    assert ["Total income", "800.00"] in rows
    assert ["Total expense", "250.00"] in rows
    assert ["Net balance", "550.00"] in rows


def test_export_dues_renders_one_row_per_due(db_session, create_due):
    due = create_due(amount="450.00", month=2)

    report = export_dues(db_session, [due])

    rows = list(csv.reader(StringIO(report.content)))
    assert rows[0] == ["Month", "Year", "Amount", "Paid", "Late Fee", "Status", "Due Date"]
    assert rows[1][:3] == ["February", "2025", "450.00"]
    assert report.filename.startswith("dues_")
