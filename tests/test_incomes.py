from datetime import date
from decimal import Decimal

from apartment_admin.models.models import AuditLog
from apartment_admin.services import incomes as income_service


def _income(db_session, actor, apartment, amount="300.00", income_date=date(2025, 3, 1), category="parking"):
    return income_service.create_income(
        db_session,
        actor,
        {
            "apartment_id": apartment.id,
            "category": category,
            "amount": Decimal(amount),
            "description": "Parking space rent",
            "income_date": income_date,
            "payer": "Flat 4",
        },
    )


def test_create_update_delete_are_audited(db_session, actor, create_apartment):
    income = _income(db_session, actor, create_apartment())

    income_service.update_income(db_session, actor, income.id, {"amount": Decimal("350.00")})
    income_service.delete_income(db_session, actor, income.id)

    actions = [entry.action for entry in db_session.query(AuditLog).filter(AuditLog.entity_id == income.id)]
    assert sorted(actions) == ["create", "delete", "update"]
    assert income_service.list_incomes(db_session) == []


def test_list_incomes_by_apartment_category_and_range(db_session, actor, create_apartment):
    apartment = create_apartment()
    other = create_apartment()
    march = _income(db_session, actor, apartment)
    _income(db_session, actor, apartment, income_date=date(2025, 5, 1))
    _income(db_session, actor, apartment, category="advertising")
    _income(db_session, actor, other)

    found = income_service.list_incomes(
        db_session,
        apartment_id=apartment.id,
        category="parking",
        start=date(2025, 3, 1),
        end=date(2025, 3, 31),
    )

    assert [income.id for income in found] == [march.id]
