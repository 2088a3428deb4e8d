#!/usr/bin/env python
"""
Seed script to populate the database with a demo apartment for local development.

Usage:
    python scripts/seed_data.py --blocks 2 --flats-per-block 8
"""

import argparse
import random
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apartment_admin.auth.jwt import get_password_hash  # noqa: E402
from apartment_admin.auth.session import AdminSession  # noqa: E402
from apartment_admin.config import Base, SessionLocal, engine  # noqa: E402
from apartment_admin.models.models import Admin  # noqa: E402
from apartment_admin.services import dues as due_service  # noqa: E402
from apartment_admin.services import property as property_service  # noqa: E402
from apartment_admin.services import residents as resident_service  # noqa: E402

FIRST_NAMES = ["Ahmet", "Mehmet", "Ayse", "Fatma", "Mustafa", "Zeynep", "Emre", "Elif", "Can", "Selin"]
LAST_NAMES = ["Yilmaz", "Kaya", "Demir", "Sahin", "Celik", "Ozturk", "Aydin", "Arslan", "Dogan", "Kilic"]


def make_tc_no(rng: random.Random) -> str:
    digits = [rng.randint(1, 9)] + [rng.randint(0, 9) for _ in range(8)]
    tenth = (sum(digits[0:9:2]) * 7 - sum(digits[1:8:2])) % 10
    digits.append(tenth)
    digits.append(sum(digits) % 10)
    return "".join(str(digit) for digit in digits)


def create_admin_user(session) -> Admin:
    admin = session.query(Admin).filter(Admin.email == "admin@example.com").first()
    if admin:
        return admin
    admin = Admin(
        email="admin@example.com",
        display_name="Site Administrator",
        hashed_password=get_password_hash("changeme"),
        role="super-admin",
        is_active=True,
    )
    session.add(admin)
    session.commit()
    return admin


def seed(blocks: int, flats_per_block: int, amount: Decimal, seed_value: int) -> None:
    rng = random.Random(seed_value)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        admin = create_admin_user(session)
        actor = AdminSession(user_id=admin.id, email=admin.email, role=admin.role)

        apartment = property_service.create_apartment(
            session,
            actor,
            {"name": "Demo Residences", "address": "Ataturk Cad. No: 1", "city": "Istanbul", "district": "Kadikoy"},
        )
        for block_index in range(blocks):
            block = property_service.create_block(
                session,
                actor,
                {
                    "apartment_id": apartment.id,
                    "name": f"Block {chr(ord('A') + block_index)}",
                    "total_floors": max(1, flats_per_block // 2),
                    "total_flats": flats_per_block,
                },
            )
            for flat_index in range(flats_per_block):
                flat = property_service.create_flat(
                    session,
                    actor,
                    {
                        "block_id": block.id,
                        "flat_number": str(flat_index + 1),
                        "floor": flat_index // 2,
                        "type": "residential",
                        "occupancy_status": "vacant",
                    },
                )
                if rng.random() < 0.8:
                    resident_service.create_resident(
                        session,
                        actor,
                        {
                            "first_name": rng.choice(FIRST_NAMES),
                            "last_name": rng.choice(LAST_NAMES),
                            "email": None,
                            "phone": f"05{rng.randint(300000000, 599999999)}",
                            "tc_no": make_tc_no(rng),
                            "type": rng.choice(["owner", "tenant"]),
                            "flat_id": flat.id,
                            "move_in_date": date(2023, rng.randint(1, 12), 1),
                        },
                    )

        today = date.today()
        due_ids = due_service.bulk_create_dues(
            session, actor, apartment_id=apartment.id, amount=amount, month=today.month, year=today.year
        )
        print(f"Seeded apartment {apartment.name} with {blocks * flats_per_block} flats and {len(due_ids)} dues.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--blocks", type=int, default=2)
    parser.add_argument("--flats-per-block", type=int, default=8)
    parser.add_argument("--amount", type=Decimal, default=Decimal("750.00"))
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()
    seed(args.blocks, args.flats_per_block, args.amount, args.seed)


if __name__ == "__main__":
    main()
