import sys
from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apartment_admin.config import Base  # noqa: E402
import apartment_admin.api.dependencies as app_dependencies  # noqa: E402
import apartment_admin.config as app_config  # noqa: E402
import apartment_admin.main as app_main  # noqa: E402
from apartment_admin.auth.jwt import get_password_hash  # noqa: E402
from apartment_admin.auth.session import AdminSession  # noqa: E402
# Import the full models module so every table registers with Base metadata.
from apartment_admin.models import models as _all_models  # noqa: E402,F401
from apartment_admin.models.models import Admin, Apartment, Block, Due, Flat, Resident  # noqa: E402

VALID_TC_NO = "10000000146"


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Point the app-wide SessionLocal/engine at a throwaway DB with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    db_path = db_dir / "app.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    app_config.SessionLocal = SessionLocal
    app_config.engine = engine
    app_dependencies.SessionLocal = SessionLocal
    app_main.SessionLocal = SessionLocal
    app_main.engine = engine
    yield
    engine.dispose()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_admin(db_session: Session) -> Callable[..., Admin]:
    def _create(email: str = "admin@example.com", role: str = "admin", password: str = "changeme") -> Admin:
        admin = Admin(email=email, hashed_password=get_password_hash(password), role=role, is_active=True)
        db_session.add(admin)
        db_session.commit()
        return admin

    return _create


@pytest.fixture
def actor(create_admin: Callable[..., Admin]) -> AdminSession:
    admin = create_admin(email="manager@example.com")
    return AdminSession(user_id=admin.id, email=admin.email, role=admin.role, ip_address="127.0.0.1")


@pytest.fixture
def create_apartment(db_session: Session) -> Callable[..., Apartment]:
    counter = {"value": 0}

    def _create(name: Optional[str] = None) -> Apartment:
        counter["value"] += 1
        apartment = Apartment(
            name=name or f"Residence {counter['value']}",
            address=f"{counter['value']} Ataturk Caddesi",
            city="Istanbul",
            district="Kadikoy",
        )
        db_session.add(apartment)
        db_session.commit()
        return apartment

    return _create


@pytest.fixture
def create_block(db_session: Session, create_apartment: Callable[..., Apartment]) -> Callable[..., Block]:
    def _create(apartment: Optional[Apartment] = None, name: str = "A") -> Block:
        apartment = apartment or create_apartment()
        block = Block(apartment_id=apartment.id, name=name, total_floors=5, total_flats=10)
        db_session.add(block)
        db_session.commit()
        return block

    return _create


@pytest.fixture
def create_flat(db_session: Session, create_block: Callable[..., Block]) -> Callable[..., Flat]:
    counter = {"value": 0}

    def _create(block: Optional[Block] = None, flat_number: Optional[str] = None, **fields) -> Flat:
        counter["value"] += 1
        block = block or create_block()
        flat = Flat(
            apartment_id=block.apartment_id,
            block_id=block.id,
            flat_number=flat_number or str(counter["value"]),
            floor=fields.pop("floor", 1),
            **fields,
        )
        db_session.add(flat)
        db_session.commit()
        return flat

    return _create


@pytest.fixture
def create_resident(db_session: Session, create_flat: Callable[..., Flat]) -> Callable[..., Resident]:
    def _create(flat: Optional[Flat] = None, resident_type: str = "tenant", first_name: str = "Ayse") -> Resident:
        flat = flat or create_flat()
        resident = Resident(
            first_name=first_name,
            last_name="Yilmaz",
            phone="05321234567",
            tc_no=VALID_TC_NO,
            type=resident_type,
            flat_id=flat.id,
            block_id=flat.block_id,
            apartment_id=flat.apartment_id,
            move_in_date=date(2024, 1, 1),
            is_active=True,
        )
        db_session.add(resident)
        db_session.commit()
        if resident_type == "owner":
            flat.owner_id = resident.id
        else:
            flat.tenant_id = resident.id
        flat.occupancy_status = "occupied"
        db_session.commit()
        return resident

    return _create


@pytest.fixture
def create_due(db_session: Session, create_flat: Callable[..., Flat]) -> Callable[..., Due]:
    def _create(
        flat: Optional[Flat] = None,
        amount: str = "1000.00",
        due_date: date = date(2025, 1, 15),
        status: str = "pending",
        paid_amount: str = "0",
        late_fee: str = "0",
        month: int = 1,
        year: int = 2025,
    ) -> Due:
        flat = flat or create_flat()
        due = Due(
            apartment_id=flat.apartment_id,
            block_id=flat.block_id,
            flat_id=flat.id,
            resident_id=flat.tenant_id or flat.owner_id or "",
            amount=Decimal(amount),
            month=month,
            year=year,
            due_date=due_date,
            status=status,
            paid_amount=Decimal(paid_amount),
            late_fee=Decimal(late_fee),
            late_fee_applied=Decimal(late_fee) > 0,
            description="",
        )
        db_session.add(due)
        db_session.commit()
        return due

    return _create
