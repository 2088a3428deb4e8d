import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base


def utcnow():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class LedgerDocumentMixin:
    """Columns shared by every ledger document: string id, timestamps and the tombstone flag."""

    id = Column(String(32), primary_key=True, default=new_id)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)


class Admin(LedgerDocumentMixin, Base):
    __tablename__ = "admins"

    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    audit_logs = orm_relationship("AuditLog", back_populates="actor")

    def has_any_role(self, *role_names: str) -> bool:
        return self.role in set(role_names)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(32), primary_key=True, default=new_id)
    timestamp = Column(DateTime, default=utcnow, index=True, nullable=False)
    user_id = Column(String(32), ForeignKey("admins.id"), nullable=True, index=True)
    user_email = Column(String, nullable=True)
    action = Column(String, nullable=False, index=True)
    entity_type = Column(String, nullable=False, index=True)
    entity_id = Column(String, nullable=False, index=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    description = Column(Text, nullable=False, default="")
    ip_address = Column(String, nullable=True)

    actor = orm_relationship("Admin", back_populates="audit_logs")


class Apartment(LedgerDocumentMixin, Base):
    __tablename__ = "apartments"

    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    district = Column(String, nullable=False)
    total_blocks = Column(Integer, default=0, nullable=False)
    total_flats = Column(Integer, default=0, nullable=False)
    created_by = Column(String(32), nullable=True)

    blocks = orm_relationship("Block", back_populates="apartment")


class Block(LedgerDocumentMixin, Base):
    __tablename__ = "blocks"

    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    total_floors = Column(Integer, default=1, nullable=False)
    total_flats = Column(Integer, default=0, nullable=False)

    apartment = orm_relationship("Apartment", back_populates="blocks")
    flats = orm_relationship("Flat", back_populates="block")


class Flat(LedgerDocumentMixin, Base):
    __tablename__ = "flats"

    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    block_id = Column(String(32), ForeignKey("blocks.id"), nullable=False, index=True)
    flat_number = Column(String, nullable=False)
    floor = Column(Integer, default=0, nullable=False)
    type = Column(String, default="residential", nullable=False)
    owner_id = Column(String(32), nullable=True)
    tenant_id = Column(String(32), nullable=True)
    occupancy_status = Column(String, default="vacant", nullable=False)

    block = orm_relationship("Block", back_populates="flats")


class Resident(LedgerDocumentMixin, Base):
    __tablename__ = "residents"

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    secondary_phone = Column(String, nullable=True)
    emergency_contact = Column(String, nullable=True)
    emergency_phone = Column(String, nullable=True)
    tc_no = Column(String(11), nullable=False, index=True)
    type = Column(String, nullable=False)
    flat_id = Column(String(32), ForeignKey("flats.id"), nullable=False, index=True)
    block_id = Column(String(32), ForeignKey("blocks.id"), nullable=False)
    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    move_in_date = Column(Date, nullable=False)
    move_out_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Due(LedgerDocumentMixin, Base):
    __tablename__ = "dues"

    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    block_id = Column(String(32), ForeignKey("blocks.id"), nullable=False, index=True)
    flat_id = Column(String(32), ForeignKey("flats.id"), nullable=False, index=True)
    # Denormalized; empty when the flat had neither tenant nor owner at generation time.
    resident_id = Column(String(32), nullable=False, default="", index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String, default="pending", nullable=False, index=True)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    late_fee = Column(Numeric(12, 2), default=0, nullable=False)
    late_fee_applied = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Payment(LedgerDocumentMixin, Base):
    __tablename__ = "payments"

    due_id = Column(String(32), ForeignKey("dues.id"), nullable=False, index=True)
    apartment_id = Column(String(32), nullable=False, index=True)
    block_id = Column(String(32), nullable=False)
    flat_id = Column(String(32), nullable=False, index=True)
    resident_id = Column(String(32), nullable=False, default="", index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    payment_method = Column(String, nullable=False)
    bank_reference = Column(String, nullable=False, default="")
    receipt_number = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    created_by = Column(String(32), nullable=True)


class Income(LedgerDocumentMixin, Base):
    __tablename__ = "incomes"

    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    category = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    income_date = Column(Date, nullable=False, index=True)
    payer = Column(String, nullable=False, default="")
    due_id = Column(String(32), nullable=True)
    created_by = Column(String(32), nullable=True)


class Expense(LedgerDocumentMixin, Base):
    __tablename__ = "expenses"

    apartment_id = Column(String(32), ForeignKey("apartments.id"), nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    vendor = Column(String, nullable=False, default="")
    expense_date = Column(Date, nullable=False, index=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_period = Column(String, nullable=True)
    invoice_url = Column(String, nullable=False, default="")
    attachment_url = Column(String, nullable=False, default="")
    status = Column(String, default="pending", nullable=False, index=True)
    approved_by = Column(String(32), nullable=True)
    approval_date = Column(DateTime, nullable=True)
    created_by = Column(String(32), nullable=True)


class Notification(LedgerDocumentMixin, Base):
    __tablename__ = "notifications"

    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    read_at = Column(DateTime, nullable=True)
