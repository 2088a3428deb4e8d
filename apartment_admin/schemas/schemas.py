from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal, conint, field_validator, model_validator

from ..utils.validators import is_valid_tc_no

Money = condecimal(gt=0, max_digits=12, decimal_places=2)

FlatType = Literal["residential", "commercial", "office"]
OccupancyStatus = Literal["occupied", "vacant", "under-renovation"]
ResidentType = Literal["owner", "tenant"]
DueStatus = Literal["pending", "partial", "paid", "overdue"]
PaymentMethod = Literal["cash", "bank-transfer", "credit-card", "check", "other"]
RecurringPeriod = Literal["monthly", "quarterly", "yearly"]
ExpenseStatus = Literal["pending", "approved", "rejected"]
ExpenseCategory = Literal[
    "maintenance",
    "cleaning",
    "electricity",
    "water",
    "gas",
    "elevator",
    "security",
    "insurance",
    "garden",
    "repair",
    "management",
    "legal",
    "other",
]
IncomeCategory = Literal["rent", "parking", "advertising", "event", "interest", "other"]
AdminRole = Literal["admin", "super-admin"]


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Auth ---


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str


class AdminCreate(BaseModel):
    email: EmailStr
    display_name: Optional[str] = None
    password: str = Field(min_length=8)
    role: AdminRole = "admin"


class AdminRead(OrmModel):
    id: str
    email: str
    display_name: Optional[str] = None
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


# --- Apartments, blocks, flats ---


class ApartmentBase(BaseModel):
    name: str = Field(min_length=2)
    address: str = Field(min_length=5)
    city: str = Field(min_length=2)
    district: str = Field(min_length=2)


class ApartmentCreate(ApartmentBase):
    pass


class ApartmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    address: Optional[str] = Field(default=None, min_length=5)
    city: Optional[str] = Field(default=None, min_length=2)
    district: Optional[str] = Field(default=None, min_length=2)


class ApartmentRead(ApartmentBase, OrmModel):
    id: str
    total_blocks: int
    total_flats: int
    created_at: datetime
    updated_at: datetime


class BlockCreate(BaseModel):
    apartment_id: str
    name: str = Field(min_length=1)
    total_floors: conint(ge=1, le=100) = 1
    total_flats: conint(ge=1, le=500) = 1


class BlockUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    total_floors: Optional[conint(ge=1, le=100)] = None
    total_flats: Optional[conint(ge=1, le=500)] = None


class BlockRead(OrmModel):
    id: str
    apartment_id: str
    name: str
    total_floors: int
    total_flats: int


class FlatCreate(BaseModel):
    block_id: str
    flat_number: str = Field(min_length=1)
    floor: conint(ge=-5, le=100) = 0
    type: FlatType = "residential"
    occupancy_status: OccupancyStatus = "vacant"


class FlatUpdate(BaseModel):
    flat_number: Optional[str] = Field(default=None, min_length=1)
    floor: Optional[conint(ge=-5, le=100)] = None
    type: Optional[FlatType] = None
    occupancy_status: Optional[OccupancyStatus] = None


class FlatAssignment(BaseModel):
    resident_id: str
    role: ResidentType


class FlatRead(OrmModel):
    id: str
    apartment_id: str
    block_id: str
    flat_number: str
    floor: int
    type: str
    owner_id: Optional[str] = None
    tenant_id: Optional[str] = None
    occupancy_status: str


# --- Residents ---


class ResidentBase(BaseModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    email: Optional[EmailStr] = None
    phone: str = Field(min_length=10)
    secondary_phone: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    notes: Optional[str] = None


class ResidentCreate(ResidentBase):
    tc_no: str
    type: ResidentType
    flat_id: str
    move_in_date: date

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        return value or None

    @field_validator("tc_no")
    @classmethod
    def _valid_tc_no(cls, value: str) -> str:
        if not is_valid_tc_no(value):
            raise ValueError("Invalid TC Kimlik No.")
        return value


class ResidentUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=2)
    last_name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=10)
    secondary_phone: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    notes: Optional[str] = None


class ResidentMoveOut(BaseModel):
    move_out_date: date


class ResidentRead(OrmModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    secondary_phone: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    tc_no: str
    type: str
    flat_id: str
    block_id: str
    apartment_id: str
    move_in_date: date
    move_out_date: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None


# --- Dues ---


class DueCreate(BaseModel):
    flat_id: str
    amount: Money
    month: conint(ge=1, le=12)
    year: conint(ge=2020, le=2040)
    due_date: Optional[date] = None
    resident_id: Optional[str] = None
    description: str = ""


class BulkDueCreate(BaseModel):
    apartment_id: str
    block_id: Optional[str] = None
    amount: Money
    month: conint(ge=1, le=12)
    year: conint(ge=2020, le=2040)
    description: str = ""


class DueUpdate(BaseModel):
    amount: Optional[Money] = None
    due_date: Optional[date] = None
    description: Optional[str] = None


class DueRead(OrmModel):
    id: str
    apartment_id: str
    block_id: str
    flat_id: str
    resident_id: str
    amount: Decimal
    month: int
    year: int
    due_date: date
    status: DueStatus
    paid_amount: Decimal
    late_fee: Decimal
    late_fee_applied: bool
    description: str
    created_at: datetime


class BulkDueResult(BaseModel):
    created: int
    due_ids: List[str]


class LateFeeRunResult(BaseModel):
    updated: int


# --- Payments ---


class PaymentCreate(BaseModel):
    due_id: str
    amount: Money
    payment_date: date
    payment_method: PaymentMethod
    bank_reference: str = ""
    description: str = ""
    installment_number: Optional[conint(ge=1)] = None
    total_installments: Optional[conint(ge=1)] = None

    @model_validator(mode="after")
    def _installments_consistent(self) -> "PaymentCreate":
        if self.installment_number and self.total_installments:
            if self.installment_number > self.total_installments:
                raise ValueError("installment_number cannot exceed total_installments")
        return self


class PaymentRead(OrmModel):
    id: str
    due_id: str
    apartment_id: str
    block_id: str
    flat_id: str
    resident_id: str
    amount: Decimal
    payment_date: date
    payment_method: str
    bank_reference: str
    receipt_number: str
    description: str
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime


# --- Expenses & incomes ---


class ExpenseCreate(BaseModel):
    apartment_id: str
    category: ExpenseCategory
    amount: Money
    description: str = Field(min_length=3)
    vendor: str = ""
    expense_date: date
    is_recurring: bool = False
    recurring_period: Optional[RecurringPeriod] = None

    @model_validator(mode="after")
    def _period_for_recurring(self) -> "ExpenseCreate":
        if not self.is_recurring:
            self.recurring_period = None
        return self


class ExpenseUpdate(BaseModel):
    category: Optional[ExpenseCategory] = None
    amount: Optional[Money] = None
    description: Optional[str] = Field(default=None, min_length=3)
    vendor: Optional[str] = None
    expense_date: Optional[date] = None
    is_recurring: Optional[bool] = None
    recurring_period: Optional[RecurringPeriod] = None


class ExpenseRead(OrmModel):
    id: str
    apartment_id: str
    category: str
    amount: Decimal
    description: str
    vendor: str
    expense_date: date
    is_recurring: bool
    recurring_period: Optional[str] = None
    status: ExpenseStatus
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    created_at: datetime


class IncomeCreate(BaseModel):
    apartment_id: str
    category: IncomeCategory
    amount: Money
    description: str = Field(min_length=3)
    payer: str = ""
    income_date: date


class IncomeUpdate(BaseModel):
    category: Optional[IncomeCategory] = None
    amount: Optional[Money] = None
    description: Optional[str] = Field(default=None, min_length=3)
    payer: Optional[str] = None
    income_date: Optional[date] = None


class IncomeRead(OrmModel):
    id: str
    apartment_id: str
    category: str
    amount: Decimal
    description: str
    payer: str
    income_date: date
    created_at: datetime


# --- Notifications & audit ---


class NotificationRead(OrmModel):
    id: str
    type: str
    title: str
    message: str
    is_read: bool
    entity_type: str
    entity_id: str
    created_at: datetime
    read_at: Optional[datetime] = None


class AuditLogEntry(OrmModel):
    id: str
    timestamp: datetime
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    description: str
    ip_address: Optional[str] = None


class AuditLogList(BaseModel):
    items: List[AuditLogEntry]
    total: int


# --- Reports ---


class MonthlyAmount(BaseModel):
    month: str
    income: Decimal
    expense: Decimal


class CategoryAmount(BaseModel):
    category: str
    amount: Decimal
    percentage: float


class DashboardStats(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    total_residents: int
    total_flats: int
    occupied_flats: int
    vacant_flats: int
    overdue_count: int
    overdue_amount: Decimal
    monthly: List[MonthlyAmount]
    expense_breakdown: List[CategoryAmount]
