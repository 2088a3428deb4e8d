ADMIN_ROLES = [
    ("admin", "Site manager with day-to-day access"),
    ("super-admin", "Full access including admin management and data resets"),
]

DUE_STATUSES = ("pending", "partial", "paid", "overdue")
OPEN_DUE_STATUSES = ("pending", "partial")

EXPENSE_STATUSES = ("pending", "approved", "rejected")

FLAT_TYPES = ("residential", "commercial", "office")
OCCUPANCY_STATUSES = ("occupied", "vacant", "under-renovation")
RESIDENT_TYPES = ("owner", "tenant")

PAYMENT_METHODS = ("cash", "bank-transfer", "credit-card", "check", "other")
RECURRING_PERIODS = ("monthly", "quarterly", "yearly")

EXPENSE_CATEGORIES = (
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
)

INCOME_CATEGORIES = ("rent", "parking", "advertising", "event", "interest", "other")

AUDIT_ACTIONS = ("create", "update", "delete", "login", "logout", "export", "approve", "reject")
ENTITY_TYPES = (
    "apartment",
    "block",
    "flat",
    "resident",
    "due",
    "payment",
    "expense",
    "income",
    "admin",
    "system",
)

NOTIFICATION_TYPES = ("overdue", "reminder", "payment", "system", "alert")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

RECEIPT_PREFIX = "RCP"
SETTLEMENT_PAYMENT_METHOD = "other"
