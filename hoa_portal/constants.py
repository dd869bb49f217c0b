ROLE_ADMIN = "Admin"
ROLE_HOMEOWNER = "Homeowner"
ROLE_STAFF = "Staff"
ROLE_TENANT = "Tenant"

ROLES = (ROLE_ADMIN, ROLE_HOMEOWNER, ROLE_STAFF, ROLE_TENANT)

# Higher number means more privileges
ROLE_PRIORITY = {
    ROLE_TENANT: 5,
    ROLE_HOMEOWNER: 10,
    ROLE_STAFF: 30,
    ROLE_ADMIN: 100,
}

RESIDENT_ROLES = (ROLE_HOMEOWNER, ROLE_TENANT)

USER_STATUSES = ("active", "pending", "inactive")

DUE_STATUSES = ("unpaid", "overdue", "paid")
REVIEW_STATUSES = ("pending", "verified", "rejected")
ACTIVE_REVIEW_STATUSES = ("pending", "verified")

METHOD_GCASH = "GCash"
METHOD_MAYA = "Maya"
METHOD_BANK_TRANSFER = "Bank Transfer"
METHOD_CREDIT_CARD = "Credit Card"
METHOD_CASH = "Cash"

PAYMENT_METHODS = (METHOD_GCASH, METHOD_MAYA, METHOD_BANK_TRANSFER, METHOD_CREDIT_CARD, METHOD_CASH)
ELECTRONIC_METHODS = (METHOD_GCASH, METHOD_MAYA, METHOD_BANK_TRANSFER, METHOD_CREDIT_CARD)
E_WALLET_METHODS = (METHOD_GCASH, METHOD_MAYA)

AMENITIES = ("Clubhouse", "Basketball Court", "Swimming Pool")
RESERVATION_DECISIONS = ("approved", "denied")

VISITOR_STATUSES = ("expected", "entered", "exited", "denied")

PROJECT_STATUSES = ("Planning", "Ongoing", "Completed", "Rejected")

RESERVE_FUND_CATEGORY = "Reserve Fund Contribution"
EXPENSE_CATEGORIES = (
    "Security",
    "Utilities",
    "Repairs & Maintenance",
    "Admin & Office",
    "Salaries / Allowances",
    "Miscellaneous",
    RESERVE_FUND_CATEGORY,
)

AUDIENCE_ALL = "all"

DEFAULT_APP_SETTINGS = {
    "monthlyDue": "2000",
    "penalty": "100",
    "gcashQrCode": "",
    "effectiveDate": "",
    "gracePeriodDays": "15",
}

LEGACY_PROJECT_REFERENCE_PREFIX = "PROJ"
LEGACY_PROJECT_REFERENCE_SEPARATOR = "::"
