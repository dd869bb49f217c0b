from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, model_validator

# Amounts travel as JSON numbers, the way the portal has always shown them.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
MoneyIn = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
PositiveMoneyIn = Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]

RoleName = Literal["Admin", "Homeowner", "Staff", "Tenant"]
UserStatus = Literal["active", "pending", "inactive"]
PaymentMethod = Literal["GCash", "Maya", "Bank Transfer", "Credit Card", "Cash"]
ElectronicMethod = Literal["GCash", "Maya", "Bank Transfer", "Credit Card"]
ReviewStatus = Literal["pending", "verified", "rejected"]
AmenityName = Literal["Clubhouse", "Basketball Court", "Swimming Pool"]
ReservationStatus = Literal["pending", "approved", "denied", "completed"]
ReservationDecision = Literal["approved", "denied"]
ProjectStatus = Literal["Planning", "Ongoing", "Completed", "Rejected"]
ExpenseCategory = Literal[
    "Security",
    "Utilities",
    "Repairs & Maintenance",
    "Admin & Office",
    "Salaries / Allowances",
    "Miscellaneous",
    "Reserve Fund Contribution",
]
TimeOfDay = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]


# --- Users / identity ---


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    role: str
    full_name: str
    email: EmailStr
    phone: Optional[str] = None
    block: Optional[int] = None
    lot: Optional[int] = None
    status: str
    date_created: datetime


class SessionRead(UserRead):
    access_token: str
    token_type: str = "bearer"


class RegistrationPayload(BaseModel):
    fullName: str = Field(min_length=1)
    email: EmailStr
    phone: str = ""
    block: int = Field(ge=0)
    lot: int = Field(ge=0)
    password: str = Field(min_length=6)


class LoginPayload(BaseModel):
    email: str
    password: str


class MessageRead(BaseModel):
    message: str


class SuccessRead(BaseModel):
    success: bool = True


class UserUpdatePayload(BaseModel):
    userId: str
    newRole: Optional[RoleName] = None
    newStatus: Optional[UserStatus] = None


# --- Announcements ---


class AnnouncementPayload(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    image_url: Optional[str] = None
    audience: Union[Literal["all"], RoleName] = "all"


class AnnouncementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ann_id: str
    title: str
    content: str
    image_url: Optional[str] = None
    created_by: str
    created_at: datetime
    audience: str


# --- Settings ---


class AppSettingsRead(BaseModel):
    monthlyDue: Money
    penalty: Money
    gcashQrCode: Optional[str] = None
    effectiveDate: str = ""
    gracePeriodDays: int


class AppSettingsUpdate(BaseModel):
    monthlyDue: Optional[MoneyIn] = None
    penalty: Optional[MoneyIn] = None
    gcashQrCode: Optional[str] = None
    effectiveDate: Optional[date] = None
    gracePeriodDays: Optional[int] = Field(default=None, ge=0, le=365)


class SettingsUpdatePayload(BaseModel):
    settings: AppSettingsUpdate


# --- Dues / payments ---


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: str
    due_id: str
    user_id: str
    amount: Money
    method: str
    proof_url: Optional[str] = None
    status: str
    date_paid: datetime
    notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    version: int


class DueRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    due_id: str
    user_id: str
    billing_month: date
    amount: Money
    penalty: Money
    total_due: Money
    status: str
    notes: Optional[str] = None
    settled_at: Optional[datetime] = None
    settlement_method: Optional[str] = None
    version: int
    payment: Optional[PaymentRead] = None
    display_status: str
    display_note: Optional[str] = None
    can_pay: bool
    full_name: Optional[str] = None
    block: Optional[int] = None
    lot: Optional[int] = None


class PaymentSubmission(BaseModel):
    dueId: str
    userId: Optional[str] = None
    amount: Optional[PositiveMoneyIn] = None
    method: ElectronicMethod = "GCash"
    proofUrl: str = ""


class CashIntentPayload(BaseModel):
    dueId: str
    amount: Optional[PositiveMoneyIn] = None


class AdminCashPayload(BaseModel):
    dueId: str


class PaymentStatusPayload(BaseModel):
    paymentId: str
    status: ReviewStatus
    notes: Optional[str] = None
    version: Optional[int] = None


# --- Visitors ---


class VisitorPayload(BaseModel):
    homeownerId: str
    name: str = Field(min_length=1)
    vehicle: str = ""
    date: date


class VisitorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    visitor_id: str
    homeowner_id: str
    homeowner_name: Optional[str] = None
    homeowner_address: Optional[str] = None
    name: str
    vehicle: Optional[str] = None
    date: date
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None
    qr_code: str
    status: str


# --- Amenities ---


class ReservationPayload(BaseModel):
    userId: str
    amenityName: AmenityName
    reservationDate: date
    startTime: TimeOfDay
    endTime: TimeOfDay
    notes: str = ""


class ReservationStatusPayload(BaseModel):
    reservationId: str
    status: ReservationDecision
    version: Optional[int] = None


class ReservationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: str
    user_id: str
    full_name: Optional[str] = None
    amenity_name: str
    reservation_date: date
    start_time: str
    end_time: str
    status: ReservationStatus
    notes: Optional[str] = None
    version: int
    conflicts_with: List[str] = []


# --- CCTV ---


class CCTVPayload(BaseModel):
    name: str = Field(min_length=1)
    stream_url: str = Field(min_length=1)


class CCTVUpdatePayload(CCTVPayload):
    cctv_id: str


class CCTVDeletePayload(BaseModel):
    cctvId: str


class CCTVRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cctv_id: str
    name: str
    stream_url: str
    created_at: datetime


# --- Finance ---


class ExpensePayload(BaseModel):
    date: date
    category: ExpenseCategory
    amount: PositiveMoneyIn
    payee: str = Field(min_length=1)
    description: str = ""


class ExpenseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    expense_id: str
    date: date
    category: str
    amount: Money
    payee: str
    description: Optional[str] = None
    created_by: str
    created_at: datetime


class CashPositionRead(BaseModel):
    cashOnHand: Money
    gcash: Money
    bank: Money


class IncomeBreakdownRead(BaseModel):
    dues: Money
    penalties: Money
    other: Money


class ReceivableRead(BaseModel):
    user_id: str
    name: str
    unit: str
    amount: Money
    months: int


class FinancialReportRead(BaseModel):
    totalRevenue: Money
    totalExpenses: Money
    netSurplus: Money
    endingCashBalance: Money
    cashPosition: CashPositionRead
    incomeBreakdown: IncomeBreakdownRead
    expenseBreakdown: Dict[str, Money]
    accountsReceivable: Money
    accountsReceivableList: List[ReceivableRead]
    reserveFundTotal: Money
    expensesLedger: List[ExpenseRead]


# --- Projects ---


class ProjectPayload(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    status: ProjectStatus = "Planning"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: MoneyIn = Decimal("0")
    funds_allocated: MoneyIn = Decimal("0")
    funds_spent: MoneyIn = Decimal("0")

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectPayload":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date.")
        return self


class ProjectUpdatePayload(BaseModel):
    projectId: str
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[MoneyIn] = None
    funds_allocated: Optional[MoneyIn] = None
    funds_spent: Optional[MoneyIn] = None


class ProjectDeletePayload(BaseModel):
    projectId: str


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    name: str
    description: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Money
    funds_allocated: Money
    funds_spent: Money
    created_at: datetime


class ContributionSubmission(BaseModel):
    projectId: str
    amount: PositiveMoneyIn
    method: ElectronicMethod = "GCash"
    proofUrl: str = ""


class ContributionIntentPayload(BaseModel):
    projectId: str
    amount: PositiveMoneyIn


class ManualContributionPayload(BaseModel):
    projectId: str
    userId: str
    amount: PositiveMoneyIn


class ContributionStatusPayload(BaseModel):
    status: ReviewStatus
    notes: Optional[str] = None
    version: Optional[int] = None


class ContributionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contribution_id: str
    project_id: str
    user_id: str
    amount: Money
    method: str
    proof_url: Optional[str] = None
    status: str
    date_paid: datetime
    notes: Optional[str] = None
    version: int
    project_name: Optional[str] = None
    homeowner_name: Optional[str] = None
    homeowner_unit: Optional[str] = None


# --- Dashboards ---


class HomeownerDashboardRead(BaseModel):
    dues: List[DueRead]
    announcements: List[AnnouncementRead]
    pendingRequestsCount: int


class PendingApprovalRead(BaseModel):
    id: str
    name: str
    type: str
    date: str


class AdminDashboardRead(BaseModel):
    duesCollected: Money
    pendingApprovalsCount: int
    upcomingEventsCount: int
    activeMembers: int
    pendingApprovals: List[PendingApprovalRead]
