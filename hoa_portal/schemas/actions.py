"""Closed set of operations accepted by the ``/exec`` action gateway.

Reads arrive as query strings (``?action=getDuesForUser&userId=...``) and
writes as ``{"action": ..., "payload": {...}}`` bodies. Both are validated
into one of the variants below before any handler runs.
"""
from typing import Annotated, FrozenSet, Literal, Optional, Tuple, Type, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter

from .schemas import (
    AdminCashPayload,
    AnnouncementPayload,
    CCTVDeletePayload,
    CCTVUpdatePayload,
    CCTVPayload,
    ExpensePayload,
    LoginPayload,
    ManualContributionPayload,
    MoneyIn,
    PositiveMoneyIn,
    ProjectDeletePayload,
    ProjectPayload,
    ProjectUpdatePayload,
    RegistrationPayload,
    ReservationPayload,
    ReservationStatusPayload,
    ReviewStatus,
    SettingsUpdatePayload,
    UserUpdatePayload,
    VisitorPayload,
)

# --- Reads ---


class GetAnnouncements(BaseModel):
    action: Literal["getAnnouncements"]


class GetDuesForUser(BaseModel):
    action: Literal["getDuesForUser"]
    userId: str = Field(min_length=1)


class GetAllDues(BaseModel):
    action: Literal["getAllDues"]


class GetVisitorsForHomeowner(BaseModel):
    action: Literal["getVisitorsForHomeowner"]
    homeownerId: str = Field(min_length=1)


class GetAllVisitors(BaseModel):
    action: Literal["getAllVisitors"]


class GetHomeownerDashboardData(BaseModel):
    action: Literal["getHomeownerDashboardData"]
    userId: str = Field(min_length=1)


class GetAdminDashboardData(BaseModel):
    action: Literal["getAdminDashboardData"]


class GetAllUsers(BaseModel):
    action: Literal["getAllUsers"]


class GetAppSettings(BaseModel):
    action: Literal["getAppSettings"]


class GetAmenityReservationsForUser(BaseModel):
    action: Literal["getAmenityReservationsForUser"]
    userId: str = Field(min_length=1)


class GetAllAmenityReservations(BaseModel):
    action: Literal["getAllAmenityReservations"]


class GetCCTVList(BaseModel):
    action: Literal["getCCTVList"]


class GetFinancialData(BaseModel):
    action: Literal["getFinancialData"]


class GetProjects(BaseModel):
    action: Literal["getProjects"]


class GetProjectContributions(BaseModel):
    action: Literal["getProjectContributions"]


ReadAction = Annotated[
    Union[
        GetAnnouncements,
        GetDuesForUser,
        GetAllDues,
        GetVisitorsForHomeowner,
        GetAllVisitors,
        GetHomeownerDashboardData,
        GetAdminDashboardData,
        GetAllUsers,
        GetAppSettings,
        GetAmenityReservationsForUser,
        GetAllAmenityReservations,
        GetCCTVList,
        GetFinancialData,
        GetProjects,
        GetProjectContributions,
    ],
    Field(discriminator="action"),
]


# --- Writes ---


class GatewayPaymentSubmission(BaseModel):
    """``dueId`` is either a due id or a legacy ``PROJ::`` contribution reference."""

    dueId: str = Field(min_length=1)
    userId: Optional[str] = None
    amount: Optional[PositiveMoneyIn] = None
    method: Literal["GCash", "Maya", "Bank Transfer", "Credit Card"] = "GCash"
    proofUrl: str = ""


class GatewayCashIntent(BaseModel):
    dueId: str = Field(min_length=1)
    amount: Optional[MoneyIn] = None


class GatewayReviewPayload(BaseModel):
    """``paymentId`` may name a payment or a project contribution."""

    paymentId: str = Field(min_length=1)
    status: ReviewStatus
    notes: Optional[str] = None
    version: Optional[int] = None


class LoginAction(BaseModel):
    action: Literal["login"]
    payload: LoginPayload


class RegisterAction(BaseModel):
    action: Literal["register"]
    payload: RegistrationPayload


class CreateAnnouncementAction(BaseModel):
    action: Literal["createAnnouncement"]
    payload: AnnouncementPayload


class UpdateUserAction(BaseModel):
    action: Literal["updateUser"]
    payload: UserUpdatePayload


class UpdateAppSettingsAction(BaseModel):
    action: Literal["updateAppSettings"]
    payload: SettingsUpdatePayload


class CreateVisitorPassAction(BaseModel):
    action: Literal["createVisitorPass"]
    payload: VisitorPayload


class SubmitPaymentAction(BaseModel):
    action: Literal["submitPayment"]
    payload: GatewayPaymentSubmission


class RecordCashPaymentIntentAction(BaseModel):
    action: Literal["recordCashPaymentIntent"]
    payload: GatewayCashIntent


class RecordAdminCashPaymentAction(BaseModel):
    action: Literal["recordAdminCashPayment"]
    payload: AdminCashPayload


class UpdatePaymentStatusAction(BaseModel):
    action: Literal["updatePaymentStatus"]
    payload: GatewayReviewPayload


class CreateAmenityReservationAction(BaseModel):
    action: Literal["createAmenityReservation"]
    payload: ReservationPayload


class UpdateAmenityReservationStatusAction(BaseModel):
    action: Literal["updateAmenityReservationStatus"]
    payload: ReservationStatusPayload


class CreateCCTVAction(BaseModel):
    action: Literal["createCCTV"]
    payload: CCTVPayload


class UpdateCCTVAction(BaseModel):
    action: Literal["updateCCTV"]
    payload: CCTVUpdatePayload


class DeleteCCTVAction(BaseModel):
    action: Literal["deleteCCTV"]
    payload: CCTVDeletePayload


class CreateExpenseAction(BaseModel):
    action: Literal["createExpense"]
    payload: ExpensePayload


class CreateProjectAction(BaseModel):
    action: Literal["createProject"]
    payload: ProjectPayload


class UpdateProjectAction(BaseModel):
    action: Literal["updateProject"]
    payload: ProjectUpdatePayload


class DeleteProjectAction(BaseModel):
    action: Literal["deleteProject"]
    payload: ProjectDeletePayload


class CreateManualProjectContributionAction(BaseModel):
    action: Literal["createManualProjectContribution"]
    payload: ManualContributionPayload


WriteAction = Annotated[
    Union[
        LoginAction,
        RegisterAction,
        CreateAnnouncementAction,
        UpdateUserAction,
        UpdateAppSettingsAction,
        CreateVisitorPassAction,
        SubmitPaymentAction,
        RecordCashPaymentIntentAction,
        RecordAdminCashPaymentAction,
        UpdatePaymentStatusAction,
        CreateAmenityReservationAction,
        UpdateAmenityReservationStatusAction,
        CreateCCTVAction,
        UpdateCCTVAction,
        DeleteCCTVAction,
        CreateExpenseAction,
        CreateProjectAction,
        UpdateProjectAction,
        DeleteProjectAction,
        CreateManualProjectContributionAction,
    ],
    Field(discriminator="action"),
]

PUBLIC_ACTIONS = frozenset({"login", "register"})

read_action_adapter: TypeAdapter = TypeAdapter(ReadAction)
write_action_adapter: TypeAdapter = TypeAdapter(WriteAction)


def _variants(union) -> Tuple[Type[BaseModel], ...]:
    return get_args(get_args(union)[0])


def action_names(union) -> FrozenSet[str]:
    return frozenset(get_args(model.model_fields["action"].annotation)[0] for model in _variants(union))


READ_ACTIONS = action_names(ReadAction)
WRITE_ACTIONS = action_names(WriteAction)
