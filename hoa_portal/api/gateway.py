"""The ``/exec`` action gateway.

Every response is an envelope: ``{"success": true, "data": ...}`` or
``{"success": false, "data": {"error": "..."}}``. Reads are ``GET`` with the
action in the query string; writes are ``POST`` with a JSON body sent as
``text/plain``.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..api.dependencies import get_db
from ..auth.jwt import get_optional_user
from ..config import settings
from ..core.errors import AuthenticationFailed, PortalError, ValidationFailed
from ..core.rate_limit import enforce_rate_limit
from ..domain.projects import is_legacy_contribution_reference, parse_legacy_contribution_reference
from ..models.models import ProjectContribution, User
from ..schemas import actions
from ..schemas.schemas import (
    AdminDashboardRead,
    AnnouncementRead,
    AppSettingsRead,
    CCTVRead,
    ExpenseRead,
    FinancialReportRead,
    HomeownerDashboardRead,
    PaymentRead,
    ProjectRead,
    UserRead,
)
from ..services import amenities as amenity_service
from ..services import announcements as announcement_service
from ..services import billing as billing_service
from ..services import cctv as cctv_service
from ..services import dashboards as dashboard_service
from ..services import projects as project_service
from ..services import reports as report_service
from ..services import settings as settings_service
from ..services import users as user_service
from ..services import visitors as visitor_service
from .auth import session_read

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_ACTION = 'The "action" parameter is missing.'
EMPTY_BODY = "Invalid request body. Ensure you are sending JSON."
SIGN_IN_REQUIRED = "Please sign in to continue."
SUCCESS = {"success": True}

Handler = Callable[[Session, Optional[User], Any], Any]


def envelope(data: Any) -> JSONResponse:
    return JSONResponse({"success": True, "data": jsonable_encoder(data)})


def failure(message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse({"success": False, "data": {"error": message}}, status_code=status_code)


def describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    # The first location entry is the action tag itself.
    location = ".".join(str(part) for part in error.get("loc", ())[1:])
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


# --- Read handlers ---


def _get_announcements(db, actor, command):
    return [AnnouncementRead.model_validate(item) for item in announcement_service.list_announcements(db, actor)]


def _get_all_users(db, actor, command):
    return [UserRead.model_validate(user) for user in user_service.list_users(db, actor)]


def _get_app_settings(db, actor, command):
    return AppSettingsRead(**settings_service.get_app_settings(db))


def _get_cctv_list(db, actor, command):
    return [CCTVRead.model_validate(camera) for camera in cctv_service.list_cameras(db, actor)]


def _get_projects(db, actor, command):
    return [ProjectRead.model_validate(project) for project in project_service.list_projects(db, actor)]


READ_HANDLERS: Dict[str, Handler] = {
    "getAnnouncements": _get_announcements,
    "getDuesForUser": lambda db, actor, command: billing_service.list_dues_for_user(db, actor, command.userId),
    "getAllDues": lambda db, actor, command: billing_service.list_all_dues(db, actor),
    "getVisitorsForHomeowner": lambda db, actor, command: visitor_service.list_visitors_for_homeowner(
        db, actor, command.homeownerId
    ),
    "getAllVisitors": lambda db, actor, command: visitor_service.list_all_visitors(db, actor),
    "getHomeownerDashboardData": lambda db, actor, command: HomeownerDashboardRead.model_validate(
        dashboard_service.homeowner_dashboard(db, actor, command.userId)
    ),
    "getAdminDashboardData": lambda db, actor, command: AdminDashboardRead.model_validate(
        dashboard_service.admin_dashboard(db, actor)
    ),
    "getAllUsers": _get_all_users,
    "getAppSettings": _get_app_settings,
    "getAmenityReservationsForUser": lambda db, actor, command: amenity_service.list_reservations_for_user(
        db, actor, command.userId
    ),
    "getAllAmenityReservations": lambda db, actor, command: amenity_service.list_all_reservations(db, actor),
    "getCCTVList": _get_cctv_list,
    "getFinancialData": lambda db, actor, command: FinancialReportRead.model_validate(
        report_service.build_financial_report(db, actor)
    ),
    "getProjects": _get_projects,
    "getProjectContributions": lambda db, actor, command: project_service.list_contributions(db, actor),
}


# --- Write handlers ---


def _login(db, actor, command):
    return session_read(user_service.login(db, command.payload.email, command.payload.password))


def _register(db, actor, command):
    payload = command.payload
    message = user_service.register(
        db,
        full_name=payload.fullName,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        block=payload.block,
        lot=payload.lot,
    )
    return {"message": message}


def _create_announcement(db, actor, command):
    payload = command.payload
    announcement = announcement_service.create_announcement(
        db, actor, payload.title, payload.content, payload.image_url, payload.audience
    )
    return AnnouncementRead.model_validate(announcement)


def _update_user(db, actor, command):
    payload = command.payload
    user_service.update_user(db, actor, payload.userId, payload.newRole, payload.newStatus)
    return SUCCESS


def _update_app_settings(db, actor, command):
    updates = command.payload.settings.model_dump(exclude_unset=True)
    return AppSettingsRead(**billing_service.apply_settings_update(db, actor, updates))


def _create_visitor_pass(db, actor, command):
    payload = command.payload
    visitor = visitor_service.create_visitor_pass(
        db, actor, payload.homeownerId, payload.name, payload.vehicle, payload.date
    )
    return visitor_service.visitor_read(visitor)


def _legacy_reference(reference: str):
    try:
        return parse_legacy_contribution_reference(reference)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from exc


def _submit_payment(db, actor, command):
    payload = command.payload
    if is_legacy_contribution_reference(payload.dueId):
        project_id, user_id = _legacy_reference(payload.dueId)
        if payload.amount is None:
            raise ValidationFailed("Amount is required for project contributions.")
        contribution = project_service.submit_contribution(
            db, actor, project_id, payload.amount, payload.method, payload.proofUrl, user_id=user_id
        )
        return project_service.contribution_read(contribution)
    payment = billing_service.submit_payment(
        db, actor, payload.dueId, payload.proofUrl, payload.method, payload.amount
    )
    return PaymentRead.model_validate(payment)


def _record_cash_payment_intent(db, actor, command):
    payload = command.payload
    if is_legacy_contribution_reference(payload.dueId):
        project_id, user_id = _legacy_reference(payload.dueId)
        contribution = project_service.record_contribution_intent(
            db, actor, project_id, payload.amount, user_id=user_id
        )
        return project_service.contribution_read(contribution)
    return PaymentRead.model_validate(billing_service.record_cash_payment_intent(db, actor, payload.dueId))


def _record_admin_cash_payment(db, actor, command):
    due = billing_service.record_admin_cash_payment(db, actor, command.payload.dueId)
    return billing_service.due_read(due, include_owner=True)


def _update_payment_status(db, actor, command):
    payload = command.payload
    if db.get(ProjectContribution, payload.paymentId) is not None:
        contribution = project_service.update_contribution_status(
            db, actor, payload.paymentId, payload.status, payload.notes, payload.version
        )
        return project_service.contribution_read(contribution)
    payment = billing_service.update_payment_status(
        db, actor, payload.paymentId, payload.status, payload.notes, payload.version
    )
    return PaymentRead.model_validate(payment)


def _create_amenity_reservation(db, actor, command):
    payload = command.payload
    reservation = amenity_service.create_reservation(
        db,
        actor,
        user_id=payload.userId,
        amenity_name=payload.amenityName,
        reservation_date=payload.reservationDate,
        start_time=payload.startTime,
        end_time=payload.endTime,
        notes=payload.notes,
    )
    return amenity_service.reservation_read(reservation)


def _update_amenity_reservation_status(db, actor, command):
    payload = command.payload
    reservation = amenity_service.update_reservation_status(
        db, actor, payload.reservationId, payload.status, expected_version=payload.version
    )
    return amenity_service.reservation_read(reservation, amenity_service.find_overlaps(db, reservation))


def _create_cctv(db, actor, command):
    camera = cctv_service.create_camera(db, actor, command.payload.name, command.payload.stream_url)
    return CCTVRead.model_validate(camera)


def _update_cctv(db, actor, command):
    payload = command.payload
    camera = cctv_service.update_camera(db, actor, payload.cctv_id, payload.name, payload.stream_url)
    return CCTVRead.model_validate(camera)


def _delete_cctv(db, actor, command):
    cctv_service.delete_camera(db, actor, command.payload.cctvId)
    return SUCCESS


def _create_expense(db, actor, command):
    payload = command.payload
    expense = report_service.create_expense(
        db,
        actor,
        expense_date=payload.date,
        category=payload.category,
        amount=payload.amount,
        payee=payload.payee,
        description=payload.description,
    )
    return ExpenseRead.model_validate(expense)


def _create_project(db, actor, command):
    return ProjectRead.model_validate(project_service.create_project(db, actor, command.payload.model_dump()))


def _update_project(db, actor, command):
    payload = command.payload
    updates = payload.model_dump(exclude_unset=True, exclude={"projectId"})
    return ProjectRead.model_validate(project_service.update_project(db, actor, payload.projectId, updates))


def _delete_project(db, actor, command):
    project_service.delete_project(db, actor, command.payload.projectId)
    return SUCCESS


def _create_manual_project_contribution(db, actor, command):
    payload = command.payload
    contribution = project_service.create_manual_contribution(
        db, actor, payload.projectId, payload.userId, payload.amount
    )
    return project_service.contribution_read(contribution)


WRITE_HANDLERS: Dict[str, Handler] = {
    "login": _login,
    "register": _register,
    "createAnnouncement": _create_announcement,
    "updateUser": _update_user,
    "updateAppSettings": _update_app_settings,
    "createVisitorPass": _create_visitor_pass,
    "submitPayment": _submit_payment,
    "recordCashPaymentIntent": _record_cash_payment_intent,
    "recordAdminCashPayment": _record_admin_cash_payment,
    "updatePaymentStatus": _update_payment_status,
    "createAmenityReservation": _create_amenity_reservation,
    "updateAmenityReservationStatus": _update_amenity_reservation_status,
    "createCCTV": _create_cctv,
    "updateCCTV": _update_cctv,
    "deleteCCTV": _delete_cctv,
    "createExpense": _create_expense,
    "createProject": _create_project,
    "updateProject": _update_project,
    "deleteProject": _delete_project,
    "createManualProjectContribution": _create_manual_project_contribution,
}


def _dispatch(handler: Handler, db: Session, actor: Optional[User], command: BaseModel) -> JSONResponse:
    action = command.action
    try:
        if action not in actions.PUBLIC_ACTIONS and actor is None:
            raise AuthenticationFailed(SIGN_IN_REQUIRED)
        result = handler(db, actor, command)
    except PortalError as exc:
        db.rollback()
        logger.warning("Gateway action %s refused: %s", action, exc.message)
        return failure(exc.message)
    except HTTPException as exc:
        logger.warning("Gateway action %s refused: %s", action, exc.detail)
        return failure(str(exc.detail), status_code=exc.status_code)
    except Exception:
        db.rollback()
        logger.exception("Gateway action %s failed", action)
        return failure("Internal server error.", status_code=500)
    return envelope(result)


@router.get("/exec")
def execute_read(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
) -> JSONResponse:
    params = dict(request.query_params)
    action = params.get("action")
    if not action:
        return failure(MISSING_ACTION)
    if action not in actions.READ_ACTIONS:
        logger.warning("Unknown gateway read action %s", action)
        return failure(f"Invalid GET action: {action}")
    try:
        command = actions.read_action_adapter.validate_python(params)
    except ValidationError as exc:
        return failure(describe_validation_error(exc))
    return _dispatch(READ_HANDLERS[action], db, actor, command)


@router.post("/exec")
async def execute_write(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
) -> JSONResponse:
    raw = await request.body()
    if not raw.strip():
        return failure(EMPTY_BODY)
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as exc:
        return failure(f"Failed to parse JSON body: {exc.msg}")
    if not isinstance(body, dict) or not body.get("action"):
        return failure(MISSING_ACTION)

    action = body["action"]
    if action not in actions.WRITE_ACTIONS:
        logger.warning("Unknown gateway write action %s", action)
        return failure(f"Invalid POST action: {action}")
    try:
        command = actions.write_action_adapter.validate_python({"action": action, "payload": body.get("payload") or {}})
    except ValidationError as exc:
        return failure(describe_validation_error(exc))

    if action == "login":
        try:
            enforce_rate_limit("login", request, settings.login_rate_limit, settings.login_rate_window_seconds)
        except HTTPException as exc:
            return failure(str(exc.detail), status_code=exc.status_code)
    return await run_in_threadpool(_dispatch, WRITE_HANDLERS[action], db, actor, command)
