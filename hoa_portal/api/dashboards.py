from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import User
from ..schemas.schemas import AdminDashboardRead, HomeownerDashboardRead
from ..services import dashboards as dashboard_service

router = APIRouter()


@router.get("/homeowner", response_model=HomeownerDashboardRead)
def homeowner_dashboard(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> HomeownerDashboardRead:
    return HomeownerDashboardRead.model_validate(dashboard_service.homeowner_dashboard(db, user, user.user_id))


@router.get("/admin", response_model=AdminDashboardRead)
def admin_dashboard(
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles(ROLE_ADMIN)),
) -> AdminDashboardRead:
    return AdminDashboardRead.model_validate(dashboard_service.admin_dashboard(db, actor))
