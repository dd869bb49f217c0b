from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import User
from ..schemas.schemas import AppSettingsRead, AppSettingsUpdate
from ..services import billing as billing_service
from ..services import settings as settings_service

router = APIRouter()


@router.get("/", response_model=AppSettingsRead)
def read_settings(db: Session = Depends(get_db), _: User = Depends(get_current_user)) -> AppSettingsRead:
    return AppSettingsRead(**settings_service.get_app_settings(db))


@router.put("/", response_model=AppSettingsRead)
def update_settings(
    payload: AppSettingsUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles(ROLE_ADMIN)),
) -> AppSettingsRead:
    updated = billing_service.apply_settings_update(db, actor, payload.model_dump(exclude_unset=True))
    return AppSettingsRead(**updated)
