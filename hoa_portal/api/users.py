from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_roles
from ..constants import ROLE_ADMIN
from ..models.models import User
from ..schemas.schemas import UserRead, UserUpdatePayload
from ..services import users as user_service

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


@router.get("/", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db), actor: User = Depends(require_admin)) -> List[User]:
    return user_service.list_users(db, actor)


@router.patch("/", response_model=UserRead)
def update_user(
    payload: UserUpdatePayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> User:
    return user_service.update_user(db, actor, payload.userId, payload.newRole, payload.newStatus)
