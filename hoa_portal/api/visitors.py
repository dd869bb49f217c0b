from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user
from ..constants import ROLE_ADMIN, ROLE_STAFF
from ..models.models import User
from ..schemas.schemas import VisitorPayload, VisitorRead
from ..services import visitors as visitor_service

router = APIRouter()


@router.get("/", response_model=List[VisitorRead])
def list_visitors(
    homeowner_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[VisitorRead]:
    if homeowner_id is None and user.has_any_role(ROLE_ADMIN, ROLE_STAFF):
        return visitor_service.list_all_visitors(db, user)
    return visitor_service.list_visitors_for_homeowner(db, user, homeowner_id or user.user_id)


@router.post("/", response_model=VisitorRead, status_code=201)
def create_visitor_pass(
    payload: VisitorPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> VisitorRead:
    visitor = visitor_service.create_visitor_pass(
        db, user, payload.homeownerId, payload.name, payload.vehicle, payload.date
    )
    return visitor_service.visitor_read(visitor)
