from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import Announcement, User
from ..schemas.schemas import AnnouncementPayload, AnnouncementRead
from ..services import announcements as announcement_service

router = APIRouter()


@router.get("/", response_model=List[AnnouncementRead])
def list_announcements(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[Announcement]:
    return announcement_service.list_announcements(db, user)


@router.post("/", response_model=AnnouncementRead, status_code=201)
def create_announcement(
    payload: AnnouncementPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles(ROLE_ADMIN)),
) -> Announcement:
    return announcement_service.create_announcement(
        db,
        actor,
        title=payload.title,
        content=payload.content,
        image_url=payload.image_url,
        audience=payload.audience,
    )
