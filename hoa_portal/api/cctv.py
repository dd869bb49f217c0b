from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_roles
from ..constants import ROLE_ADMIN, ROLE_STAFF
from ..models.models import CCTVCamera, User
from ..schemas.schemas import CCTVPayload, CCTVRead, SuccessRead
from ..services import cctv as cctv_service

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


@router.get("/", response_model=List[CCTVRead])
def list_cameras(
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_ADMIN, ROLE_STAFF)),
) -> List[CCTVCamera]:
    return cctv_service.list_cameras(db, user)


@router.post("/", response_model=CCTVRead, status_code=201)
def create_camera(
    payload: CCTVPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> CCTVCamera:
    return cctv_service.create_camera(db, actor, payload.name, payload.stream_url)


@router.put("/{cctv_id}", response_model=CCTVRead)
def update_camera(
    cctv_id: str,
    payload: CCTVPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> CCTVCamera:
    return cctv_service.update_camera(db, actor, cctv_id, payload.name, payload.stream_url)


@router.delete("/{cctv_id}", response_model=SuccessRead)
def delete_camera(
    cctv_id: str,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> SuccessRead:
    cctv_service.delete_camera(db, actor, cctv_id)
    return SuccessRead()
