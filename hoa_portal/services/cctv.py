import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..constants import ROLE_ADMIN, ROLE_STAFF
from ..core.errors import NotFoundError
from ..models.models import CCTVCamera, User
from .access import require_admin, require_any_role
from .audit import audit_log

logger = logging.getLogger(__name__)


def get_camera(session: Session, cctv_id: str) -> CCTVCamera:
    camera = session.get(CCTVCamera, cctv_id)
    if not camera:
        raise NotFoundError("Camera not found")
    return camera


def list_cameras(session: Session, actor: Optional[User]) -> List[CCTVCamera]:
    require_any_role(actor, ROLE_ADMIN, ROLE_STAFF)
    return session.query(CCTVCamera).order_by(CCTVCamera.created_at.asc()).all()


def create_camera(session: Session, actor: Optional[User], name: str, stream_url: str) -> CCTVCamera:
    actor = require_admin(actor)
    camera = CCTVCamera(name=name.strip(), stream_url=stream_url.strip())
    session.add(camera)
    session.commit()
    logger.info("Camera %s added by %s", camera.cctv_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="cctv.create",
        target_entity_type="CCTVCamera",
        target_entity_id=camera.cctv_id,
        after={"name": camera.name, "stream_url": camera.stream_url},
    )
    return camera


def update_camera(
    session: Session,
    actor: Optional[User],
    cctv_id: str,
    name: str,
    stream_url: str,
) -> CCTVCamera:
    actor = require_admin(actor)
    camera = get_camera(session, cctv_id)
    before = {"name": camera.name, "stream_url": camera.stream_url}
    camera.name = name.strip()
    camera.stream_url = stream_url.strip()
    session.commit()
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="cctv.update",
        target_entity_type="CCTVCamera",
        target_entity_id=camera.cctv_id,
        before=before,
        after={"name": camera.name, "stream_url": camera.stream_url},
    )
    return camera


def delete_camera(session: Session, actor: Optional[User], cctv_id: str) -> None:
    actor = require_admin(actor)
    camera = get_camera(session, cctv_id)
    before = {"name": camera.name, "stream_url": camera.stream_url}
    session.delete(camera)
    session.commit()
    logger.info("Camera %s removed by %s", cctv_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="cctv.delete",
        target_entity_type="CCTVCamera",
        target_entity_id=cctv_id,
        before=before,
    )
