import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..constants import AUDIENCE_ALL, ROLE_ADMIN
from ..models.models import Announcement, User
from .access import require_actor, require_admin
from .audit import audit_log

logger = logging.getLogger(__name__)


def list_announcements(session: Session, actor: Optional[User], limit: Optional[int] = None) -> List[Announcement]:
    """Newest first. Non-admins only see posts addressed to everyone or to their role."""
    actor = require_actor(actor)
    query = session.query(Announcement)
    if not actor.has_role(ROLE_ADMIN):
        query = query.filter(or_(Announcement.audience == AUDIENCE_ALL, Announcement.audience == actor.role))
    query = query.order_by(Announcement.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def create_announcement(
    session: Session,
    actor: Optional[User],
    title: str,
    content: str,
    image_url: Optional[str] = None,
    audience: str = AUDIENCE_ALL,
) -> Announcement:
    actor = require_admin(actor)
    announcement = Announcement(
        title=title.strip(),
        content=content,
        image_url=image_url or "",
        created_by=actor.full_name,
        audience=audience,
    )
    session.add(announcement)
    session.commit()
    logger.info("Announcement %s posted for %s", announcement.ann_id, audience)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="announcement.create",
        target_entity_type="Announcement",
        target_entity_id=announcement.ann_id,
        after={"title": announcement.title, "audience": audience},
    )
    return announcement
