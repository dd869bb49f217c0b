import logging
import secrets
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import ROLE_ADMIN, ROLE_STAFF
from ..core.errors import NotFoundError
from ..models.models import User, Visitor
from ..schemas.schemas import VisitorRead
from .access import require_any_role, require_self_or_admin
from .audit import audit_log

logger = logging.getLogger(__name__)


def _new_qr_token() -> str:
    return f"qr_{secrets.token_urlsafe(9)}"


def visitor_read(visitor: Visitor) -> VisitorRead:
    homeowner = visitor.homeowner
    return VisitorRead(
        visitor_id=visitor.visitor_id,
        homeowner_id=visitor.homeowner_id,
        homeowner_name=homeowner.full_name if homeowner else "Unknown",
        homeowner_address=homeowner.address if homeowner else "",
        name=visitor.name,
        vehicle=visitor.vehicle,
        date=visitor.date,
        time_in=visitor.time_in,
        time_out=visitor.time_out,
        qr_code=visitor.qr_code,
        status=visitor.status,
    )


def create_visitor_pass(
    session: Session,
    actor: Optional[User],
    homeowner_id: str,
    name: str,
    vehicle: str,
    visit_date: date,
) -> Visitor:
    actor = require_self_or_admin(actor, homeowner_id)
    if not session.get(User, homeowner_id):
        raise NotFoundError("User not found")
    visitor = Visitor(
        homeowner_id=homeowner_id,
        name=name.strip(),
        vehicle=vehicle,
        date=visit_date,
        qr_code=_new_qr_token(),
        status="expected",
    )
    session.add(visitor)
    session.commit()
    logger.info("Visitor pass %s issued for %s on %s", visitor.visitor_id, homeowner_id, visit_date.isoformat())
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="visitor.create",
        target_entity_type="Visitor",
        target_entity_id=visitor.visitor_id,
        after={"name": visitor.name, "date": visit_date},
    )
    return visitor


def list_visitors_for_homeowner(session: Session, actor: Optional[User], homeowner_id: str) -> List[VisitorRead]:
    require_self_or_admin(actor, homeowner_id)
    visitors = (
        session.query(Visitor)
        .options(selectinload(Visitor.homeowner))
        .filter(Visitor.homeowner_id == homeowner_id)
        .order_by(Visitor.date.desc())
        .all()
    )
    return [visitor_read(visitor) for visitor in visitors]


def list_all_visitors(session: Session, actor: Optional[User]) -> List[VisitorRead]:
    require_any_role(actor, ROLE_ADMIN, ROLE_STAFF)
    visitors = (
        session.query(Visitor)
        .options(selectinload(Visitor.homeowner))
        .order_by(Visitor.date.desc())
        .all()
    )
    return [visitor_read(visitor) for visitor in visitors]
