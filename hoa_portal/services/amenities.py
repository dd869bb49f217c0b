import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..constants import RESERVATION_DECISIONS
from ..core.errors import ConflictError, NotFoundError, ValidationFailed
from ..domain.reservations import OVERLAP_REFUSED, overlapping, window_problem
from ..models.models import AmenityReservation, User
from ..schemas.schemas import ReservationRead
from .access import require_admin, require_self_or_admin
from .audit import audit_log
from .verification import bump_version, check_version

logger = logging.getLogger(__name__)


def get_reservation(session: Session, reservation_id: str) -> AmenityReservation:
    reservation = session.get(AmenityReservation, reservation_id)
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def find_overlaps(session: Session, reservation: AmenityReservation) -> List[AmenityReservation]:
    """Approved reservations of the same amenity whose windows intersect this one."""
    same_day = (
        session.query(AmenityReservation)
        .filter(
            AmenityReservation.amenity_name == reservation.amenity_name,
            AmenityReservation.reservation_date == reservation.reservation_date,
            AmenityReservation.status == "approved",
        )
        .all()
    )
    return overlapping(reservation, same_day)


def reservation_read(
    reservation: AmenityReservation,
    conflicts: Optional[List[AmenityReservation]] = None,
) -> ReservationRead:
    owner = reservation.user
    return ReservationRead(
        reservation_id=reservation.reservation_id,
        user_id=reservation.user_id,
        full_name=owner.full_name if owner else "Unknown",
        amenity_name=reservation.amenity_name,
        reservation_date=reservation.reservation_date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        status=reservation.status,
        notes=reservation.notes,
        version=reservation.version,
        conflicts_with=[other.reservation_id for other in conflicts or []],
    )


def list_reservations_for_user(session: Session, actor: Optional[User], user_id: str) -> List[ReservationRead]:
    require_self_or_admin(actor, user_id)
    reservations = (
        session.query(AmenityReservation)
        .options(selectinload(AmenityReservation.user))
        .filter(AmenityReservation.user_id == user_id)
        .order_by(AmenityReservation.reservation_date.desc(), AmenityReservation.start_time.asc())
        .all()
    )
    return [reservation_read(reservation) for reservation in reservations]


def list_all_reservations(session: Session, actor: Optional[User]) -> List[ReservationRead]:
    require_admin(actor)
    reservations = (
        session.query(AmenityReservation)
        .options(selectinload(AmenityReservation.user))
        .order_by(AmenityReservation.reservation_date.desc(), AmenityReservation.start_time.asc())
        .all()
    )
    by_slot: Dict[Tuple[str, date], List[AmenityReservation]] = defaultdict(list)
    for reservation in reservations:
        by_slot[(reservation.amenity_name, reservation.reservation_date)].append(reservation)
    return [
        reservation_read(
            reservation,
            overlapping(reservation, by_slot[(reservation.amenity_name, reservation.reservation_date)]),
        )
        for reservation in reservations
    ]


def create_reservation(
    session: Session,
    actor: Optional[User],
    *,
    user_id: str,
    amenity_name: str,
    reservation_date: date,
    start_time: str,
    end_time: str,
    notes: str = "",
    today: Optional[date] = None,
) -> AmenityReservation:
    actor = require_self_or_admin(actor, user_id)
    problem = window_problem(reservation_date, start_time, end_time, today)
    if problem:
        raise ValidationFailed(problem)

    reservation = AmenityReservation(
        user_id=user_id,
        amenity_name=amenity_name,
        reservation_date=reservation_date,
        start_time=start_time,
        end_time=end_time,
        status="pending",
        notes=notes,
    )
    session.add(reservation)
    session.commit()
    logger.info(
        "Reservation %s requested for %s on %s %s-%s",
        reservation.reservation_id,
        amenity_name,
        reservation_date.isoformat(),
        start_time,
        end_time,
    )
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="reservation.create",
        target_entity_type="AmenityReservation",
        target_entity_id=reservation.reservation_id,
        after={"amenity": amenity_name, "date": reservation_date, "start": start_time, "end": end_time},
    )
    return reservation


def update_reservation_status(
    session: Session,
    actor: Optional[User],
    reservation_id: str,
    status: str,
    expected_version: Optional[int] = None,
) -> AmenityReservation:
    """Set a reservation's status. Without ``expected_version`` the last write wins."""
    actor = require_admin(actor)
    if status not in RESERVATION_DECISIONS:
        raise ValidationFailed("A reservation can only be approved or denied.")
    reservation = get_reservation(session, reservation_id)
    check_version(reservation, expected_version)
    if status == "approved" and settings.enforce_reservation_overlap and find_overlaps(session, reservation):
        raise ConflictError(OVERLAP_REFUSED)

    previous = reservation.status
    reservation.status = status
    bump_version(reservation)
    session.commit()
    logger.info(
        "Reservation %s moved %s -> %s by %s",
        reservation.reservation_id,
        previous,
        status,
        actor.user_id,
    )
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="reservation.status",
        target_entity_type="AmenityReservation",
        target_entity_id=reservation.reservation_id,
        before={"status": previous},
        after={"status": status, "version": reservation.version},
    )
    return reservation
