from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import User
from ..schemas.schemas import ReservationPayload, ReservationRead, ReservationStatusPayload
from ..services import amenities as amenity_service

router = APIRouter()


@router.get("/reservations", response_model=List[ReservationRead])
def list_reservations(
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[ReservationRead]:
    if user_id is None and user.has_role(ROLE_ADMIN):
        return amenity_service.list_all_reservations(db, user)
    return amenity_service.list_reservations_for_user(db, user, user_id or user.user_id)


@router.post("/reservations", response_model=ReservationRead, status_code=201)
def create_reservation(
    payload: ReservationPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ReservationRead:
    reservation = amenity_service.create_reservation(
        db,
        user,
        user_id=payload.userId,
        amenity_name=payload.amenityName,
        reservation_date=payload.reservationDate,
        start_time=payload.startTime,
        end_time=payload.endTime,
        notes=payload.notes,
    )
    return amenity_service.reservation_read(reservation)


@router.post("/reservations/status", response_model=ReservationRead)
def update_reservation_status(
    payload: ReservationStatusPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles(ROLE_ADMIN)),
) -> ReservationRead:
    reservation = amenity_service.update_reservation_status(
        db,
        actor,
        payload.reservationId,
        payload.status,
        expected_version=payload.version,
    )
    return amenity_service.reservation_read(reservation, amenity_service.find_overlaps(db, reservation))
