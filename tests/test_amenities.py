from datetime import date

import pytest

from hoa_portal.config import settings
from hoa_portal.core.errors import ConflictError, PermissionDenied, ValidationFailed
from hoa_portal.services import amenities as amenity_service

TODAY = date(2024, 10, 1)
PARTY_DAY = date(2024, 10, 19)


def _book(db_session, user, start="09:00", end="12:00", amenity="Clubhouse", day=PARTY_DAY):
    return amenity_service.create_reservation(
        db_session,
        user,
        user_id=user.user_id,
        amenity_name=amenity,
        reservation_date=day,
        start_time=start,
        end_time=end,
        notes="Birthday party",
        today=TODAY,
    )


def test_new_reservation_is_pending(db_session, homeowner):
    reservation = _book(db_session, homeowner)

    assert reservation.status == "pending"
    assert reservation.version == 1


def test_reservation_in_the_past_is_refused(db_session, homeowner):
    with pytest.raises(ValidationFailed) as exc:
        _book(db_session, homeowner, day=date(2024, 9, 30))

    assert exc.value.message == "Cannot book a date in the past."


@pytest.mark.parametrize("start, end", [("12:00", "09:00"), ("10:00", "10:00")])
def test_reservation_window_must_run_forward(db_session, homeowner, start, end):
    with pytest.raises(ValidationFailed) as exc:
        _book(db_session, homeowner, start=start, end=end)

    assert exc.value.message == "Start time must be before end time."


def test_homeowner_cannot_book_for_someone_else(db_session, homeowner, create_user):
    neighbour = create_user()

    with pytest.raises(PermissionDenied):
        amenity_service.create_reservation(
            db_session,
            homeowner,
            user_id=neighbour.user_id,
            amenity_name="Clubhouse",
            reservation_date=PARTY_DAY,
            start_time="09:00",
            end_time="10:00",
            today=TODAY,
        )


def test_unversioned_status_updates_are_last_write_wins(db_session, admin, create_user, homeowner):
    second_admin = create_user(role="Admin")
    reservation = _book(db_session, homeowner)

    amenity_service.update_reservation_status(db_session, admin, reservation.reservation_id, "approved")
    amenity_service.update_reservation_status(db_session, second_admin, reservation.reservation_id, "denied")

    db_session.refresh(reservation)
    assert reservation.status == "denied"
    assert reservation.version == 3


def test_versioned_status_update_detects_stale_copy(db_session, admin, homeowner):
    reservation = _book(db_session, homeowner)
    seen_version = reservation.version

    amenity_service.update_reservation_status(
        db_session, admin, reservation.reservation_id, "approved", expected_version=seen_version
    )
    with pytest.raises(ConflictError):
        amenity_service.update_reservation_status(
            db_session, admin, reservation.reservation_id, "denied", expected_version=seen_version
        )

    db_session.refresh(reservation)
    assert reservation.status == "approved"


def test_admin_listing_flags_overlapping_approved_reservations(db_session, admin, homeowner, create_user):
    neighbour = create_user()
    approved = _book(db_session, homeowner, start="09:00", end="12:00")
    amenity_service.update_reservation_status(db_session, admin, approved.reservation_id, "approved")
    clashing = _book(db_session, neighbour, start="11:00", end="13:00")
    _book(db_session, neighbour, start="12:00", end="14:00", amenity="Swimming Pool")

    listed = {item.reservation_id: item for item in amenity_service.list_all_reservations(db_session, admin)}

    assert listed[clashing.reservation_id].conflicts_with == [approved.reservation_id]
    assert listed[approved.reservation_id].conflicts_with == []


def test_overlap_is_only_blocked_when_enforced(db_session, admin, homeowner, create_user, monkeypatch):
    neighbour = create_user()
    first = _book(db_session, homeowner, start="09:00", end="12:00")
    second = _book(db_session, neighbour, start="10:00", end="11:00")
    amenity_service.update_reservation_status(db_session, admin, first.reservation_id, "approved")

    monkeypatch.setattr(settings, "enforce_reservation_overlap", True)
    with pytest.raises(ConflictError):
        amenity_service.update_reservation_status(db_session, admin, second.reservation_id, "approved")

    monkeypatch.setattr(settings, "enforce_reservation_overlap", False)
    approved = amenity_service.update_reservation_status(db_session, admin, second.reservation_id, "approved")
    assert approved.status == "approved"


def test_reservation_status_over_rest_requires_admin(client, homeowner, headers_for):
    response = client.post(
        "/amenities/reservations/status",
        json={"reservationId": "res_missing", "status": "approved"},
        headers=headers_for(homeowner),
    )

    assert response.status_code == 403


@pytest.mark.parametrize("status", ["pending", "completed"])
def test_admins_only_approve_or_deny(db_session, admin, homeowner, status):
    reservation = _book(db_session, homeowner)
    amenity_service.update_reservation_status(db_session, admin, reservation.reservation_id, "approved")

    with pytest.raises(ValidationFailed) as exc:
        amenity_service.update_reservation_status(db_session, admin, reservation.reservation_id, status)

    assert exc.value.message == "A reservation can only be approved or denied."
    db_session.refresh(reservation)
    assert reservation.status == "approved"
    assert reservation.version == 2


def test_reservation_cannot_be_reopened_over_rest(client, db_session, admin, homeowner, headers_for):
    reservation = _book(db_session, homeowner)

    response = client.post(
        "/amenities/reservations/status",
        json={"reservationId": reservation.reservation_id, "status": "pending"},
        headers=headers_for(admin),
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Validation failed."
