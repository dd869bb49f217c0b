from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..constants import ROLE_HOMEOWNER
from ..domain.dues import to_money
from ..models.models import AmenityReservation, Due, Payment, User
from ..schemas.schemas import AnnouncementRead
from .access import require_admin, require_self_or_admin
from .announcements import list_announcements
from .billing import list_dues_for_user

DASHBOARD_ANNOUNCEMENTS = 3


def homeowner_dashboard(
    session: Session,
    actor: Optional[User],
    user_id: str,
    today: Optional[date] = None,
) -> Dict[str, object]:
    require_self_or_admin(actor, user_id)
    pending_requests = (
        session.query(AmenityReservation)
        .filter(AmenityReservation.user_id == user_id, AmenityReservation.status == "pending")
        .count()
    )
    return {
        "dues": list_dues_for_user(session, actor, user_id, today),
        "announcements": [
            AnnouncementRead.model_validate(announcement)
            for announcement in list_announcements(session, actor, limit=DASHBOARD_ANNOUNCEMENTS)
        ],
        "pendingRequestsCount": pending_requests,
    }


def _collected_this_month(session: Session, today: date) -> Decimal:
    month_start = datetime(today.year, today.month, 1)
    if today.month == 12:
        next_month = datetime(today.year + 1, 1, 1)
    else:
        next_month = datetime(today.year, today.month + 1, 1)

    total = Decimal("0.00")
    payments = session.query(Payment).filter(Payment.status == "verified").all()
    for payment in payments:
        paid_at = payment.date_paid.replace(tzinfo=None)
        if month_start <= paid_at < next_month:
            total += to_money(payment.amount)

    settled = (
        session.query(Due)
        .filter(Due.status == "paid", Due.settled_at >= month_start, Due.settled_at < next_month)
        .all()
    )
    for due in settled:
        if not any(payment.status == "verified" for payment in due.payments):
            total += to_money(due.total_due)
    return total


def admin_dashboard(session: Session, actor: Optional[User], today: Optional[date] = None) -> Dict[str, object]:
    require_admin(actor)
    today = today or datetime.now(timezone.utc).date()

    approvals: List[Dict[str, str]] = []
    for user in session.query(User).filter(User.status == "pending").all():
        approvals.append(
            {
                "id": user.user_id,
                "name": user.full_name,
                "type": "New Member",
                "date": user.date_created.date().isoformat(),
            }
        )
    pending_reservations = session.query(AmenityReservation).filter(AmenityReservation.status == "pending").all()
    for reservation in pending_reservations:
        approvals.append(
            {
                "id": reservation.reservation_id,
                "name": reservation.user.full_name if reservation.user else "Unknown",
                "type": f"Amenity: {reservation.amenity_name}",
                "date": reservation.reservation_date.isoformat(),
            }
        )
    approvals.sort(key=lambda item: item["date"], reverse=True)

    upcoming = (
        session.query(AmenityReservation)
        .filter(AmenityReservation.reservation_date >= today)
        .count()
    )
    active_members = (
        session.query(User)
        .filter(User.status == "active", User.role == ROLE_HOMEOWNER)
        .count()
    )
    return {
        "duesCollected": _collected_this_month(session, today),
        "pendingApprovalsCount": len(approvals),
        "upcomingEventsCount": upcoming,
        "activeMembers": active_members,
        "pendingApprovals": approvals,
    }
