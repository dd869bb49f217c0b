import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import ELECTRONIC_METHODS, METHOD_CASH, ROLE_HOMEOWNER
from ..core.errors import InvalidTransition, NotFoundError, ValidationFailed
from ..domain.dues import (
    compute_total,
    derive_display_status,
    find_active_payment,
    select_display_payment,
    to_money,
)
from ..models.models import Due, Payment, User
from ..schemas.schemas import DueRead, PaymentRead
from . import settings as app_settings
from .access import require_actor, require_admin, require_self_or_admin
from .audit import audit_log
from .verification import accept_proof, bump_version, review

logger = logging.getLogger(__name__)

CASH_INTENT_NOTE = "Pending cash payment at office."
ADMIN_CASH_NOTE = "Cash payment recorded by Admin."
AUTO_GENERATED_NOTE = "Auto-generated"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_due(session: Session, due_id: str) -> Due:
    due = session.get(Due, due_id)
    if not due:
        raise NotFoundError("Due not found.")
    return due


def get_payment(session: Session, payment_id: str) -> Payment:
    payment = session.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found.")
    return payment


def _refuse_if_settled(due: Due) -> None:
    if due.status == "paid":
        raise InvalidTransition("This due is already paid.")
    active = find_active_payment(due.payments)
    if active is not None:
        raise InvalidTransition(f"A payment for this due is already {active.status}.")


# --- Views ---


def due_read(due: Due, include_owner: bool = False) -> DueRead:
    payment = select_display_payment(due.payments)
    # A rejected attempt says nothing about a due that was settled some other way.
    if payment is not None and due.status == "paid" and payment.status == "rejected":
        payment = None
    display = derive_display_status({"status": due.status, "payment": payment})

    data: Dict[str, Any] = {
        "due_id": due.due_id,
        "user_id": due.user_id,
        "billing_month": due.billing_month,
        "amount": due.amount,
        "penalty": due.penalty,
        "total_due": due.total_due,
        "status": due.status,
        "notes": due.notes,
        "settled_at": due.settled_at,
        "settlement_method": due.settlement_method,
        "version": due.version,
        "payment": PaymentRead.model_validate(payment) if payment is not None else None,
        "display_status": display.label,
        "display_note": display.note,
        "can_pay": display.can_pay,
    }
    if include_owner:
        owner = due.user
        data.update(
            full_name=owner.full_name if owner else "Unknown",
            block=owner.block if owner else None,
            lot=owner.lot if owner else None,
        )
    return DueRead(**data)


def list_dues_for_user(
    session: Session,
    actor: Optional[User],
    user_id: str,
    today: Optional[date] = None,
) -> List[DueRead]:
    require_self_or_admin(actor, user_id)
    mark_overdue_dues(session, today)
    dues = (
        session.query(Due)
        .options(selectinload(Due.payments))
        .filter(Due.user_id == user_id)
        .order_by(Due.billing_month.desc())
        .all()
    )
    return [due_read(due) for due in dues]


def list_all_dues(session: Session, actor: Optional[User], today: Optional[date] = None) -> List[DueRead]:
    require_admin(actor)
    mark_overdue_dues(session, today)
    dues = (
        session.query(Due)
        .options(selectinload(Due.payments), selectinload(Due.user))
        .order_by(Due.billing_month.desc(), Due.user_id.asc())
        .all()
    )
    return [due_read(due, include_owner=True) for due in dues]


# --- Payments ---


def submit_payment(
    session: Session,
    actor: Optional[User],
    due_id: str,
    proof_url: Optional[str],
    method: str,
    amount: Optional[Decimal] = None,
) -> Payment:
    actor = require_actor(actor)
    due = get_due(session, due_id)
    require_self_or_admin(actor, due.user_id)
    if method not in ELECTRONIC_METHODS:
        raise ValidationFailed("Choose GCash, Maya, bank transfer or card for an online payment.")
    _refuse_if_settled(due)
    total = to_money(due.total_due)
    if amount is not None and to_money(amount) != total:
        raise ValidationFailed(f"Payment amount must equal the amount due ({total}).")

    proof_path = accept_proof(proof_url, folder=f"proofs/{due.user_id}")
    payment = Payment(
        due_id=due.due_id,
        user_id=due.user_id,
        amount=total,
        method=method,
        proof_url=proof_path,
        status="pending",
        date_paid=_now(),
    )
    session.add(payment)
    session.commit()
    logger.info("Payment %s submitted for due %s via %s", payment.payment_id, due.due_id, method)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="payment.submit",
        target_entity_type="Payment",
        target_entity_id=payment.payment_id,
        after={"due_id": due.due_id, "amount": payment.amount, "method": method},
    )
    return payment


def record_cash_payment_intent(
    session: Session,
    actor: Optional[User],
    due_id: str,
) -> Payment:
    actor = require_actor(actor)
    due = get_due(session, due_id)
    require_self_or_admin(actor, due.user_id)
    _refuse_if_settled(due)

    payment = Payment(
        due_id=due.due_id,
        user_id=due.user_id,
        amount=to_money(due.total_due),
        method=METHOD_CASH,
        proof_url="",
        status="pending",
        date_paid=_now(),
        notes=CASH_INTENT_NOTE,
    )
    session.add(payment)
    session.commit()
    logger.info("Cash payment intent %s recorded for due %s", payment.payment_id, due.due_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="payment.cash_intent",
        target_entity_type="Payment",
        target_entity_id=payment.payment_id,
        after={"due_id": due.due_id, "amount": payment.amount},
    )
    return payment


def record_admin_cash_payment(session: Session, actor: Optional[User], due_id: str) -> Due:
    """Settle a due in cash at the office. No payment record is created."""
    actor = require_admin(actor)
    due = get_due(session, due_id)
    if due.status == "paid":
        raise InvalidTransition("This due is already paid.")
    pending = next((p for p in due.payments if p.status == "pending"), None)
    if pending is not None:
        raise InvalidTransition("A payment for this due is pending review. Verify or reject it instead.")

    before = {"status": due.status}
    due.status = "paid"
    due.settled_at = _now()
    due.settled_by_user_id = actor.user_id
    due.settlement_method = METHOD_CASH
    due.notes = ADMIN_CASH_NOTE
    bump_version(due)
    session.commit()
    logger.info("Due %s settled in cash by %s", due.due_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="due.cash_settlement",
        target_entity_type="Due",
        target_entity_id=due.due_id,
        before=before,
        after={"status": due.status, "amount": due.total_due},
    )
    return due


def update_payment_status(
    session: Session,
    actor: Optional[User],
    payment_id: str,
    status: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Payment:
    actor = require_admin(actor)
    payment = get_payment(session, payment_id)
    before = {"status": payment.status, "version": payment.version}
    review(payment, actor, status, notes, expected_version)

    if status == "verified":
        due = payment.due
        due.status = "paid"
        due.settled_at = payment.reviewed_at
        due.settled_by_user_id = actor.user_id
        due.settlement_method = payment.method
        bump_version(due)
    session.commit()
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action=f"payment.{status}",
        target_entity_type="Payment",
        target_entity_id=payment.payment_id,
        before=before,
        after={"status": payment.status, "version": payment.version, "notes": payment.notes},
    )
    return payment


# --- Due generation and ageing ---


def generate_monthly_dues(
    session: Session,
    billing_month: date,
    amount: Optional[Decimal] = None,
) -> List[Due]:
    """Bill every active homeowner once for ``billing_month``. Safe to re-run."""
    rate = to_money(amount if amount is not None else app_settings.get_app_settings(session)["monthlyDue"])
    homeowners = (
        session.query(User)
        .filter(User.role == ROLE_HOMEOWNER, User.status == "active")
        .all()
    )
    already_billed = {
        user_id
        for (user_id,) in session.query(Due.user_id).filter(Due.billing_month == billing_month).all()
    }

    created: List[Due] = []
    for homeowner in homeowners:
        if homeowner.user_id in already_billed:
            continue
        due = Due(
            user_id=homeowner.user_id,
            billing_month=billing_month,
            amount=rate,
            penalty=Decimal("0.00"),
            total_due=rate,
            status="unpaid",
            notes=AUTO_GENERATED_NOTE,
        )
        session.add(due)
        created.append(due)
    session.commit()
    logger.info(
        "Generated %d dues for %s (%d already billed)",
        len(created),
        billing_month.isoformat(),
        len(already_billed),
    )
    return created


def mark_overdue_dues(session: Session, today: Optional[date] = None) -> List[Due]:
    """Unpaid dues past their grace period become overdue and take the flat penalty once."""
    today = today or date.today()
    current = app_settings.get_app_settings(session)
    grace = timedelta(days=current["gracePeriodDays"])
    penalty = to_money(current["penalty"])

    candidates = (
        session.query(Due)
        .options(selectinload(Due.payments))
        .filter(Due.status == "unpaid", Due.billing_month < today - grace)
        .all()
    )
    changed: List[Due] = []
    for due in candidates:
        if find_active_payment(due.payments) is not None:
            continue
        due.status = "overdue"
        due.penalty = to_money(due.penalty) + penalty
        due.total_due = compute_total(due)
        bump_version(due)
        changed.append(due)
    if changed:
        session.commit()
        logger.info("Marked %d dues overdue as of %s", len(changed), today.isoformat())
    return changed


def apply_settings_update(session: Session, actor: Optional[User], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Save settings; a new effective date bills every active homeowner for that date."""
    if app_settings.update_app_settings(session, actor, updates):
        billing_date = app_settings.effective_date(session)
        if billing_date is not None:
            generate_monthly_dues(session, billing_date)
    return app_settings.get_app_settings(session)
