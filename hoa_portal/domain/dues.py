"""Due totals, display status and review transitions.

Shared by the gateway service and the portal client. Nothing in this module
touches the database or the network, so every function accepts ORM rows,
schema objects or plain mappings alike.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from ..constants import METHOD_CASH
from ..core.errors import InvalidTransition, ValidationFailed

CENT = Decimal("0.01")

LABEL_PENDING_VERIFICATION = "Pending Verification"
LABEL_PENDING_CASH = "Pending Cash Payment"
LABEL_REJECTED = "Payment Rejected"
DUE_STATUS_LABELS = {"paid": "Paid", "unpaid": "Unpaid", "overdue": "Overdue"}

REVIEW_TRANSITIONS = {"pending": ("verified", "rejected")}
REJECTION_NOTE_REQUIRED = "Rejection reason is required."


def field(record: Any, name: str, default: Any = None) -> Any:
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def to_money(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_total(due: Any) -> Decimal:
    return to_money(field(due, "amount")) + to_money(field(due, "penalty"))


@dataclass(frozen=True)
class DueDisplay:
    label: str
    note: Optional[str] = None
    can_pay: bool = False


def derive_display_status(due: Any) -> DueDisplay:
    """Label a due for display; an attached payment's status wins over the due's own."""
    status = field(due, "status") or "unpaid"
    payment = field(due, "payment")
    if payment is not None:
        payment_status = field(payment, "status")
        if payment_status == "pending":
            if field(payment, "method") == METHOD_CASH:
                return DueDisplay(label=LABEL_PENDING_CASH)
            return DueDisplay(label=LABEL_PENDING_VERIFICATION)
        if payment_status == "rejected":
            return DueDisplay(label=LABEL_REJECTED, note=field(payment, "notes"), can_pay=True)

    label = DUE_STATUS_LABELS.get(status, str(status).title())
    return DueDisplay(label=label, can_pay=status in ("unpaid", "overdue") and payment is None)


def _paid_at(payment: Any) -> datetime:
    value = field(payment, "date_paid")
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
        except ValueError:
            return datetime.min
    return datetime.min


def select_display_payment(payments: Iterable[Any]) -> Optional[Any]:
    """First non-rejected payment in creation order, else the latest rejected one."""
    payments = list(payments)
    for payment in payments:
        if field(payment, "status") != "rejected":
            return payment
    if not payments:
        return None
    return max(payments, key=_paid_at)


def find_active_payment(payments: Iterable[Any]) -> Optional[Any]:
    for payment in payments:
        if field(payment, "status") in ("pending", "verified"):
            return payment
    return None


def check_review_transition(current: str, target: str, notes: Optional[str] = None) -> None:
    if target not in REVIEW_TRANSITIONS.get(current, ()):
        if current != "pending":
            raise InvalidTransition(f"Payment is already {current}.")
        raise InvalidTransition(f"Cannot change a pending payment to {target}.")
    if target == "rejected" and not (notes or "").strip():
        raise ValidationFailed(REJECTION_NOTE_REQUIRED)
