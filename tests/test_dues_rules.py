from datetime import datetime
from decimal import Decimal

import pytest

from hoa_portal.core.errors import InvalidTransition, ValidationFailed
from hoa_portal.domain.dues import (
    check_review_transition,
    compute_total,
    derive_display_status,
    find_active_payment,
    select_display_payment,
)


def test_pending_payment_labels_due_as_pending_verification():
    due = {"status": "unpaid", "payment": {"status": "pending", "method": "GCash"}}

    display = derive_display_status(due)

    assert display.label == "Pending Verification"
    assert display.can_pay is False


def test_pending_cash_payment_has_its_own_label():
    due = {"status": "overdue", "payment": {"status": "pending", "method": "Cash"}}

    assert derive_display_status(due).label == "Pending Cash Payment"


def test_rejected_payment_allows_resubmission_and_shows_note():
    due = {
        "status": "unpaid",
        "payment": {"status": "rejected", "method": "GCash", "notes": "Blurry screenshot"},
    }

    display = derive_display_status(due)

    assert display.label == "Payment Rejected"
    assert display.note == "Blurry screenshot"
    assert display.can_pay is True


def test_due_status_label_when_no_payment():
    assert derive_display_status({"status": "overdue", "payment": None}).label == "Overdue"
    assert derive_display_status({"status": "unpaid", "payment": None}).can_pay is True
    paid = derive_display_status({"status": "paid", "payment": None})
    assert paid.label == "Paid"
    assert paid.can_pay is False


def test_compute_total_adds_penalty():
    assert compute_total({"amount": 2500, "penalty": 250}) == Decimal("2750.00")
    assert compute_total({"amount": "2000.005", "penalty": None}) == Decimal("2000.01")


def test_select_display_payment_prefers_active_over_rejected():
    rejected = {"status": "rejected", "date_paid": datetime(2024, 10, 2)}
    pending = {"status": "pending", "date_paid": datetime(2024, 10, 5)}

    assert select_display_payment([rejected, pending]) is pending


def test_select_display_payment_falls_back_to_latest_rejected():
    older = {"status": "rejected", "date_paid": datetime(2024, 10, 2)}
    newer = {"status": "rejected", "date_paid": datetime(2024, 10, 9)}

    assert select_display_payment([newer, older]) is newer
    assert select_display_payment([]) is None


def test_find_active_payment_ignores_rejected():
    assert find_active_payment([{"status": "rejected"}]) is None
    verified = {"status": "verified"}
    assert find_active_payment([{"status": "rejected"}, verified]) is verified


def test_review_transitions_only_leave_pending():
    check_review_transition("pending", "verified")
    check_review_transition("pending", "rejected", "Amount does not match")

    with pytest.raises(InvalidTransition):
        check_review_transition("verified", "rejected", "too late")
    with pytest.raises(InvalidTransition):
        check_review_transition("rejected", "verified")
    with pytest.raises(InvalidTransition):
        check_review_transition("pending", "pending")


def test_rejection_requires_note():
    with pytest.raises(ValidationFailed) as exc:
        check_review_transition("pending", "rejected", "   ")

    assert exc.value.message == "Rejection reason is required."
