from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import Payment, User
from ..schemas.schemas import (
    AdminCashPayload,
    CashIntentPayload,
    DueRead,
    PaymentRead,
    PaymentStatusPayload,
    PaymentSubmission,
)
from ..services import billing as billing_service
from ..utils.pdf_utils import generate_payment_receipt_pdf

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


@router.get("/dues", response_model=List[DueRead])
def list_dues(
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[DueRead]:
    if user_id is None and user.has_role(ROLE_ADMIN):
        return billing_service.list_all_dues(db, user)
    return billing_service.list_dues_for_user(db, user, user_id or user.user_id)


@router.get("/dues/{due_id}", response_model=DueRead)
def get_due(
    due_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> DueRead:
    due = billing_service.get_due(db, due_id)
    if due.user_id != user.user_id and not user.has_role(ROLE_ADMIN):
        raise HTTPException(status_code=403, detail="You may only access your own records.")
    return billing_service.due_read(due, include_owner=user.has_role(ROLE_ADMIN))


@router.post("/payments", response_model=PaymentRead, status_code=201)
def submit_payment(
    payload: PaymentSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Payment:
    return billing_service.submit_payment(db, user, payload.dueId, payload.proofUrl, payload.method, payload.amount)


@router.post("/payments/cash-intent", response_model=PaymentRead, status_code=201)
def record_cash_intent(
    payload: CashIntentPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Payment:
    return billing_service.record_cash_payment_intent(db, user, payload.dueId)


@router.post("/dues/cash-settlement", response_model=DueRead)
def record_admin_cash_payment(
    payload: AdminCashPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> DueRead:
    due = billing_service.record_admin_cash_payment(db, actor, payload.dueId)
    return billing_service.due_read(due, include_owner=True)


@router.post("/payments/status", response_model=PaymentRead)
def update_payment_status(
    payload: PaymentStatusPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> Payment:
    return billing_service.update_payment_status(
        db,
        actor,
        payload.paymentId,
        payload.status,
        notes=payload.notes,
        expected_version=payload.version,
    )


@router.get("/payments/{payment_id}/receipt")
def download_receipt(
    payment_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> FileResponse:
    payment = billing_service.get_payment(db, payment_id)
    if payment.user_id != user.user_id and not user.has_role(ROLE_ADMIN):
        raise HTTPException(status_code=403, detail="You may only access your own records.")
    if payment.status != "verified":
        raise HTTPException(status_code=400, detail="Receipts are only available for verified payments.")
    path = generate_payment_receipt_pdf(payment, payment.due, payment.user)
    return FileResponse(path, media_type="application/pdf", filename=Path(path).name)
