from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_roles
from ..constants import ROLE_ADMIN
from ..models.models import Expense, User
from ..schemas.schemas import ExpensePayload, ExpenseRead, FinancialReportRead
from ..services.audit import audit_log
from ..services.reports import (
    build_financial_report,
    create_expense,
    generate_expense_ledger_report,
    generate_receivables_report,
)

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


def _csv_response(filename: str, content: str) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=content, media_type="text/csv", headers=headers)


def _audit_report_access(session: Session, actor: User, action: str) -> None:
    audit_log(
        db_session=session,
        actor_user_id=actor.user_id,
        action=action,
        target_entity_type="Report",
        target_entity_id=action,
    )


@router.get("/financial", response_model=FinancialReportRead)
def financial_report(db: Session = Depends(get_db), actor: User = Depends(require_admin)) -> FinancialReportRead:
    return FinancialReportRead.model_validate(build_financial_report(db, actor))


@router.post("/expenses", response_model=ExpenseRead, status_code=201)
def add_expense(
    payload: ExpensePayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> Expense:
    return create_expense(
        db,
        actor,
        expense_date=payload.date,
        category=payload.category,
        amount=payload.amount,
        payee=payload.payee,
        description=payload.description,
    )


@router.get("/accounts-receivable.csv")
def export_receivables(db: Session = Depends(get_db), actor: User = Depends(require_admin)) -> Response:
    report = generate_receivables_report(db)
    _audit_report_access(db, actor, "reports.accounts_receivable")
    return _csv_response(report.filename, report.content)


@router.get("/expenses.csv")
def export_expense_ledger(db: Session = Depends(get_db), actor: User = Depends(require_admin)) -> Response:
    report = generate_expense_ledger_report(db)
    _audit_report_access(db, actor, "reports.expense_ledger")
    return _csv_response(report.filename, report.content)
