from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import E_WALLET_METHODS, METHOD_CASH, RESERVE_FUND_CATEGORY
from ..domain.dues import to_money
from ..models.models import Due, Expense, Payment, ProjectContribution, User
from ..schemas.schemas import ExpenseRead
from ..utils.csv_utils import money_cell, rows_to_csv
from .access import require_admin
from .audit import audit_log

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class CsvReport:
    filename: str
    content: str


class _Ledger:
    def __init__(self) -> None:
        self.dues = ZERO
        self.penalties = ZERO
        self.other = ZERO
        self.channels = {"cashOnHand": ZERO, "gcash": ZERO, "bank": ZERO}

    def deposit(self, method: Optional[str], amount: Decimal) -> None:
        if method == METHOD_CASH:
            channel = "cashOnHand"
        elif method in E_WALLET_METHODS:
            channel = "gcash"
        else:
            channel = "bank"
        self.channels[channel] += amount

    def dues_income(self, due: Due, method: Optional[str], amount: Decimal) -> None:
        penalty_share = min(to_money(due.penalty), amount)
        self.penalties += penalty_share
        self.dues += amount - penalty_share
        self.deposit(method, amount)

    @property
    def revenue(self) -> Decimal:
        return self.dues + self.penalties + self.other


def _collect_income(session: Session) -> _Ledger:
    ledger = _Ledger()
    verified_payments = (
        session.query(Payment)
        .options(selectinload(Payment.due))
        .filter(Payment.status == "verified")
        .all()
    )
    for payment in verified_payments:
        ledger.dues_income(payment.due, payment.method, to_money(payment.amount))

    # Dues settled at the office have no payment record.
    settled_dues = (
        session.query(Due)
        .options(selectinload(Due.payments))
        .filter(Due.status == "paid", Due.settled_at.isnot(None))
        .all()
    )
    for due in settled_dues:
        if any(payment.status == "verified" for payment in due.payments):
            continue
        ledger.dues_income(due, due.settlement_method or METHOD_CASH, to_money(due.total_due))

    contributions = session.query(ProjectContribution).filter(ProjectContribution.status == "verified").all()
    for contribution in contributions:
        amount = to_money(contribution.amount)
        ledger.other += amount
        ledger.deposit(contribution.method, amount)
    return ledger


def receivables(session: Session) -> List[Dict[str, object]]:
    """Outstanding balances per resident, largest first."""
    totals: Dict[str, Dict[str, object]] = defaultdict(lambda: {"amount": ZERO, "months": 0})
    for due in session.query(Due).filter(Due.status != "paid").all():
        bucket = totals[due.user_id]
        bucket["amount"] += to_money(due.total_due)
        bucket["months"] += 1

    rows = []
    for user_id, bucket in totals.items():
        user = session.get(User, user_id)
        if not user:
            continue
        rows.append(
            {
                "user_id": user_id,
                "name": user.full_name,
                "unit": user.unit,
                "amount": bucket["amount"],
                "months": bucket["months"],
            }
        )
    return sorted(rows, key=lambda row: row["amount"], reverse=True)


def expenses_ledger(session: Session) -> List[Expense]:
    return session.query(Expense).order_by(Expense.date.desc(), Expense.created_at.desc()).all()


def build_financial_report(session: Session, actor: Optional[User]) -> Dict[str, object]:
    require_admin(actor)
    ledger = _collect_income(session)

    expenses = expenses_ledger(session)
    total_expenses = ZERO
    expense_breakdown: Dict[str, Decimal] = {}
    for expense in expenses:
        amount = to_money(expense.amount)
        total_expenses += amount
        expense_breakdown[expense.category] = expense_breakdown.get(expense.category, ZERO) + amount

    receivable_rows = receivables(session)
    accounts_receivable = sum((row["amount"] for row in receivable_rows), ZERO)
    cash_total = sum(ledger.channels.values(), ZERO)

    return {
        "totalRevenue": ledger.revenue,
        "totalExpenses": total_expenses,
        "netSurplus": ledger.revenue - total_expenses,
        "endingCashBalance": cash_total - total_expenses,
        "cashPosition": dict(ledger.channels),
        "incomeBreakdown": {"dues": ledger.dues, "penalties": ledger.penalties, "other": ledger.other},
        "expenseBreakdown": expense_breakdown,
        "accountsReceivable": accounts_receivable,
        "accountsReceivableList": receivable_rows,
        "reserveFundTotal": expense_breakdown.get(RESERVE_FUND_CATEGORY, ZERO),
        "expensesLedger": [ExpenseRead.model_validate(expense) for expense in expenses],
    }


def create_expense(
    session: Session,
    actor: Optional[User],
    *,
    expense_date: date,
    category: str,
    amount: Decimal,
    payee: str,
    description: str = "",
) -> Expense:
    actor = require_admin(actor)
    expense = Expense(
        date=expense_date,
        category=category,
        amount=to_money(amount),
        payee=payee.strip(),
        description=description,
        created_by=actor.full_name,
    )
    session.add(expense)
    session.commit()
    logger.info("Expense %s recorded: %s %s", expense.expense_id, category, expense.amount)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="expense.create",
        target_entity_type="Expense",
        target_entity_id=expense.expense_id,
        after={"category": category, "amount": expense.amount, "payee": expense.payee},
    )
    return expense


def generate_receivables_report(session: Session, as_of: date | None = None) -> CsvReport:
    today = as_of or date.today()
    rows = [
        [row["name"], row["unit"], str(row["months"]), money_cell(row["amount"])]
        for row in receivables(session)
    ]
    content = rows_to_csv(["Resident", "Unit", "Months Unpaid", "Amount Due"], rows)
    return CsvReport(filename=f"accounts-receivable-{today.isoformat()}.csv", content=content)


def generate_expense_ledger_report(session: Session, as_of: date | None = None) -> CsvReport:
    today = as_of or date.today()
    rows = [
        [
            expense.date.isoformat(),
            expense.category,
            expense.payee,
            money_cell(expense.amount),
            expense.description or "",
            expense.created_by,
        ]
        for expense in expenses_ledger(session)
    ]
    content = rows_to_csv(["Date", "Category", "Payee", "Amount", "Description", "Recorded By"], rows)
    return CsvReport(filename=f"expense-ledger-{today.isoformat()}.csv", content=content)
