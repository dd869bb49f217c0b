from datetime import date
from decimal import Decimal

import pytest

from hoa_portal.core.errors import PermissionDenied
from hoa_portal.domain.reports import breakdown_rows, cash_position_shares, percent_of_total
from hoa_portal.services import billing as billing_service
from hoa_portal.services import projects as project_service
from hoa_portal.services import reports as report_service


@pytest.fixture
def ledger(db_session, admin, homeowner, create_user, create_due, create_project, png_data_url):
    """Two settled dues, one project contribution, two expenses and two residents in arrears."""
    gcash_due = create_due(homeowner, penalty="100", status="overdue")
    payment = billing_service.submit_payment(db_session, homeowner, gcash_due.due_id, png_data_url, "GCash")
    billing_service.update_payment_status(db_session, admin, payment.payment_id, "verified")

    cash_payer = create_user(full_name="Ana Cruz")
    cash_due = create_due(cash_payer)
    billing_service.record_admin_cash_payment(db_session, admin, cash_due.due_id)

    project = create_project()
    project_service.create_manual_contribution(db_session, admin, project.project_id, homeowner.user_id, Decimal("500"))

    late = create_user(full_name="Ben Reyes", block=2, lot=7)
    create_due(late, billing_month=date(2024, 9, 1))
    create_due(late, billing_month=date(2024, 10, 1))
    slightly_late = create_user(full_name="Carla Santos", block=3, lot=1)
    create_due(slightly_late)

    report_service.create_expense(
        db_session, admin, expense_date=date(2024, 10, 3), category="Security", amount=Decimal("1000"), payee=" Guard Co "
    )
    report_service.create_expense(
        db_session,
        admin,
        expense_date=date(2024, 10, 4),
        category="Reserve Fund Contribution",
        amount=Decimal("300"),
        payee="Bank",
    )
    return {"late": late, "slightly_late": slightly_late}


def test_financial_report_aggregates_income_and_expenses(db_session, admin, ledger):
    report = report_service.build_financial_report(db_session, admin)

    assert report["incomeBreakdown"] == {
        "dues": Decimal("4000.00"),
        "penalties": Decimal("100.00"),
        "other": Decimal("500.00"),
    }
    assert report["totalRevenue"] == Decimal("4600.00")
    assert report["totalExpenses"] == Decimal("1300.00")
    assert report["netSurplus"] == Decimal("3300.00")
    assert report["cashPosition"] == {
        "cashOnHand": Decimal("2500.00"),
        "gcash": Decimal("2100.00"),
        "bank": Decimal("0.00"),
    }
    assert report["endingCashBalance"] == Decimal("3300.00")
    assert report["reserveFundTotal"] == Decimal("300.00")
    assert [expense.category for expense in report["expensesLedger"]] == ["Reserve Fund Contribution", "Security"]
    assert report["expensesLedger"][1].payee == "Guard Co"


def test_receivables_are_sorted_by_amount(db_session, admin, ledger):
    report = report_service.build_financial_report(db_session, admin)

    rows = report["accountsReceivableList"]
    assert [row["name"] for row in rows] == ["Ben Reyes", "Carla Santos"]
    assert rows[0]["amount"] == Decimal("4000.00")
    assert rows[0]["months"] == 2
    assert rows[0]["unit"] == "B2 L7"
    assert report["accountsReceivable"] == Decimal("6000.00")


def test_financial_report_is_admin_only(db_session, homeowner):
    with pytest.raises(PermissionDenied):
        report_service.build_financial_report(db_session, homeowner)


def test_percent_helpers():
    assert percent_of_total(250, 1000) == 25.0
    assert percent_of_total(1, 3) == 33.3
    assert percent_of_total(10, 0) == 0.0

    rows = breakdown_rows({"Security": 1000, "Utilities": 3000}, 4000)
    assert rows == [("Utilities", Decimal("3000.00"), 75.0), ("Security", Decimal("1000.00"), 25.0)]

    assert cash_position_shares({"cashOnHand": 0, "gcash": 0, "bank": 0}) == {
        "cashOnHand": 0.0,
        "gcash": 0.0,
        "bank": 0.0,
    }


def test_financial_report_over_rest(client, admin, ledger, headers_for):
    response = client.get("/reports/financial", headers=headers_for(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["totalRevenue"] == 4600.0
    assert body["expenseBreakdown"] == {"Security": 1000.0, "Reserve Fund Contribution": 300.0}


def test_receivables_csv_export(client, admin, ledger, headers_for):
    response = client.get("/reports/accounts-receivable.csv", headers=headers_for(admin))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"accounts-receivable-" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "Resident,Unit,Months Unpaid,Amount Due"
    assert lines[1] == "Ben Reyes,B2 L7,2,4000.00"


def test_expense_ledger_csv_export_requires_admin(client, admin, homeowner, ledger, headers_for):
    assert client.get("/reports/expenses.csv", headers=headers_for(homeowner)).status_code == 403

    response = client.get("/reports/expenses.csv", headers=headers_for(admin))
    lines = response.text.splitlines()
    assert lines[0] == "Date,Category,Payee,Amount,Description,Recorded By"
    assert lines[1] == "2024-10-04,Reserve Fund Contribution,Bank,300.00,,Admin User"
