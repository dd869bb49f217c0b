from datetime import date
from decimal import Decimal

import pytest

from hoa_portal.core.errors import InvalidTransition, ValidationFailed
from hoa_portal.domain.projects import parse_legacy_contribution_reference, project_progress
from hoa_portal.models.models import Payment, ProjectContribution
from hoa_portal.services import projects as project_service


def test_progress_percentages():
    progress = project_progress({"budget": 500000, "funds_allocated": 150000, "funds_spent": 100000})

    assert progress.percent_spent == 20
    assert progress.percent_allocated == 30
    assert progress.remaining_budget == Decimal("400000.00")
    assert project_progress({"budget": 5000, "funds_spent": 1000}).percent_spent == 20


def test_progress_caps_at_100_and_handles_zero_budget():
    assert project_progress({"budget": 100, "funds_allocated": 0, "funds_spent": 250}).percent_spent == 100
    assert project_progress({"budget": 0, "funds_allocated": 10, "funds_spent": 10}).percent_spent == 0


def test_legacy_reference_parsing():
    assert parse_legacy_contribution_reference("PROJ::proj_001::user_002::1700000000000") == ("proj_001", "user_002")

    with pytest.raises(ValueError) as exc:
        parse_legacy_contribution_reference("PROJ::proj_001")
    assert str(exc.value) == "Invalid Project Payment ID format."


def test_verified_contribution_adds_to_allocated_funds(db_session, admin, homeowner, create_project, png_data_url):
    project = create_project(funds_allocated="1000")
    contribution = project_service.submit_contribution(
        db_session, homeowner, project.project_id, Decimal("500"), "GCash", png_data_url
    )
    assert contribution.status == "pending"
    assert contribution.notes == "Project contribution via GCash"

    project_service.update_contribution_status(db_session, admin, contribution.contribution_id, "verified")

    db_session.refresh(project)
    assert project.funds_allocated == Decimal("1500.00")
    with pytest.raises(InvalidTransition):
        project_service.update_contribution_status(
            db_session, admin, contribution.contribution_id, "rejected", notes="late"
        )


def test_rejected_contribution_leaves_funds_alone(db_session, admin, homeowner, create_project):
    project = create_project(funds_allocated="1000")
    contribution = project_service.record_contribution_intent(db_session, homeowner, project.project_id, Decimal("300"))

    with pytest.raises(ValidationFailed):
        project_service.update_contribution_status(db_session, admin, contribution.contribution_id, "rejected")
    project_service.update_contribution_status(
        db_session, admin, contribution.contribution_id, "rejected", notes="Never arrived"
    )

    db_session.refresh(project)
    assert project.funds_allocated == Decimal("1000.00")


def test_contribution_intent_requires_amount(db_session, homeowner, create_project):
    project = create_project()

    with pytest.raises(ValidationFailed) as exc:
        project_service.record_contribution_intent(db_session, homeowner, project.project_id, None)
    assert exc.value.message == "Amount is required for project contributions."


def test_manual_contribution_is_verified_immediately(db_session, admin, homeowner, create_project):
    project = create_project()

    contribution = project_service.create_manual_contribution(
        db_session, admin, project.project_id, homeowner.user_id, Decimal("2500")
    )

    assert contribution.status == "verified"
    assert contribution.method == "Cash"
    db_session.refresh(project)
    assert project.funds_allocated == Decimal("2500.00")
    [listed] = project_service.list_contributions(db_session, admin)
    assert listed.project_name == "Clubhouse Renovation"
    assert listed.homeowner_unit == "B5 L12"


def test_project_end_date_cannot_precede_start(db_session, admin, create_project):
    project = create_project()

    with pytest.raises(ValidationFailed):
        project_service.update_project(
            db_session,
            admin,
            project.project_id,
            {"start_date": date(2024, 3, 1), "end_date": date(2024, 1, 1)},
        )


def test_gateway_routes_legacy_reference_to_contribution(client, db_session, homeowner, create_project, headers_for, png_data_url):
    project = create_project()
    reference = f"PROJ::{project.project_id}::{homeowner.user_id}::1700000000000"

    response = client.post(
        "/exec",
        content=f'{{"action": "submitPayment", "payload": {{"dueId": "{reference}", "amount": 750, "method": "GCash", "proofUrl": "{png_data_url}"}}}}',
        headers={**headers_for(homeowner), "Content-Type": "text/plain;charset=utf-8"},
    )

    body = response.json()
    assert body["success"] is True
    assert body["data"]["project_id"] == project.project_id
    assert body["data"]["amount"] == 750.0
    assert db_session.query(ProjectContribution).count() == 1
    assert db_session.query(Payment).count() == 0


def test_gateway_refuses_malformed_legacy_reference(client, homeowner, headers_for):
    response = client.post(
        "/exec",
        json={"action": "recordCashPaymentIntent", "payload": {"dueId": "PROJ::only-project", "amount": 100}},
        headers=headers_for(homeowner),
    )

    assert response.json() == {"success": False, "data": {"error": "Invalid Project Payment ID format."}}


def test_gateway_review_accepts_contribution_ids(client, db_session, admin, homeowner, create_project, headers_for):
    project = create_project()
    contribution = project_service.record_contribution_intent(db_session, homeowner, project.project_id, Decimal("300"))

    response = client.post(
        "/exec",
        json={"action": "updatePaymentStatus", "payload": {"paymentId": contribution.contribution_id, "status": "verified"}},
        headers=headers_for(admin),
    )

    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "verified"
    db_session.refresh(project)
    assert project.funds_allocated == Decimal("300.00")
