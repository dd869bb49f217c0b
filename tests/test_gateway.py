import pytest

from hoa_portal.schemas.actions import READ_ACTIONS, WRITE_ACTIONS


def test_action_sets_are_disjoint_and_complete():
    assert not READ_ACTIONS & WRITE_ACTIONS
    assert "getFinancialData" in READ_ACTIONS
    assert "createManualProjectContribution" in WRITE_ACTIONS
    assert len(READ_ACTIONS) == 15
    assert len(WRITE_ACTIONS) == 20


def test_read_without_action(client):
    response = client.get("/exec")

    assert response.status_code == 200
    assert response.json() == {"success": False, "data": {"error": 'The "action" parameter is missing.'}}


def test_unknown_read_action(client, homeowner, headers_for):
    response = client.get("/exec", params={"action": "dropTables"}, headers=headers_for(homeowner))

    assert response.json() == {"success": False, "data": {"error": "Invalid GET action: dropTables"}}


def test_write_action_is_not_accepted_as_read(client, admin, headers_for):
    response = client.get("/exec", params={"action": "createProject"}, headers=headers_for(admin))

    assert response.json()["data"]["error"] == "Invalid GET action: createProject"


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "Invalid request body. Ensure you are sending JSON."),
        ("   ", "Invalid request body. Ensure you are sending JSON."),
        ('{"payload": {}}', 'The "action" parameter is missing.'),
        ('{"action": "launchRocket", "payload": {}}', "Invalid POST action: launchRocket"),
    ],
)
def test_malformed_write_bodies(client, content, message):
    response = client.post("/exec", content=content, headers={"Content-Type": "text/plain;charset=utf-8"})

    assert response.json() == {"success": False, "data": {"error": message}}


def test_unparseable_write_body(client):
    response = client.post("/exec", content="{not json", headers={"Content-Type": "text/plain"})

    body = response.json()
    assert body["success"] is False
    assert body["data"]["error"].startswith("Failed to parse JSON body: ")


def test_actions_other_than_login_and_register_need_a_session(client):
    read = client.get("/exec", params={"action": "getAnnouncements"})
    write = client.post("/exec", json={"action": "createAnnouncement", "payload": {"title": "Hi", "content": "There"}})

    assert read.json() == {"success": False, "data": {"error": "Please sign in to continue."}}
    assert write.json() == {"success": False, "data": {"error": "Please sign in to continue."}}


def test_validation_errors_name_the_field(client, homeowner, headers_for):
    response = client.get("/exec", params={"action": "getDuesForUser"}, headers=headers_for(homeowner))

    body = response.json()
    assert body["success"] is False
    assert body["data"]["error"].startswith("userId: ")


def test_business_errors_are_enveloped_with_http_200(client, homeowner, create_user, headers_for):
    neighbour = create_user()

    response = client.get(
        "/exec",
        params={"action": "getDuesForUser", "userId": neighbour.user_id},
        headers=headers_for(homeowner),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["data"]["error"]


def test_successful_read_is_wrapped_in_envelope(client, homeowner, create_due, headers_for):
    due = create_due(homeowner)

    response = client.get(
        "/exec",
        params={"action": "getDuesForUser", "userId": homeowner.user_id},
        headers=headers_for(homeowner),
    )

    body = response.json()
    assert body["success"] is True
    [listed] = body["data"]
    assert listed["due_id"] == due.due_id
    # October 2024 is long past its grace period, so the read marks it overdue.
    assert listed["status"] == "overdue"
    assert listed["total_due"] == 2100.0
    assert listed["can_pay"] is True


def test_login_and_register_over_gateway(client, db_session):
    registered = client.post(
        "/exec",
        json={
            "action": "register",
            "payload": {
                "fullName": "Maria Santos",
                "email": "maria@example.com",
                "phone": "0917",
                "block": 3,
                "lot": 14,
                "password": "secret123",
            },
        },
    )
    assert registered.json() == {
        "success": True,
        "data": {"message": "Registration successful! Please wait for Admin approval."},
    }

    pending = client.post(
        "/exec", json={"action": "login", "payload": {"email": "maria@example.com", "password": "secret123"}}
    )
    assert pending.json() == {"success": False, "data": {"error": "Account is pending approval."}}


def test_admin_workflow_over_gateway(client, admin, homeowner, headers_for):
    created = client.post(
        "/exec",
        json={"action": "createProject", "payload": {"name": "Perimeter Wall", "budget": 80000, "status": "Planning"}},
        headers=headers_for(admin),
    ).json()
    assert created["success"] is True
    project_id = created["data"]["project_id"]

    refused = client.post(
        "/exec",
        json={"action": "deleteProject", "payload": {"projectId": project_id}},
        headers=headers_for(homeowner),
    ).json()
    assert refused["success"] is False

    deleted = client.post(
        "/exec",
        json={"action": "deleteProject", "payload": {"projectId": project_id}},
        headers=headers_for(admin),
    ).json()
    assert deleted == {"success": True, "data": {"success": True}}


def test_settings_round_trip_over_gateway(client, admin, homeowner, headers_for):
    updated = client.post(
        "/exec",
        json={"action": "updateAppSettings", "payload": {"settings": {"penalty": 150, "gracePeriodDays": 10}}},
        headers=headers_for(admin),
    ).json()
    assert updated["success"] is True

    current = client.get("/exec", params={"action": "getAppSettings"}, headers=headers_for(homeowner)).json()
    assert current["data"]["penalty"] == 150.0
    assert current["data"]["gracePeriodDays"] == 10
    assert current["data"]["monthlyDue"] == 2000.0
