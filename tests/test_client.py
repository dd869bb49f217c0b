import base64
import json
from datetime import date

import httpx
import pytest

from hoa_portal.client.controllers import (
    AmenitiesController,
    AuthController,
    BillingController,
    ProjectsController,
    ReportsController,
)
from hoa_portal.client.gateway import GatewayClient, GatewayError, GatewayTransportError
from hoa_portal.client.session import CurrentActor, SessionStore
from hoa_portal.client.validation import FormValidationError, load_proof, parse_amount
from hoa_portal.services import billing as billing_service

HOMEOWNER = CurrentActor(
    user_id="user_002",
    role="Homeowner",
    full_name="John Doe",
    email="john.doe@example.com",
    access_token="token-abc",
    block=5,
    lot=12,
)
ADMIN = CurrentActor(
    user_id="user_001",
    role="Admin",
    full_name="Admin User",
    email="admin@gmail.com",
    access_token="token-admin",
)


class RecordingGateway:
    """Serves canned envelopes per action and remembers every request."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            action = request.url.params["action"]
        else:
            action = json.loads(request.content)["action"]
        reply = self.responses.get(action, {"success": True, "data": []})
        if callable(reply):
            reply = reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    @property
    def actions(self):
        return [
            request.url.params["action"] if request.method == "GET" else json.loads(request.content)["action"]
            for request in self.requests
        ]


def _gateway(recorder, token=None) -> GatewayClient:
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    return GatewayClient("http://portal.test/exec", http_client=http, token=token)


def test_get_unwraps_envelope_and_sends_bearer_token():
    recorder = RecordingGateway({"getDuesForUser": {"success": True, "data": [{"due_id": "due_1"}]}})
    gateway = _gateway(recorder, token="token-abc")

    dues = gateway.get_dues_for_user("user_002")

    assert dues == [{"due_id": "due_1"}]
    [request] = recorder.requests
    assert request.url.params["userId"] == "user_002"
    assert request.headers["Authorization"] == "Bearer token-abc"


def test_post_sends_json_as_plain_text():
    recorder = RecordingGateway({"recordAdminCashPayment": {"success": True, "data": {"status": "paid"}}})

    _gateway(recorder).record_admin_cash_payment("due_9")

    [request] = recorder.requests
    assert request.headers["Content-Type"] == "text/plain;charset=utf-8"
    assert json.loads(request.content) == {"action": "recordAdminCashPayment", "payload": {"dueId": "due_9"}}


def test_failure_envelope_raises_with_server_message():
    recorder = RecordingGateway(
        {
            "getAllDues": {"success": False, "data": {"error": "Permission denied."}},
            "getAllUsers": {"success": False, "data": None},
        }
    )
    gateway = _gateway(recorder)

    with pytest.raises(GatewayError) as exc:
        gateway.get_all_dues()
    assert exc.value.message == "Permission denied."
    assert exc.value.action == "getAllDues"

    with pytest.raises(GatewayError) as exc:
        gateway.get_all_users()
    assert exc.value.message == "API request failed"


def test_unreadable_response_is_a_transport_error():
    recorder = RecordingGateway({"getProjects": httpx.Response(502, text="<html>Bad Gateway</html>")})

    with pytest.raises(GatewayTransportError):
        _gateway(recorder).get_projects()


def test_connection_failure_is_a_transport_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = GatewayClient("http://portal.test/exec", http_client=httpx.Client(transport=httpx.MockTransport(refuse)))

    with pytest.raises(GatewayTransportError) as exc:
        gateway.get_announcements()
    assert exc.value.message == "Could not connect to the server."


def test_rejecting_without_note_sends_nothing():
    recorder = RecordingGateway()
    billing = BillingController(_gateway(recorder), ADMIN)

    with pytest.raises(FormValidationError) as exc:
        billing.reject("pay_1", "   ")

    assert exc.value.message == "Rejection reason is required."
    assert recorder.requests == []


def test_oversized_proof_file_sends_nothing(tmp_path):
    proof = tmp_path / "screenshot.png"
    proof.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * (6 * 1024 * 1024))
    recorder = RecordingGateway()
    billing = BillingController(_gateway(recorder), HOMEOWNER)

    with pytest.raises(FormValidationError) as exc:
        billing.submit_payment("due_1", proof)

    assert exc.value.message == "File size cannot exceed 5MB."
    assert recorder.requests == []


def test_proof_must_be_an_image(tmp_path):
    receipt = tmp_path / "receipt.pdf"
    receipt.write_bytes(b"%PDF-1.4")

    with pytest.raises(FormValidationError) as exc:
        load_proof(receipt)
    assert exc.value.message == "Proof of payment must be a PNG or JPEG image."

    with pytest.raises(FormValidationError) as exc:
        load_proof(None)
    assert exc.value.message == "Please upload proof of payment."


def test_proof_given_as_data_url_is_checked(png_data_url):
    upload = load_proof(png_data_url)
    assert upload.content_type == "image/png"

    pdf = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4").decode("ascii")
    with pytest.raises(FormValidationError) as exc:
        load_proof(pdf)
    assert exc.value.message == "Proof of payment must be a PNG or JPEG image."

    with pytest.raises(FormValidationError) as exc:
        load_proof("data:image/png;base64,***")
    assert exc.value.message == "Proof of payment could not be read as an image."


def test_submit_payment_uploads_data_url_and_reloads(tmp_path):
    proof = tmp_path / "gcash.png"
    proof.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)
    recorder = RecordingGateway({"submitPayment": {"success": True, "data": {"payment_id": "pay_1"}}})
    billing = BillingController(_gateway(recorder), HOMEOWNER)

    billing.submit_payment("due_1", proof, method="Maya")

    assert recorder.actions == ["submitPayment", "getDuesForUser"]
    payload = json.loads(recorder.requests[0].content)["payload"]
    assert payload["proofUrl"].startswith("data:image/png;base64,")
    assert payload["method"] == "Maya"


def test_amount_parsing():
    assert str(parse_amount("1500")) == "1500.00"
    for bad in ("", "abc", "0", "-5", "NaN"):
        with pytest.raises(FormValidationError):
            parse_amount(bad)


def test_reservation_status_change_rolls_back_on_failure():
    recorder = RecordingGateway(
        {"updateAmenityReservationStatus": {"success": False, "data": {"error": "Reservation not found"}}}
    )
    amenities = AmenitiesController(_gateway(recorder), ADMIN)
    original = [
        {"reservation_id": "res_1", "status": "pending"},
        {"reservation_id": "res_2", "status": "pending"},
    ]
    amenities.reservations = list(original)

    with pytest.raises(GatewayError):
        amenities.update_status("res_1", "approved")

    assert amenities.reservations == original


def test_reservation_status_change_keeps_server_copy():
    server_copy = {"reservation_id": "res_1", "status": "approved", "version": 2}
    recorder = RecordingGateway({"updateAmenityReservationStatus": {"success": True, "data": server_copy}})
    amenities = AmenitiesController(_gateway(recorder), ADMIN)
    amenities.reservations = [{"reservation_id": "res_1", "status": "pending", "version": 1}]

    amenities.update_status("res_1", "approved", version=1)

    assert amenities.reservations == [server_copy]
    assert json.loads(recorder.requests[0].content)["payload"]["version"] == 1


def test_booking_in_the_past_sends_nothing():
    recorder = RecordingGateway()
    amenities = AmenitiesController(_gateway(recorder), HOMEOWNER)

    with pytest.raises(FormValidationError) as exc:
        amenities.book("Clubhouse", date(2024, 9, 30), "09:00", "10:00", today=date(2024, 10, 1))

    assert exc.value.message == "Cannot book a date in the past."
    assert recorder.requests == []


def test_contribution_reference_and_progress():
    projects = ProjectsController(_gateway(RecordingGateway()), HOMEOWNER)

    reference = projects.contribution_reference("proj_001")

    prefix, project_id, user_id, stamp = reference.split("::")
    assert (prefix, project_id, user_id) == ("PROJ", "proj_001", "user_002")
    assert stamp.isdigit()
    assert projects.progress({"budget": 500000, "funds_allocated": 0, "funds_spent": 100000}).percent_spent == 20


def test_reports_controller_rows():
    report = {
        "totalRevenue": 4600.0,
        "totalExpenses": 0.0,
        "incomeBreakdown": {"dues": 4000.0, "penalties": 100.0, "other": 500.0},
        "expenseBreakdown": {},
        "cashPosition": {"cashOnHand": 2500.0, "gcash": 2100.0, "bank": 0.0},
    }
    reports = ReportsController(_gateway(RecordingGateway({"getFinancialData": {"success": True, "data": report}})))

    reports.load()

    assert [row[0] for row in reports.income_rows()] == ["dues", "other", "penalties"]
    assert reports.expense_rows() == []
    assert reports.cash_shares()["bank"] == 0.0


def test_registration_form_checks_run_before_request():
    recorder = RecordingGateway()
    auth = AuthController(_gateway(recorder), SessionStore())
    form = {
        "fullName": "Maria Santos",
        "email": "maria@example.com",
        "block": "3",
        "lot": "14",
        "password": "secret123",
        "confirmPassword": "secret124",
    }

    with pytest.raises(FormValidationError) as exc:
        auth.register(form)
    assert exc.value.message == "Passwords do not match."

    with pytest.raises(FormValidationError) as exc:
        auth.register(dict(form, confirmPassword="secret123", lot="fourteen"))
    assert exc.value.message == "Block and Lot must be numbers."
    assert recorder.requests == []


def test_session_store_keeps_qr_code_across_sign_out(tmp_path):
    store = SessionStore(str(tmp_path / "session.json"))
    store.save_qr_code("data:image/png;base64,AAAA")
    profile = {
        "user_id": "user_002",
        "role": "Homeowner",
        "full_name": "John Doe",
        "email": "john.doe@example.com",
        "access_token": "token-abc",
    }

    assert store.save_profile(profile) == store.load_actor()
    store.clear()

    assert store.load_actor() is None
    assert store.load_qr_code() == "data:image/png;base64,AAAA"


def test_incomplete_stored_profile_signs_out(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"user": {"user_id": "user_002"}}))
    store = SessionStore(str(path))

    assert store.load_actor() is None
    assert not path.exists()


def test_admin_verifies_payment_end_to_end(client, db_session, admin, homeowner, create_due, png_data_url):
    due = create_due(homeowner)
    payment = billing_service.submit_payment(db_session, homeowner, due.due_id, png_data_url, "GCash")
    gateway = GatewayClient("/exec", http_client=client)
    auth = AuthController(gateway, SessionStore())

    actor = auth.login("admin@example.com", "password")
    assert actor.is_admin
    assert auth.restore() == actor

    billing = BillingController(gateway, actor)
    [listed] = billing.load()
    assert listed["display_status"] == "Pending Verification"
    assert listed["full_name"] == "John Doe"

    [listed] = billing.verify(payment.payment_id, version=listed["payment"]["version"])
    assert listed["display_status"] == "Paid"
    assert listed["can_pay"] is False

    with pytest.raises(GatewayError):
        billing.verify(payment.payment_id)

    auth.logout()
    assert gateway.token is None
    with pytest.raises(GatewayError) as exc:
        billing.load()
    assert exc.value.message == "Please sign in to continue."
