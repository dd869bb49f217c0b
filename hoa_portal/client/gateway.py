from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

JSON_AS_TEXT = {"Content-Type": "text/plain;charset=utf-8"}


class GatewayError(RuntimeError):
    """The gateway answered with ``success: false``; the message is user-facing."""

    def __init__(self, message: str, action: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.action = action


class GatewayTransportError(GatewayError):
    """The request never produced a readable envelope."""


class GatewayClient:
    """Talks to the ``/exec`` action gateway and unwraps its envelope."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        token: Optional[str] = None,
    ) -> None:
        self.url = url or settings.gateway_url
        self.token = token
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(settings.gateway_timeout_seconds))

    def close(self) -> None:
        self._http.close()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(extra or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _unwrap(self, action: str, response: httpx.Response) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Gateway returned a non-JSON response for %s (status %s)", action, response.status_code)
            raise GatewayTransportError("Unexpected response from the server.", action) from exc
        if not isinstance(body, dict) or "success" not in body:
            raise GatewayTransportError("Unexpected response from the server.", action)
        if not body["success"]:
            data = body.get("data") or {}
            message = data.get("error") if isinstance(data, dict) else None
            raise GatewayError(message or "API request failed", action)
        return body.get("data")

    def get(self, action: str, **params: Any) -> Any:
        query = {"action": action}
        query.update({key: value for key, value in params.items() if value is not None})
        try:
            response = self._http.get(self.url, params=query, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("Gateway read %s failed: %s", action, exc)
            raise GatewayTransportError("Could not connect to the server.", action) from exc
        return self._unwrap(action, response)

    def post(self, action: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        body = json.dumps({"action": action, "payload": payload or {}}, default=str)
        try:
            response = self._http.post(self.url, content=body, headers=self._headers(JSON_AS_TEXT))
        except httpx.HTTPError as exc:
            logger.error("Gateway write %s failed: %s", action, exc)
            raise GatewayTransportError("Could not connect to the server.", action) from exc
        return self._unwrap(action, response)

    # --- Identity ---

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self.post("login", {"email": email, "password": password})

    def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("register", payload)

    def get_all_users(self) -> List[Dict[str, Any]]:
        return self.get("getAllUsers")

    def update_user(self, user_id: str, new_role: Optional[str] = None, new_status: Optional[str] = None) -> Dict[str, Any]:
        return self.post("updateUser", {"userId": user_id, "newRole": new_role, "newStatus": new_status})

    # --- Announcements ---

    def get_announcements(self) -> List[Dict[str, Any]]:
        return self.get("getAnnouncements")

    def create_announcement(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("createAnnouncement", payload)

    # --- Dues and payments ---

    def get_dues_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.get("getDuesForUser", userId=user_id)

    def get_all_dues(self) -> List[Dict[str, Any]]:
        return self.get("getAllDues")

    def submit_payment(
        self,
        due_id: str,
        proof_url: str,
        method: str = "GCash",
        amount: Any = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"dueId": due_id, "proofUrl": proof_url, "method": method, "amount": amount, "userId": user_id}
        return self.post("submitPayment", payload)

    def record_cash_payment_intent(self, due_id: str, amount: Any = None) -> Dict[str, Any]:
        return self.post("recordCashPaymentIntent", {"dueId": due_id, "amount": amount})

    def record_admin_cash_payment(self, due_id: str) -> Dict[str, Any]:
        return self.post("recordAdminCashPayment", {"dueId": due_id})

    def update_payment_status(
        self,
        payment_id: str,
        status: str,
        notes: Optional[str] = None,
        version: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = {"paymentId": payment_id, "status": status, "notes": notes, "version": version}
        return self.post("updatePaymentStatus", payload)

    # --- Settings ---

    def get_app_settings(self) -> Dict[str, Any]:
        return self.get("getAppSettings")

    def update_app_settings(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("updateAppSettings", {"settings": updates})

    # --- Visitors ---

    def get_visitors_for_homeowner(self, homeowner_id: str) -> List[Dict[str, Any]]:
        return self.get("getVisitorsForHomeowner", homeownerId=homeowner_id)

    def get_all_visitors(self) -> List[Dict[str, Any]]:
        return self.get("getAllVisitors")

    def create_visitor_pass(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("createVisitorPass", payload)

    # --- Amenities ---

    def get_amenity_reservations_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.get("getAmenityReservationsForUser", userId=user_id)

    def get_all_amenity_reservations(self) -> List[Dict[str, Any]]:
        return self.get("getAllAmenityReservations")

    def create_amenity_reservation(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("createAmenityReservation", payload)

    def update_amenity_reservation_status(
        self,
        reservation_id: str,
        status: str,
        version: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = {"reservationId": reservation_id, "status": status, "version": version}
        return self.post("updateAmenityReservationStatus", payload)

    # --- CCTV ---

    def get_cctv_list(self) -> List[Dict[str, Any]]:
        return self.get("getCCTVList")

    def create_cctv(self, name: str, stream_url: str) -> Dict[str, Any]:
        return self.post("createCCTV", {"name": name, "stream_url": stream_url})

    def update_cctv(self, cctv_id: str, name: str, stream_url: str) -> Dict[str, Any]:
        return self.post("updateCCTV", {"cctv_id": cctv_id, "name": name, "stream_url": stream_url})

    def delete_cctv(self, cctv_id: str) -> Dict[str, Any]:
        return self.post("deleteCCTV", {"cctvId": cctv_id})

    # --- Finance ---

    def get_financial_data(self) -> Dict[str, Any]:
        return self.get("getFinancialData")

    def create_expense(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("createExpense", payload)

    # --- Projects ---

    def get_projects(self) -> List[Dict[str, Any]]:
        return self.get("getProjects")

    def create_project(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("createProject", payload)

    def update_project(self, project_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("updateProject", {"projectId": project_id, **updates})

    def delete_project(self, project_id: str) -> Dict[str, Any]:
        return self.post("deleteProject", {"projectId": project_id})

    def get_project_contributions(self) -> List[Dict[str, Any]]:
        return self.get("getProjectContributions")

    def create_manual_project_contribution(self, project_id: str, user_id: str, amount: Any) -> Dict[str, Any]:
        payload = {"projectId": project_id, "userId": user_id, "amount": amount}
        return self.post("createManualProjectContribution", payload)

    # --- Dashboards ---

    def get_homeowner_dashboard_data(self, user_id: str) -> Dict[str, Any]:
        return self.get("getHomeownerDashboardData", userId=user_id)

    def get_admin_dashboard_data(self) -> Dict[str, Any]:
        return self.get("getAdminDashboardData")
