"""Page controllers: the logic each portal page runs around gateway calls."""
from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..constants import LEGACY_PROJECT_REFERENCE_PREFIX, LEGACY_PROJECT_REFERENCE_SEPARATOR
from ..domain.projects import ProjectProgress, project_progress
from ..domain.reports import breakdown_rows, cash_position_shares
from .gateway import GatewayClient, GatewayError
from .session import CurrentActor, SessionStore
from .validation import (
    check_registration,
    check_reservation_window,
    load_proof,
    parse_amount,
    require_rejection_note,
)

logger = logging.getLogger(__name__)


class AuthController:
    def __init__(self, gateway: GatewayClient, store: SessionStore) -> None:
        self.gateway = gateway
        self.store = store

    def restore(self) -> Optional[CurrentActor]:
        actor = self.store.load_actor()
        if actor:
            self.gateway.token = actor.access_token
        return actor

    def login(self, email: str, password: str) -> CurrentActor:
        profile = self.gateway.login(email, password)
        actor = self.store.save_profile(profile)
        self.gateway.token = actor.access_token
        return actor

    def logout(self) -> None:
        self.store.clear()
        self.gateway.token = None

    def register(self, form: Dict[str, Any]) -> str:
        check_registration(form["password"], form["confirmPassword"], form["block"], form["lot"])
        payload = {
            "fullName": form["fullName"],
            "email": form["email"],
            "phone": form.get("phone", ""),
            "block": int(str(form["block"])),
            "lot": int(str(form["lot"])),
            "password": form["password"],
        }
        return self.gateway.register(payload)["message"]


class BillingController:
    def __init__(self, gateway: GatewayClient, actor: CurrentActor) -> None:
        self.gateway = gateway
        self.actor = actor
        self.dues: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        if self.actor.is_admin:
            self.dues = self.gateway.get_all_dues()
        else:
            self.dues = self.gateway.get_dues_for_user(self.actor.user_id)
        return self.dues

    def submit_payment(self, due_id: str, proof: Any, method: str = "GCash") -> List[Dict[str, Any]]:
        upload = load_proof(proof)
        self.gateway.submit_payment(due_id, upload.to_data_url(), method=method, user_id=self.actor.user_id)
        logger.info("Payment proof submitted for due %s", due_id)
        return self.load()

    def pay_cash_at_office(self, due_id: str) -> List[Dict[str, Any]]:
        self.gateway.record_cash_payment_intent(due_id)
        return self.load()

    def record_cash_settlement(self, due_id: str) -> List[Dict[str, Any]]:
        self.gateway.record_admin_cash_payment(due_id)
        return self.load()

    def verify(self, payment_id: str, version: Optional[int] = None) -> List[Dict[str, Any]]:
        self.gateway.update_payment_status(payment_id, "verified", version=version)
        return self.load()

    def reject(self, payment_id: str, notes: Optional[str], version: Optional[int] = None) -> List[Dict[str, Any]]:
        note = require_rejection_note(notes)
        self.gateway.update_payment_status(payment_id, "rejected", notes=note, version=version)
        return self.load()


class AmenitiesController:
    def __init__(self, gateway: GatewayClient, actor: CurrentActor) -> None:
        self.gateway = gateway
        self.actor = actor
        self.reservations: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        if self.actor.is_admin:
            self.reservations = self.gateway.get_all_amenity_reservations()
        else:
            self.reservations = self.gateway.get_amenity_reservations_for_user(self.actor.user_id)
        return self.reservations

    def book(
        self,
        amenity_name: str,
        reservation_date: date,
        start_time: str,
        end_time: str,
        notes: str = "",
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        check_reservation_window(reservation_date, start_time, end_time, today)
        reservation = self.gateway.create_amenity_reservation(
            {
                "userId": self.actor.user_id,
                "amenityName": amenity_name,
                "reservationDate": reservation_date.isoformat(),
                "startTime": start_time,
                "endTime": end_time,
                "notes": notes,
            }
        )
        self.reservations = [reservation] + self.reservations
        return reservation

    def update_status(self, reservation_id: str, status: str, version: Optional[int] = None) -> Dict[str, Any]:
        """Show the new status immediately and put the old list back if the gateway refuses."""
        previous = list(self.reservations)
        self.reservations = [
            dict(item, status=status) if item["reservation_id"] == reservation_id else item
            for item in self.reservations
        ]
        try:
            updated = self.gateway.update_amenity_reservation_status(reservation_id, status, version=version)
        except GatewayError:
            logger.warning("Reservation %s status change to %s failed; restoring list", reservation_id, status)
            self.reservations = previous
            raise
        self.reservations = [updated if item["reservation_id"] == reservation_id else item for item in self.reservations]
        return updated


class ProjectsController:
    def __init__(self, gateway: GatewayClient, actor: CurrentActor) -> None:
        self.gateway = gateway
        self.actor = actor
        self.projects: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        self.projects = self.gateway.get_projects()
        return self.projects

    @staticmethod
    def progress(project: Dict[str, Any]) -> ProjectProgress:
        return project_progress(project)

    def contribution_reference(self, project_id: str) -> str:
        return LEGACY_PROJECT_REFERENCE_SEPARATOR.join(
            [LEGACY_PROJECT_REFERENCE_PREFIX, project_id, self.actor.user_id, str(int(time.time() * 1000))]
        )

    def contribute(self, project_id: str, amount: Any, proof: Any, method: str = "GCash") -> Dict[str, Any]:
        value = parse_amount(amount)
        upload = load_proof(proof)
        return self.gateway.submit_payment(
            self.contribution_reference(project_id),
            upload.to_data_url(),
            method=method,
            amount=value,
            user_id=self.actor.user_id,
        )

    def pledge_cash(self, project_id: str, amount: Any) -> Dict[str, Any]:
        value = parse_amount(amount)
        return self.gateway.record_cash_payment_intent(self.contribution_reference(project_id), amount=value)

    def record_manual_contribution(self, project_id: str, user_id: str, amount: Any) -> Dict[str, Any]:
        value = parse_amount(amount)
        contribution = self.gateway.create_manual_project_contribution(project_id, user_id, value)
        self.load()
        return contribution


class ReportsController:
    def __init__(self, gateway: GatewayClient) -> None:
        self.gateway = gateway
        self.report: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        self.report = self.gateway.get_financial_data()
        return self.report

    def income_rows(self):
        return breakdown_rows(self.report["incomeBreakdown"], self.report["totalRevenue"])

    def expense_rows(self):
        return breakdown_rows(self.report["expenseBreakdown"], self.report["totalExpenses"])

    def cash_shares(self) -> Dict[str, float]:
        return cash_position_shares(self.report["cashPosition"])

    def add_expense(
        self,
        expense_date: date,
        category: str,
        amount: Any,
        payee: str,
        description: str = "",
    ) -> Dict[str, Any]:
        value: Decimal = parse_amount(amount)
        expense = self.gateway.create_expense(
            {
                "date": expense_date.isoformat(),
                "category": category,
                "amount": value,
                "payee": payee,
                "description": description,
            }
        )
        self.load()
        return expense
