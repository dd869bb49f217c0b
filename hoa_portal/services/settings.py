import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..constants import DEFAULT_APP_SETTINGS
from ..core.errors import ValidationFailed
from ..domain.dues import to_money
from ..domain.proofs import decode_image_data_url, image_problem, matches_signature
from ..models.models import AppSetting, User
from .access import require_admin
from .audit import audit_log

logger = logging.getLogger(__name__)


def ensure_default_settings(session: Session) -> None:
    existing = {row.key for row in session.query(AppSetting).all()}
    missing = [key for key in DEFAULT_APP_SETTINGS if key not in existing]
    for key in missing:
        session.add(AppSetting(key=key, value=DEFAULT_APP_SETTINGS[key]))
    if missing:
        session.commit()
        logger.info("Seeded default app settings: %s", ", ".join(missing))


def _raw_settings(session: Session) -> Dict[str, str]:
    values = dict(DEFAULT_APP_SETTINGS)
    for row in session.query(AppSetting).all():
        values[row.key] = row.value if row.value is not None else ""
    return values


def _as_money(value: str, fallback: str) -> Decimal:
    try:
        return to_money(value)
    except InvalidOperation:
        return to_money(fallback)


def _as_int(value: str, fallback: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(fallback)


def get_app_settings(session: Session) -> Dict[str, Any]:
    raw = _raw_settings(session)
    return {
        "monthlyDue": _as_money(raw["monthlyDue"], DEFAULT_APP_SETTINGS["monthlyDue"]),
        "penalty": _as_money(raw["penalty"], DEFAULT_APP_SETTINGS["penalty"]),
        "gcashQrCode": raw.get("gcashQrCode") or "",
        "effectiveDate": raw.get("effectiveDate") or "",
        "gracePeriodDays": _as_int(raw["gracePeriodDays"], DEFAULT_APP_SETTINGS["gracePeriodDays"]),
    }


def effective_date(session: Session) -> Optional[date]:
    value = _raw_settings(session).get("effectiveDate")
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _validate_qr_code(value: str) -> None:
    if not value:
        return
    try:
        upload = decode_image_data_url(value)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from exc
    problem = image_problem(upload.content_type, upload.size, settings.proof_max_bytes)
    if problem:
        raise ValidationFailed(problem)
    if not matches_signature(upload):
        raise ValidationFailed("QR code must be a PNG or JPEG image.")


def _serialize(key: str, value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return "" if value is None else str(value)


def update_app_settings(session: Session, actor: Optional[User], updates: Dict[str, Any]) -> bool:
    """Persist the given keys. Returns True when the billing effective date changed."""
    actor = require_admin(actor)
    unknown = set(updates) - set(DEFAULT_APP_SETTINGS)
    if unknown:
        raise ValidationFailed(f"Unknown setting: {sorted(unknown)[0]}")
    if "gcashQrCode" in updates:
        _validate_qr_code(updates["gcashQrCode"] or "")

    before = _raw_settings(session)
    rows = {row.key: row for row in session.query(AppSetting).all()}
    now = datetime.now(timezone.utc)
    for key, value in updates.items():
        serialized = _serialize(key, value)
        row = rows.get(key)
        if row is None:
            session.add(AppSetting(key=key, value=serialized, updated_at=now))
        else:
            row.value = serialized
            row.updated_at = now
    session.commit()

    after = _raw_settings(session)
    changed = sorted(key for key in updates if before.get(key) != after.get(key))
    logger.info("App settings updated by %s: %s", actor.user_id, ", ".join(changed) or "no changes")
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="settings.update",
        target_entity_type="AppSetting",
        before={key: before.get(key) for key in changed if key != "gcashQrCode"},
        after={key: after.get(key) for key in changed if key != "gcashQrCode"},
    )
    return "effectiveDate" in changed and bool(after.get("effectiveDate"))
