from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import settings
from ..constants import ROLE_ADMIN, ROLE_STAFF

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentActor:
    """The signed-in user as the client sees them."""

    user_id: str
    role: str
    full_name: str
    email: str
    access_token: str
    block: Optional[int] = None
    lot: Optional[int] = None

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "CurrentActor":
        return cls(
            user_id=profile["user_id"],
            role=profile["role"],
            full_name=profile["full_name"],
            email=profile["email"],
            access_token=profile["access_token"],
            block=profile.get("block"),
            lot=profile.get("lot"),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_STAFF)


class SessionStore:
    """Keeps the signed-in profile and the cached GCash QR image in a JSON file."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path or settings.session_store_path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Discarding unreadable session file %s", self.path)
            return {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, default=str), encoding="utf-8")

    def save_profile(self, profile: Dict[str, Any]) -> CurrentActor:
        data = self._read()
        data["user"] = profile
        self._write(data)
        return CurrentActor.from_profile(profile)

    def load_actor(self) -> Optional[CurrentActor]:
        profile = self._read().get("user")
        if not profile:
            return None
        try:
            return CurrentActor.from_profile(profile)
        except KeyError:
            logger.warning("Stored profile is incomplete; signing out.")
            self.clear()
            return None

    def save_qr_code(self, data_url: Optional[str]) -> None:
        data = self._read()
        data["gcashQrCode"] = data_url or None
        self._write(data)

    def load_qr_code(self) -> Optional[str]:
        return self._read().get("gcashQrCode")

    def clear(self) -> None:
        # The QR image is not tied to who is signed in.
        qr_code = self.load_qr_code()
        if qr_code:
            self._write({"gcashQrCode": qr_code})
        elif self.path.exists():
            self.path.unlink()
