"""Form checks that run before anything is sent to the gateway."""
from __future__ import annotations

import mimetypes
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

from ..domain.dues import REJECTION_NOTE_REQUIRED
from ..domain.proofs import MAX_PROOF_BYTES, PROOF_REQUIRED, ImageUpload, decode_image_data_url, image_problem
from ..domain.reservations import window_problem

PASSWORDS_DIFFER = "Passwords do not match."
BLOCK_LOT_NOT_NUMBERS = "Block and Lot must be numbers."
INVALID_AMOUNT = "Please enter a valid amount."


class FormValidationError(ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def load_proof(source: Union[str, Path, ImageUpload, None], max_bytes: int = MAX_PROOF_BYTES) -> ImageUpload:
    """Read a proof-of-payment image from disk or a data URL, refusing oversized or non-image files."""
    if source is None or source == "":
        raise FormValidationError(PROOF_REQUIRED)
    if isinstance(source, ImageUpload):
        upload = source
    elif isinstance(source, str) and source.startswith("data:"):
        try:
            upload = decode_image_data_url(source)
        except ValueError as exc:
            raise FormValidationError(str(exc)) from exc
    else:
        path = Path(source)
        if not path.is_file():
            raise FormValidationError(PROOF_REQUIRED)
        content_type = mimetypes.guess_type(path.name)[0]
        # Size first so a huge file is never read into memory.
        problem = image_problem(content_type, path.stat().st_size, max_bytes)
        if problem:
            raise FormValidationError(problem)
        upload = ImageUpload(content_type=content_type, content=path.read_bytes())
    problem = image_problem(upload.content_type, upload.size, max_bytes)
    if problem:
        raise FormValidationError(problem)
    return upload


def require_rejection_note(notes: Optional[str]) -> str:
    if not (notes or "").strip():
        raise FormValidationError(REJECTION_NOTE_REQUIRED)
    return notes.strip()


def check_reservation_window(reservation_date: date, start_time: str, end_time: str, today: Optional[date] = None) -> None:
    problem = window_problem(reservation_date, start_time, end_time, today)
    if problem:
        raise FormValidationError(problem)


def check_registration(password: str, confirm_password: str, block: Any, lot: Any) -> None:
    if password != confirm_password:
        raise FormValidationError(PASSWORDS_DIFFER)
    try:
        int(str(block))
        int(str(lot))
    except ValueError as exc:
        raise FormValidationError(BLOCK_LOT_NOT_NUMBERS) from exc


def parse_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise FormValidationError(INVALID_AMOUNT) from exc
    if not amount.is_finite() or amount <= 0:
        raise FormValidationError(INVALID_AMOUNT)
    return amount.quantize(Decimal("0.01"))
