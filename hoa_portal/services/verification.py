"""Admin review of pending payments and project contributions.

Both record types carry the columns from ``ReviewableMixin``; this module is
the only place their status moves out of ``pending``.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from ..config import settings
from ..core.errors import ConflictError, ValidationFailed
from ..domain.dues import check_review_transition
from ..domain.proofs import (
    PROOF_REQUIRED,
    PROOF_UNREADABLE,
    decode_image_data_url,
    image_problem,
    matches_signature,
)
from ..models.models import Payment, ProjectContribution, User
from .storage import storage_service

logger = logging.getLogger(__name__)

Reviewable = Union[Payment, ProjectContribution]


def check_version(record, expected_version: Optional[int]) -> None:
    """Refuse a write based on a stale copy; no version means last write wins."""
    if expected_version is None:
        return
    if record.version != expected_version:
        raise ConflictError("This record was changed by someone else. Refresh and try again.")


def bump_version(record) -> None:
    record.version = (record.version or 0) + 1


def review(
    record: Reviewable,
    actor: User,
    status: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> Reviewable:
    check_version(record, expected_version)
    check_review_transition(record.status, status, notes)

    previous = record.status
    record.status = status
    if notes is not None and notes.strip():
        record.notes = notes.strip()
    record.reviewed_by_user_id = actor.user_id
    record.reviewed_at = datetime.now(timezone.utc)
    bump_version(record)
    logger.info(
        "%s %s moved %s -> %s by %s",
        type(record).__name__,
        record.record_id,
        previous,
        status,
        actor.user_id,
    )
    return record


def accept_proof(proof_url: Optional[str], folder: str) -> str:
    """Validate an uploaded proof image and store it, returning its public path."""
    if not proof_url or not proof_url.strip():
        raise ValidationFailed(PROOF_REQUIRED)
    try:
        upload = decode_image_data_url(proof_url)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from exc
    problem = image_problem(upload.content_type, upload.size, settings.proof_max_bytes)
    if problem:
        raise ValidationFailed(problem)
    if not matches_signature(upload):
        raise ValidationFailed(PROOF_UNREADABLE)

    stored = storage_service.save_file(
        f"{folder}/{uuid.uuid4().hex}{upload.extension}",
        upload.content,
        content_type=upload.content_type,
    )
    return stored.public_path
