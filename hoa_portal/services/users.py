import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.jwt import create_access_token, get_password_hash, verify_password
from ..constants import ROLE_HOMEOWNER
from ..core.errors import AuthenticationFailed, NotFoundError, ValidationFailed
from ..models.models import User
from .access import require_admin
from .audit import audit_log

logger = logging.getLogger(__name__)

REGISTRATION_MESSAGE = "Registration successful! Please wait for Admin approval."
INVALID_CREDENTIALS = "Invalid email or password."
ACCOUNT_PENDING = "Account is pending approval."
ACCOUNT_INACTIVE = "Account is inactive. Contact Admin."


def _find_by_email(session: Session, email: str) -> Optional[User]:
    normalized = email.strip().lower()
    return session.query(User).filter(func.lower(User.email) == normalized).first()


def register(
    session: Session,
    *,
    full_name: str,
    email: str,
    password: str,
    phone: str = "",
    block: Optional[int] = None,
    lot: Optional[int] = None,
) -> str:
    if _find_by_email(session, email):
        raise ValidationFailed("Email already registered.")

    user = User(
        role=ROLE_HOMEOWNER,
        full_name=full_name.strip(),
        email=email.strip(),
        phone=phone,
        block=block,
        lot=lot,
        hashed_password=get_password_hash(password),
        status="pending",
    )
    session.add(user)
    session.commit()
    logger.info("Registered %s as pending homeowner %s", user.email, user.user_id)
    audit_log(
        session,
        actor_user_id=None,
        action="user.register",
        target_entity_type="User",
        target_entity_id=user.user_id,
        after={"email": user.email, "role": user.role, "status": user.status},
    )
    return REGISTRATION_MESSAGE


def authenticate(session: Session, email: str, password: str) -> User:
    user = _find_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %s", email.strip().lower())
        raise AuthenticationFailed(INVALID_CREDENTIALS)
    if user.status == "inactive":
        raise AuthenticationFailed(ACCOUNT_INACTIVE)
    if user.status == "pending":
        raise AuthenticationFailed(ACCOUNT_PENDING)
    return user


def login(session: Session, email: str, password: str) -> dict:
    user = authenticate(session, email, password)
    logger.info("User %s signed in", user.user_id)
    return {"user": user, "access_token": create_access_token(user), "token_type": "bearer"}


def get_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(session: Session, actor: Optional[User]) -> List[User]:
    require_admin(actor)
    return session.query(User).order_by(User.date_created.asc()).all()


def update_user(
    session: Session,
    actor: Optional[User],
    user_id: str,
    new_role: Optional[str] = None,
    new_status: Optional[str] = None,
) -> User:
    actor = require_admin(actor)
    user = get_user(session, user_id)
    if actor.user_id == user.user_id and (new_status and new_status != "active" or new_role and new_role != user.role):
        raise ValidationFailed("You cannot change your own role or deactivate your own account.")

    before = {"role": user.role, "status": user.status}
    if new_role:
        user.role = new_role
    if new_status:
        user.status = new_status
    session.commit()
    logger.info("User %s updated by %s: %s -> %s", user.user_id, actor.user_id, before, {"role": user.role, "status": user.status})
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="user.update",
        target_entity_type="User",
        target_entity_id=user.user_id,
        before=before,
        after={"role": user.role, "status": user.status},
    )
    return user
