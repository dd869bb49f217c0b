"""Role checks for service calls that receive the acting user explicitly."""
from typing import Optional

from ..constants import ROLE_ADMIN
from ..core.errors import AuthenticationFailed, PermissionDenied
from ..models.models import User


def require_actor(actor: Optional[User]) -> User:
    if actor is None:
        raise AuthenticationFailed("Please sign in to continue.")
    return actor


def require_admin(actor: Optional[User]) -> User:
    actor = require_actor(actor)
    if not actor.has_role(ROLE_ADMIN):
        raise PermissionDenied("Only administrators can perform this action.")
    return actor


def require_any_role(actor: Optional[User], *roles: str) -> User:
    actor = require_actor(actor)
    if not actor.has_any_role(*roles):
        raise PermissionDenied("Operation not permitted for your role.")
    return actor


def require_self_or_admin(actor: Optional[User], user_id: str) -> User:
    actor = require_actor(actor)
    if actor.user_id != user_id and not actor.has_role(ROLE_ADMIN):
        raise PermissionDenied("You may only access your own records.")
    return actor
