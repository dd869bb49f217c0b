from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..config import settings
from ..constants import ROLE_PRIORITY
from ..models.models import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _create_token(data: dict, expires_minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = data.copy()
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user: User) -> str:
    payload = {"sub": user.user_id, "role": user.role, "type": "access"}
    return _create_token(payload, settings.access_token_expire_minutes)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def resolve_token_user(db: Session, token: Optional[str]) -> Optional[User]:
    """Return the active user a bearer token belongs to, or None when it does not check out."""
    if not token:
        return None
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    user_id: Optional[str] = payload.get("sub")
    if user_id is None or payload.get("type") != "access":
        return None
    user = db.get(User, user_id)
    if user is None or user.status != "active":
        return None
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if not credentials:
        return None
    return resolve_token_user(db, credentials.credentials)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if not allowed:
            return user
        if user.has_any_role(*allowed):
            return user
        raise HTTPException(status_code=403, detail="Operation not permitted for your role")

    return role_checker


def require_minimum_role(role_name: str):
    minimum = ROLE_PRIORITY.get(role_name, 0)

    def min_checker(user: User = Depends(get_current_user)) -> User:
        if ROLE_PRIORITY.get(user.role, 0) >= minimum:
            return user
        raise HTTPException(status_code=403, detail="Insufficient privileges for this action")

    return min_checker
