from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user
from ..config import settings
from ..core.rate_limit import rate_limit_dependency
from ..models.models import User
from ..schemas.schemas import LoginPayload, MessageRead, RegistrationPayload, SessionRead, UserRead
from ..services import users as user_service

router = APIRouter()

login_rate_limit = rate_limit_dependency("login", settings.login_rate_limit, settings.login_rate_window_seconds)


def session_read(result: dict) -> SessionRead:
    profile = UserRead.model_validate(result["user"])
    return SessionRead(**profile.model_dump(), access_token=result["access_token"], token_type=result["token_type"])


@router.post("/register", response_model=MessageRead, status_code=201)
def register(payload: RegistrationPayload, db: Session = Depends(get_db)) -> MessageRead:
    message = user_service.register(
        db,
        full_name=payload.fullName,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        block=payload.block,
        lot=payload.lot,
    )
    return MessageRead(message=message)


@router.post("/login", response_model=SessionRead, dependencies=[Depends(login_rate_limit)])
def login(payload: LoginPayload, db: Session = Depends(get_db)) -> SessionRead:
    return session_read(user_service.login(db, payload.email, payload.password))


@router.get("/me", response_model=UserRead)
def read_me(user: User = Depends(get_current_user)) -> User:
    return user
