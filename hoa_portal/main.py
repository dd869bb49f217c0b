import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from jose import JWTError

from . import config
from .api import (
    amenities,
    announcements,
    auth,
    billing,
    cctv,
    dashboards,
    gateway,
    projects,
    reports,
    settings as settings_api,
    system,
    users,
    visitors,
)
from .auth.jwt import decode_token
from .config import Base, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import REQUEST_ID_HEADER, assign_request_id
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .services.audit import audit_log
from .services.settings import ensure_default_settings

configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(title="HOA Management Portal")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
register_exception_handlers(app)

uploads_route = "/" + settings.uploads_public_prefix.strip("/")
uploads_dir = settings.uploads_root_path
uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount(uploads_route, StaticFiles(directory=str(uploads_dir)), name="uploads")


@app.on_event("startup")
def startup() -> None:
    # Tables are created directly; the schema is small and has no migration history.
    Base.metadata.create_all(bind=config.engine)
    with config.SessionLocal() as session:
        ensure_default_settings(session)
    log_security_warnings(settings.jwt_secret, settings.enforce_reservation_overlap)


app.include_router(gateway.router, tags=["gateway"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
app.include_router(billing.router, prefix="/billing", tags=["billing"])
app.include_router(amenities.router, prefix="/amenities", tags=["amenities"])
app.include_router(visitors.router, prefix="/visitors", tags=["visitors"])
app.include_router(cctv.router, prefix="/cctv", tags=["cctv"])
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(settings_api.router, prefix="/settings", tags=["settings"])
app.include_router(dashboards.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(system.router, prefix="/system", tags=["system"])


@app.middleware("http")
async def audit_trail(request: Request, call_next):
    response = await call_next(request)
    if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
        return response
    actor_id = None
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1]
        try:
            actor_id = decode_token(token).get("sub")
        except JWTError:
            actor_id = None
    with config.SessionLocal() as session:
        audit_log(
            db_session=session,
            actor_user_id=actor_id,
            action=f"{request.method} {request.url.path}",
            target_entity_type="HTTP",
            target_entity_id=request.url.path,
            after={"status": response.status_code},
        )
    return response


@app.middleware("http")
async def request_id(request: Request, call_next):
    value = assign_request_id(request)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = value
    return response
