import base64
import sys
from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import hoa_portal.config as app_config  # noqa: E402
from hoa_portal.api.dependencies import get_db  # noqa: E402
from hoa_portal.auth.jwt import create_access_token, get_password_hash  # noqa: E402
from hoa_portal.config import Base  # noqa: E402
from hoa_portal.core.rate_limit import limiter  # noqa: E402
from hoa_portal.main import app  # noqa: E402
# Import the full models module so all tables (including audit_logs) register with Base metadata.
from hoa_portal.models import models as _all_models  # noqa: E402,F401
from hoa_portal.models.models import Due, Project, User  # noqa: E402
from hoa_portal.services.settings import ensure_default_settings  # noqa: E402

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGNgYAAAAAMAASsJTYQAAAAASUVORK5CYII="
)
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def _sqlite_engine(path: Path):
    return create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Point the app-wide SessionLocal/engine at a scratch DB so middleware writes land somewhere."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    engine = _sqlite_engine(db_dir / "app.db")
    Base.metadata.create_all(engine)
    app_config.SessionLocal = sessionmaker(bind=engine, autoflush=False)
    app_config.engine = engine
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _isolate_files(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config.settings, "uploads_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(app_config.settings, "pdf_output_dir", str(tmp_path / "receipts"))
    monkeypatch.setattr(app_config.settings, "session_store_path", str(tmp_path / "session.json"))
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    engine = _sqlite_engine(tmp_path / "test.db")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    ensure_default_settings(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def create_user(db_session: Session) -> Callable[..., User]:
    counter = {"value": 0}

    def _create(
        role: str = "Homeowner",
        status: str = "active",
        email: Optional[str] = None,
        password: str = "password",
        full_name: Optional[str] = None,
        block: int = 1,
        lot: Optional[int] = None,
    ) -> User:
        counter["value"] += 1
        index = counter["value"]
        user = User(
            role=role,
            status=status,
            email=email or f"{role.lower()}{index}@example.com",
            full_name=full_name or f"{role} {index}",
            phone="09170000000",
            block=block,
            lot=lot if lot is not None else index,
            hashed_password=get_password_hash(password),
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _create


@pytest.fixture
def admin(create_user) -> User:
    return create_user(role="Admin", email="admin@example.com", full_name="Admin User")


@pytest.fixture
def homeowner(create_user) -> User:
    return create_user(role="Homeowner", email="john.doe@example.com", full_name="John Doe", block=5, lot=12)


@pytest.fixture
def create_due(db_session: Session) -> Callable[..., Due]:
    def _create(
        user: User,
        billing_month: date = date(2024, 10, 1),
        amount: str = "2000",
        penalty: str = "0",
        status: str = "unpaid",
    ) -> Due:
        due = Due(
            user_id=user.user_id,
            billing_month=billing_month,
            amount=Decimal(amount),
            penalty=Decimal(penalty),
            total_due=Decimal(amount) + Decimal(penalty),
            status=status,
        )
        db_session.add(due)
        db_session.commit()
        return due

    return _create


@pytest.fixture
def create_project(db_session: Session) -> Callable[..., Project]:
    def _create(
        name: str = "Clubhouse Renovation",
        budget: str = "500000",
        funds_allocated: str = "0",
        funds_spent: str = "0",
        status: str = "Ongoing",
    ) -> Project:
        project = Project(
            name=name,
            description="Repairing the roof and painting walls",
            status=status,
            budget=Decimal(budget),
            funds_allocated=Decimal(funds_allocated),
            funds_spent=Decimal(funds_spent),
        )
        db_session.add(project)
        db_session.commit()
        return project

    return _create


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict]:
    return auth_headers


@pytest.fixture
def png_data_url() -> str:
    return PNG_DATA_URL
