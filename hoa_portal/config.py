# hoa_portal/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Database ---
    database_url: str = "sqlite:///hoa_portal/hoa_dev.db"

    # --- Security / JWT ---
    jwt_secret: str = "dev-secret-please-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12  # 12 hours
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    frontend_url: str = "http://localhost:5173"

    # --- Uploads ---
    uploads_dir: str = "uploads"
    uploads_public_prefix: str = "uploads"
    proof_max_bytes: int = 5 * 1024 * 1024

    # --- Document Generation ---
    pdf_output_dir: str = "uploads/receipts"

    # --- Amenities ---
    enforce_reservation_overlap: bool = False

    # --- Logging ---
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    log_format: Literal["json", "plain"] = "plain"

    # --- Portal client ---
    gateway_url: str = "http://localhost:8000/exec"
    gateway_timeout_seconds: float = 30.0
    session_store_path: str = ".hoa_portal/session.json"

    @property
    def uploads_root_path(self) -> Path:
        return Path(self.uploads_dir)

    @property
    def cors_allow_origins(self) -> List[str]:
        origins = [origin.rstrip("/") for origin in self.cors_origins]
        frontend = self.frontend_url.rstrip("/")
        if frontend and frontend not in origins:
            origins.append(frontend)
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# Ensure path directory exists (for SQLite)
if settings.database_url.startswith("sqlite:///"):
    db_path = Path(settings.database_url.replace("sqlite:///", ""))
    db_path.parent.mkdir(parents=True, exist_ok=True)

# --- SQLAlchemy setup ---
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autoflush=False, bind=engine)
Base = declarative_base()
