# apartment_admin/config.py
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Database ---
    database_url: str = "sqlite:///./apartment_admin.db"

    # --- Security / JWT ---
    jwt_secret: str = "dev-secret-please-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12  # 12 hours

    # --- Bootstrap admin (created on startup when no admin exists) ---
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    # --- CORS ---
    cors_origins: List[str] = ["http://localhost:5173"]

    # --- Logging ---
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    log_json: bool = False

    # --- Dues / payments ---
    late_fee_rate: float = 0.001  # 0.1% per day
    default_due_day: int = 15
    batch_write_limit: int = 450
    overpayment_policy: Literal["reject", "absorb"] = "reject"
    allow_duplicate_period_dues: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

# --- SQLAlchemy setup ---
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
