from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "hackcontrol-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Hackcontrol")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/hackcontrol_dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Tokens
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "15"))
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d
    # Shared with the OAuth front (it posts verified provider profiles to /auth/session)
    auth_provider_secret: str = os.getenv("AUTH_PROVIDER_SECRET", "dev-provider-secret")
    # Accounts created with these emails start as ADMIN
    admin_emails: list[str] = [e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()]

    # Hackathon defaults
    default_min_judges: int = int(os.getenv("DEFAULT_MIN_JUDGES", "2"))
    default_score_min: float = float(os.getenv("DEFAULT_SCORE_MIN", "0"))
    default_score_max: float = float(os.getenv("DEFAULT_SCORE_MAX", "10"))

settings = Settings()
