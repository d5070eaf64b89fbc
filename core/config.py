from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Taman Community API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_ORIGINS: List[str] = []

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Bearer credentials
    # -------------------------------------------------
    # The sentinel bearer is an "always authorized" back-door for local and
    # test contexts. Off unless explicitly enabled.
    ALLOW_INSECURE_SENTINEL_TOKEN: bool = False
    SENTINEL_TOKEN: str = "mock-access-token"

    SUPER_ROLE: str = "superadmin"

    # When set, bearer tokens are signature-checked before claims are read.
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"

    # -------------------------------------------------
    # Check-in
    # -------------------------------------------------
    CHECKIN_DEFAULT_RADIUS_METERS: float = Field(50, description="Geofence radius used when no settings row exists")
    CHECKIN_DEFAULT_TIME_WINDOW_MINUTES: float = Field(5, description="Cooldown used when no settings row exists")
    CHECKIN_ATOMIC_GUARD: bool = Field(False, description="Use the compare-and-swap cooldown guard")

    # -------------------------------------------------
    # Blob store (S3)
    # -------------------------------------------------
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_BUCKET_NAME: Optional[str] = None
    AWS_REGION: str = "us-east-2"

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

for origin in settings.FRONTEND_ORIGINS:
    if not origin.startswith("http"):
        origin = f"https://{origin}"
    cors_origins.append(origin.rstrip("/"))

if settings.ENV == "development":
    cors_origins.append("http://localhost:5173")

# remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
