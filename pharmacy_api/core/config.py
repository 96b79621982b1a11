"""Application configuration.

Environment variables override all defaults.
SECRET_KEY must be set when ENVIRONMENT=production; startup fails otherwise.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv


_PROJECT_DIR = Path(__file__).resolve().parents[2]

# Load .env for local development; real environment variables win
load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)


def _csv_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacy.db")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    if not SECRET_KEY:
        if ENVIRONMENT == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value.",
            RuntimeWarning,
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    TOKEN_COOKIE_NAME: str = "pharmacy_session"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv_env(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    # Hosts accepted by TrustedHostMiddleware (testserver is the TestClient host)
    ALLOWED_HOSTS: List[str] = _csv_env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

    # Cookies
    SECURE_COOKIES: bool = ENVIRONMENT == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Inventory thresholds used by the stock-level filter
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    HIGH_STOCK_THRESHOLD: int = int(os.getenv("HIGH_STOCK_THRESHOLD", "50"))

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Bootstrap admin created by init_db on an empty database
    DEFAULT_ADMIN_USERNAME: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    DEFAULT_ADMIN_EMAIL: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@pharmacy.example.com")
    MIN_PASSWORD_LENGTH: int = 8


settings = Settings()
