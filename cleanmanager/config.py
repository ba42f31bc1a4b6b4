import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleanmanager.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Frontend base URL for links in emails and billing redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")

# Sessions
SESSION_COOKIE_NAME = "session_token"
EMPLOYEE_SESSION_COOKIE_NAME = "employee_session_token"
SESSION_DURATION_DAYS = int(os.getenv("SESSION_DURATION_DAYS", "30"))

# Customer portal tokens
PORTAL_TOKEN_EXPIRE_DAYS = int(os.getenv("PORTAL_TOKEN_EXPIRE_DAYS", "7"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "CleanManager <noreply@cleanmanager.app>")

# Dodo Payments Configuration
DODO_PAYMENTS_API_KEY = os.getenv("DODO_PAYMENTS_API_KEY")
# "test_mode" or "live_mode" - default to test for safety
DODO_PAYMENTS_ENVIRONMENT = os.getenv("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
DODO_STARTER_PRODUCT_ID = os.getenv("DODO_STARTER_PRODUCT_ID", "")
DODO_PROFESSIONAL_PRODUCT_ID = os.getenv("DODO_PROFESSIONAL_PRODUCT_ID", "")
DODO_ENTERPRISE_PRODUCT_ID = os.getenv("DODO_ENTERPRISE_PRODUCT_ID", "")

# Geoapify address autocomplete
GEOAPIFY_API_KEY = os.getenv("GEOAPIFY_API_KEY")
GEOAPIFY_BASE_URL = os.getenv("GEOAPIFY_BASE_URL", "https://api.geoapify.com").rstrip("/")

# Local file storage for attachments
UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path(__file__).resolve().parent.parent / "uploads"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

# Optional Redis mirror for rate limit counters
REDIS_URL = os.getenv("REDIS_URL")

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
