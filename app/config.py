import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./center.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# development | production; production turns on HSTS
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Frontend base URL, also the default CORS origin
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",") if o.strip()]

# Shop settings
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "BHD")  # USD or BHD
CART_EXPIRY_DAYS = int(os.getenv("CART_EXPIRY_DAYS", "30"))

# Scheduling settings
APPOINTMENT_MIN_LEAD_MINUTES = int(os.getenv("APPOINTMENT_MIN_LEAD_MINUTES", "30"))

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_API_URL = os.getenv("STRIPE_API_URL", "https://api.stripe.com/v1")

# Zoom Server-to-Server OAuth Configuration
# Meetings are skipped (not failed) when these are missing
ZOOM_ACCOUNT_ID = os.getenv("ZOOM_ACCOUNT_ID")
ZOOM_CLIENT_ID = os.getenv("ZOOM_CLIENT_ID")
ZOOM_CLIENT_SECRET = os.getenv("ZOOM_CLIENT_SECRET")
ZOOM_API_URL = os.getenv("ZOOM_API_URL", "https://api.zoom.us/v2")
ZOOM_TOKEN_URL = os.getenv("ZOOM_TOKEN_URL", "https://zoom.us/oauth/token")
