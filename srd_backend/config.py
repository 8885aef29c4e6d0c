import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./srd.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Admin session tokens (the dashboard logs in with email/password and gets a 1h JWT)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# Frontend base URL for payment redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:3000",
).split(",")

# Paystack Configuration
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_TIMEOUT_SECONDS = float(os.getenv("PAYSTACK_TIMEOUT_SECONDS", "15"))
CURRENCY = os.getenv("CURRENCY", "NGN")
# Consultation fee in major units (naira); Paystack expects kobo
CONSULTATION_FEE = float(os.getenv("CONSULTATION_FEE", "50000"))
# Optional per-service override, e.g. {"Media Relations": 75000}
SERVICE_FEES: dict[str, float] = json.loads(os.getenv("SERVICE_FEES", "{}") or "{}")
MIN_PAYMENT_LINK_AMOUNT = float(os.getenv("MIN_PAYMENT_LINK_AMOUNT", "100"))
# Paystack requires an email; ad-hoc links without one use this address
DEFAULT_CUSTOMER_EMAIL = os.getenv("DEFAULT_CUSTOMER_EMAIL", "customer@example.com")

# Booking calendar
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Africa/Lagos")
SLOT_START_TIMES = [
    t.strip() for t in os.getenv("SLOT_START_TIMES", "10:00,13:00,15:00").split(",") if t.strip()
]
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "60"))
BOOKING_LOOKAHEAD_DAYS = int(os.getenv("BOOKING_LOOKAHEAD_DAYS", "120"))
# Pending bookings that never get paid release their slot after this window
PENDING_BOOKING_TTL_MINUTES = int(os.getenv("PENDING_BOOKING_TTL_MINUTES", "60"))

BOOKABLE_SERVICES = [
    "Media Relations",
    "Crisis Communication Management",
    "Brand Storytelling",
    "Language Interpretation",
    "Language Translation",
    "Bespoke Consultancy",
]

# File uploads: "local" writes under UPLOADS_DIR, "r2" pushes to Cloudflare R2
UPLOAD_BACKEND = os.getenv("UPLOAD_BACKEND", "local").lower()
UPLOADS_DIR = os.getenv("UPLOADS_DIR", str(Path(__file__).resolve().parent.parent / "public" / "uploads"))
UPLOADS_URL_PREFIX = "/uploads"
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "srd-uploads")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Rate limiting for public submission endpoints
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Merge built-in sample testimonials/blog posts into public listings
INCLUDE_SEED_CONTENT = os.getenv("INCLUDE_SEED_CONTENT", "false").lower() == "true"
