"""
Runtime configuration for the Quizzy blog API.
Everything is read from environment variables at import time.
"""

import os
import secrets
import warnings
from pathlib import Path

ENVIRONMENT = os.getenv("QUIZZY_ENV", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

# Database path - configurable via environment variable
DB_PATH = os.getenv(
    "QUIZZY_DB_PATH",
    str(Path(__file__).parent.parent / "data" / "quizzy.db"),
)

LOG_LEVEL = os.getenv("QUIZZY_LOG_LEVEL", "INFO").upper()
SITE_NAME = os.getenv("SITE_NAME", "quizzy")

# CORS
FRONTEND_URL = os.getenv("QUIZZY_FRONTEND_URL", "")
ALLOWED_ORIGINS = [
    origin for origin in ("http://localhost:5173", FRONTEND_URL) if origin
]

# Admin sessions
SESSION_COOKIE_NAME = "quizzy_admin_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days in seconds
LOGIN_RATE_LIMIT = os.getenv("QUIZZY_LOGIN_RATE_LIMIT", "5/minute")

SECRET_KEY = os.getenv("QUIZZY_SECRET_KEY")

if not SECRET_KEY:
    if IS_PRODUCTION:
        raise RuntimeError("QUIZZY_SECRET_KEY must be set in production environment")
    warnings.warn("QUIZZY_SECRET_KEY not set - using random key (tokens won't survive restarts)")
    SECRET_KEY = secrets.token_hex(32)

# View deduplication markers
VIEW_MARKER_PREFIX = "viewed_blog_"
VIEW_MARKER_MAX_AGE = 60 * 60  # 1 hour


def get_admin_password() -> str:
    """Get admin password from environment."""
    password = os.getenv("QUIZZY_ADMIN_PASSWORD", "")
    if not password:
        raise ValueError("QUIZZY_ADMIN_PASSWORD environment variable not set")
    return password
