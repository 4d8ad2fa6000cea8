"""
Design Gallery - Centralized Configuration
===========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


# ==========================================
# 🗄️ Database
# ==========================================
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)
    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")

if not SECRET_KEY:
    print("[ERROR] Critical: Security key missing in .env (SECRET_KEY)")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_SECONDS = int(os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", str(60 * 60 * 24)))  # 24 hours
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100


# ==========================================
# 🌐 CORS
# ==========================================
CORS_ORIGINS = _as_list(os.getenv("CORS_ORIGINS", "*"))
CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Request-ID"]
CORS_MAX_AGE = 86400


# ==========================================
# 🚦 Rate Limiting
# ==========================================
RATE_LIMIT_ENABLED = _as_bool(os.getenv("RATE_LIMIT_ENABLED", "true"))

# scope -> (max requests, window seconds)
RATE_LIMITS = {
    "auth": (int(os.getenv("RATE_LIMIT_AUTH", "5")), 5 * 60),
    "api": (int(os.getenv("RATE_LIMIT_API", "100")), 60),
    "upload": (int(os.getenv("RATE_LIMIT_UPLOAD", "10")), 60),
}


# ==========================================
# 📁 File Upload / Object Storage
# ==========================================
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "media")
MEDIA_URL_PATH = "/media"
PUBLIC_MEDIA_URL = os.getenv("PUBLIC_MEDIA_URL", MEDIA_URL_PATH)
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))  # 10 MB
MAX_BATCH_FILES = 5
MAX_IMAGES_PER_DESIGN = 10
MAX_LIST_OBJECTS = 100


# ==========================================
# 📄 Pagination & Limits
# ==========================================
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
MAX_FEATURED_LIMIT = 50
MAX_SHARE_DESIGNS = 20
MAX_CART_QUANTITY = 10


# ==========================================
# 💬 WhatsApp Sharing (defaults; overridable via app settings)
# ==========================================
DEFAULT_WHATSAPP_NUMBERS = "+919876543210"
DEFAULT_WHATSAPP_TEMPLATE = (
    "Hi! I found these beautiful designs in the gallery. "
    "Please check them out: {design_list}"
)


# ==========================================
# 🔧 App
# ==========================================
APP_NAME = os.getenv("APP_NAME", "Design Gallery API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = _as_bool(os.getenv("DEBUG", "false"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
API_PREFIX = "/api"

# Initial admin (scripts/init_db.py)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
