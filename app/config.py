"""Application configuration loaded from environment variables"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    return int(value)


def get_database_url() -> str:
    """Build the async database URL, preferring DATABASE_URL when set."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return (
        f"postgresql+asyncpg://{os.getenv('DB_USER', 'postgres')}:{os.getenv('DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('DB_HOST', 'localhost')}:{os.getenv('DB_PORT', '5432')}/{os.getenv('DB_NAME', 'pharmacy_feedback')}"
    )


DATABASE_URL = get_database_url()
DB_ECHO = _get_bool("DB_ECHO", False)
DB_AUTO_CREATE = _get_bool("DB_AUTO_CREATE", False)

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

REPORTS_DIR = Path(os.getenv("REPORTS_DIR", str(BASE_DIR / "public" / "reports")))
REPORTS_URL_PREFIX = os.getenv("REPORTS_URL_PREFIX", "/reports")

# Minutes
SESSION_INACTIVITY_TIMEOUT = _get_int("SESSION_INACTIVITY_TIMEOUT", 1440)
KIOSK_INACTIVITY_TIMEOUT = _get_int("KIOSK_INACTIVITY_TIMEOUT", 2)
ABANDONED_SESSION_MINUTES = _get_int("ABANDONED_SESSION_MINUTES", 120)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PHARMACY_NAME = os.getenv("PHARMACY_NAME", "Pharmacie")
