# tamales/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
INSTANCE_DIR = BASE_DIR / "instance"
ENV_PATH = INSTANCE_DIR / ".env"

DEFAULT_SQLITE = f"sqlite:///{INSTANCE_DIR / 'tamales.db'}"
DEFAULT_FROM_EMAIL = "Tamales de Danely <onboarding@resend.dev>"
DEFAULT_ADMIN_EMAIL = "danely@example.com"
RESEND_API_URL = "https://api.resend.com/emails"


def normalize_database_url(raw_url: str) -> str:
    """
    Hosted Postgres hands out URLs like postgres://...
    SQLAlchemy needs postgresql+psycopg://, and production needs SSL.
    """
    if not raw_url:
        return DEFAULT_SQLITE
    url = raw_url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url[len("postgres://"):]
    elif url.startswith("postgresql://"):
        url = "postgresql+psycopg://" + url[len("postgresql://"):]
    if url.startswith("postgresql+psycopg://") and "sslmode=" not in url:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}sslmode=require"
    return url


class Config:
    """Settings read from the environment when the app is created."""

    def __init__(self, environ=None):
        if environ is None:
            if ENV_PATH.exists():
                load_dotenv(ENV_PATH)
            environ = os.environ

        self.SQLALCHEMY_DATABASE_URI = normalize_database_url(environ.get("DATABASE_URL", ""))
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

        self.RESEND_API_KEY = environ.get("RESEND_API_KEY") or None
        self.RESEND_API_URL = environ.get("RESEND_API_URL", RESEND_API_URL)
        self.FROM_EMAIL = environ.get("FROM_EMAIL") or DEFAULT_FROM_EMAIL
        self.ADMIN_EMAIL = (
            environ.get("ADMIN_EMAIL") or environ.get("DANELY_EMAIL") or DEFAULT_ADMIN_EMAIL
        )
        self.EMAIL_TIMEOUT = float(environ.get("EMAIL_TIMEOUT", "10"))

        self.CORS_ORIGINS = environ.get("CORS_ORIGINS", "*")
        self.LOG_LEVEL = environ.get("LOG_LEVEL", "INFO").upper()

    def as_dict(self):
        return {key: value for key, value in vars(self).items() if key.isupper()}
