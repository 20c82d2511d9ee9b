import os
from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str):
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

    # Sessions are created by the auth service; we only read them.
    SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "splitstuff_session")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    CORS_ORIGINS = _split_origins(os.environ.get("CORS_ORIGINS", "http://localhost:5173"))

    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", 3306))
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_NAME = os.environ.get("DB_NAME", "splitstuff")
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", 10))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CURRENCY_CODE = os.environ.get("CURRENCY_CODE", "INR")


config = Config()
